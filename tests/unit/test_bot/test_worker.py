"""Tests for the ExecutionWorker."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, call

import pytest

from camerabot.bot.queue import ExecutionQueue
from camerabot.bot.worker import ExecutionWorker
from camerabot.domain.models import ChatAction, ExecuteRequest, ReplyOptions, ScriptResult
from camerabot.messaging.base import MessagingError
from camerabot.runner.script import ScriptRunner

KEYBOARD = ReplyOptions.default().to_payload()


def _runner(result: ScriptResult) -> AsyncMock:
    runner = AsyncMock(spec=ScriptRunner)
    runner.run.return_value = result
    return runner


def _worker(client: AsyncMock, runner: AsyncMock, **kwargs) -> ExecutionWorker:
    return ExecutionWorker(client=client, runner=runner, queue=ExecutionQueue(), **kwargs)


class TestProcessDelivery:
    @pytest.mark.asyncio
    async def test_jpeg_sent_as_photo(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest, jpeg_bytes: bytes
    ) -> None:
        worker = _worker(mock_client, _runner(ScriptResult(output=jpeg_bytes)))
        assert await worker.process(execute_request) is True
        mock_client.send_photo.assert_awaited_once_with(4242, jpeg_bytes, KEYBOARD)
        mock_client.send_video.assert_not_called()
        mock_client.send_message.assert_not_called()
        assert mock_client.send_chat_action.await_args_list == [
            call(4242, ChatAction.TYPING),
            call(4242, ChatAction.UPLOAD_PHOTO),
        ]

    @pytest.mark.asyncio
    async def test_png_sent_as_photo(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest, png_bytes: bytes
    ) -> None:
        worker = _worker(mock_client, _runner(ScriptResult(output=png_bytes)))
        await worker.process(execute_request)
        mock_client.send_photo.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_mp4_sent_as_video(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest, mp4_bytes: bytes
    ) -> None:
        worker = _worker(mock_client, _runner(ScriptResult(output=mp4_bytes)))
        assert await worker.process(execute_request) is True
        mock_client.send_video.assert_awaited_once_with(4242, mp4_bytes, KEYBOARD)
        mock_client.send_photo.assert_not_called()
        mock_client.send_chat_action.assert_any_await(4242, ChatAction.UPLOAD_VIDEO)

    @pytest.mark.asyncio
    async def test_other_output_sent_as_text(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest
    ) -> None:
        worker = _worker(mock_client, _runner(ScriptResult(output=b"no faces found\n")))
        assert await worker.process(execute_request) is True
        mock_client.send_message.assert_awaited_once_with(4242, "no faces found\n", KEYBOARD)
        mock_client.send_photo.assert_not_called()
        mock_client.send_video.assert_not_called()

    @pytest.mark.asyncio
    async def test_script_error_reply(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest, jpeg_bytes: bytes
    ) -> None:
        # Output looks like an image, but a failed run must never send media
        result = ScriptResult(output=jpeg_bytes[:3] + b" camera busy", error="exit status 1")
        worker = _worker(mock_client, _runner(result))
        assert await worker.process(execute_request) is True
        text = mock_client.send_message.await_args.args[1]
        assert text == f"Error running script: exit status 1 ({result.text})"
        mock_client.send_photo.assert_not_called()
        mock_client.send_video.assert_not_called()

    @pytest.mark.asyncio
    async def test_script_error_text_format(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest
    ) -> None:
        worker = _worker(
            mock_client, _runner(ScriptResult(output=b"no camera", error="exit status 2"))
        )
        await worker.process(execute_request)
        mock_client.send_message.assert_awaited_once_with(
            4242, "Error running script: exit status 2 (no camera)", KEYBOARD
        )


class TestProcessFailures:
    @pytest.mark.asyncio
    async def test_photo_failure_falls_back_to_text(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest, jpeg_bytes: bytes
    ) -> None:
        mock_client.send_photo.side_effect = MessagingError("Request Entity Too Large", "sendPhoto")
        worker = _worker(mock_client, _runner(ScriptResult(output=jpeg_bytes)))
        assert await worker.process(execute_request) is True
        mock_client.send_message.assert_awaited_once_with(
            4242, "Failed to send photo: Request Entity Too Large", KEYBOARD
        )

    @pytest.mark.asyncio
    async def test_video_failure_falls_back_to_text(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest, mp4_bytes: bytes
    ) -> None:
        mock_client.send_video.side_effect = MessagingError("wrong file", "sendVideo")
        worker = _worker(mock_client, _runner(ScriptResult(output=mp4_bytes)))
        await worker.process(execute_request)
        mock_client.send_message.assert_awaited_once_with(
            4242, "Failed to send video: wrong file", KEYBOARD
        )

    @pytest.mark.asyncio
    async def test_failed_fallback_is_not_retried(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest, jpeg_bytes: bytes
    ) -> None:
        mock_client.send_photo.side_effect = MessagingError("boom", "sendPhoto")
        mock_client.send_message.side_effect = MessagingError("still down", "sendMessage")
        worker = _worker(mock_client, _runner(ScriptResult(output=jpeg_bytes)))
        assert await worker.process(execute_request) is False
        assert mock_client.send_photo.await_count == 1
        assert mock_client.send_message.await_count == 1

    @pytest.mark.asyncio
    async def test_chat_action_failure_is_not_fatal(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest
    ) -> None:
        mock_client.send_chat_action.side_effect = MessagingError("flood", "sendChatAction")
        worker = _worker(mock_client, _runner(ScriptResult(output=b"ok")))
        assert await worker.process(execute_request) is True
        mock_client.send_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_lock_released_after_failure(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest
    ) -> None:
        runner = AsyncMock(spec=ScriptRunner)
        runner.run.side_effect = RuntimeError("unexpected")
        worker = _worker(mock_client, runner)
        with pytest.raises(RuntimeError):
            await worker.process(execute_request)
        assert not worker.in_flight


class TestResourceLock:
    @pytest.mark.asyncio
    async def test_single_flight_across_workers(self, mock_client: AsyncMock) -> None:
        """Two workers sharing the lock never run the script concurrently."""
        active = 0
        peak = 0

        async def slow_run() -> ScriptResult:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.02)
            active -= 1
            return ScriptResult(output=b"done")

        runner = AsyncMock(spec=ScriptRunner)
        runner.run.side_effect = slow_run
        queue = ExecutionQueue()
        lock = asyncio.Lock()
        workers = [
            ExecutionWorker(client=mock_client, runner=runner, queue=queue, lock=lock)
            for _ in range(2)
        ]
        assert workers[0].lock is workers[1].lock

        await asyncio.gather(*(w.process(ExecuteRequest(chat_id=n)) for n, w in enumerate(workers * 2)))
        assert runner.run.await_count == 4
        assert peak == 1

    @pytest.mark.asyncio
    async def test_in_flight_while_running(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest
    ) -> None:
        started = asyncio.Event()
        release = asyncio.Event()

        async def blocked_run() -> ScriptResult:
            started.set()
            await release.wait()
            return ScriptResult(output=b"ok")

        runner = AsyncMock(spec=ScriptRunner)
        runner.run.side_effect = blocked_run
        worker = _worker(mock_client, runner)
        task = asyncio.create_task(worker.process(execute_request))
        await asyncio.wait_for(started.wait(), timeout=1)
        assert worker.in_flight
        release.set()
        await task
        assert not worker.in_flight


class TestRunLoop:
    @pytest.mark.asyncio
    async def test_drains_queue_in_order_and_survives_errors(self, mock_client: AsyncMock) -> None:
        results = [RuntimeError("crash"), ScriptResult(output=b"second")]

        async def run() -> ScriptResult:
            item = results.pop(0)
            if isinstance(item, Exception):
                raise item
            return item

        runner = AsyncMock(spec=ScriptRunner)
        runner.run.side_effect = run
        queue = ExecutionQueue()
        worker = ExecutionWorker(client=mock_client, runner=runner, queue=queue)
        await queue.push(ExecuteRequest(chat_id=1))
        await queue.push(ExecuteRequest(chat_id=2))

        task = asyncio.create_task(worker.run())
        await asyncio.wait_for(queue.join(), timeout=1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert worker.processed == 2
        mock_client.send_message.assert_awaited_once_with(2, "second", KEYBOARD)


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_real_script_jpeg_becomes_photo(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest, jpeg_script: Path
    ) -> None:
        worker = _worker(mock_client, ScriptRunner(jpeg_script))
        assert await worker.process(execute_request) is True
        chat_id, photo, markup = mock_client.send_photo.await_args.args
        assert chat_id == 4242
        assert photo.startswith(b"\xff\xd8\xff")
        assert markup == KEYBOARD

    @pytest.mark.asyncio
    async def test_real_script_failure(
        self, mock_client: AsyncMock, execute_request: ExecuteRequest, make_script
    ) -> None:
        script = make_script("echo 'no camera' >&2; exit 1")
        worker = _worker(mock_client, ScriptRunner(script))
        await worker.process(execute_request)
        mock_client.send_message.assert_awaited_once_with(
            4242, "Error running script: exit status 1 (no camera\n)", KEYBOARD
        )
