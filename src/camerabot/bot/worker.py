"""The execution worker: runs the camera script for queued requests.

A single worker drains the :class:`ExecutionQueue`. Every request is
processed under the resource lock so the camera is never used by two
runs at once, even if more workers are added later.
"""

from __future__ import annotations

import asyncio
import logging

from camerabot.bot.queue import ExecutionQueue
from camerabot.domain.models import ChatAction, ContentKind, ExecuteRequest
from camerabot.messaging.base import MessagingClient, MessagingError
from camerabot.runner.script import ScriptRunner
from camerabot.runner.sniff import classify_output

logger = logging.getLogger(__name__)


class ExecutionWorker:
    """Pops execute requests one at a time and delivers the script output.

    Coordinates: pop -> lock -> run script -> classify -> send -> unlock
    """

    def __init__(
        self,
        client: MessagingClient,
        runner: ScriptRunner,
        queue: ExecutionQueue,
        lock: asyncio.Lock | None = None,
    ) -> None:
        self._client = client
        self._runner = runner
        self._queue = queue
        self._lock = lock if lock is not None else asyncio.Lock()
        self._processed = 0

    @property
    def lock(self) -> asyncio.Lock:
        """The resource lock; share it between workers using the same camera."""
        return self._lock

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    @property
    def processed(self) -> int:
        return self._processed

    async def run(self) -> None:
        """Process requests forever. Returns only when cancelled."""
        logger.info("Execution worker started")
        while True:
            request = await self._queue.pop()
            try:
                await self.process(request)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("*** Unexpected error processing request for chat %s", request.chat_id)
            finally:
                self._processed += 1
                self._queue.task_done()

    async def process(self, request: ExecuteRequest) -> bool:
        """Run the script for one request and send the result.

        Returns:
            True if a message (result or error) reached the chat.
        """
        async with self._lock:
            await self._send_action(request, ChatAction.TYPING)

            result = await self._runner.run()
            if not result.ok:
                message = f"Error running script: {result.error} ({result.text})"
                logger.error("*** %s", message)
                return await self._send_text(request, message, "error message")

            kind = classify_output(result.output)
            logger.info("Script output: %d bytes, delivering as %s", len(result.output), kind.value)

            if kind == ContentKind.IMAGE:
                await self._send_action(request, ChatAction.UPLOAD_PHOTO)
                try:
                    await self._client.send_photo(
                        request.chat_id, result.output, request.options.to_payload()
                    )
                    return True
                except MessagingError as e:
                    message = f"Failed to send photo: {e}"
                    logger.error("*** %s", message)
                    return await self._send_text(request, message, "error message")

            if kind == ContentKind.VIDEO:
                await self._send_action(request, ChatAction.UPLOAD_VIDEO)
                try:
                    await self._client.send_video(
                        request.chat_id, result.output, request.options.to_payload()
                    )
                    return True
                except MessagingError as e:
                    message = f"Failed to send video: {e}"
                    logger.error("*** %s", message)
                    return await self._send_text(request, message, "error message")

            return await self._send_text(request, result.text, "message")

    async def _send_text(self, request: ExecuteRequest, text: str, what: str) -> bool:
        try:
            await self._client.send_message(request.chat_id, text, request.options.to_payload())
            return True
        except MessagingError as e:
            logger.error("*** Failed to send %s: %s", what, e)
            return False

    async def _send_action(self, request: ExecuteRequest, action: ChatAction) -> None:
        """Best-effort chat action; failures are only logged."""
        try:
            await self._client.send_chat_action(request.chat_id, action)
        except MessagingError as e:
            logger.debug("Failed to send chat action %s: %s", action.value, e)
