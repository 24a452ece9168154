"""The bridge that ties the chat client to dispatch and execution.

Builds the session registry, dispatcher, queue and worker, verifies the
bot token, and then processes incoming updates until cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from camerabot.bot.dispatcher import CommandDispatcher
from camerabot.bot.queue import ExecutionQueue
from camerabot.bot.sessions import AllowList, SessionPool
from camerabot.bot.worker import ExecutionWorker
from camerabot.config.settings import Settings
from camerabot.domain.models import (
    ChatAction,
    Drop,
    Enqueue,
    IncomingMessage,
    ReplyOptions,
    ReplyWith,
)
from camerabot.messaging.base import MessagingClient, MessagingError
from camerabot.runner.script import ScriptRunner

logger = logging.getLogger(__name__)


class StartupError(Exception):
    """Raised when the bridge cannot start (bad token, webhook in place)."""


class CameraBot:
    """Relays chat commands to the camera script.

    Example usage::

        bot = CameraBot.from_settings(load_settings())
        asyncio.run(bot.run())
    """

    def __init__(
        self,
        client: MessagingClient,
        allowed_ids: list[str],
        script_path: str,
        monitor_interval: int = 5,
        script_timeout: float | None = None,
        queue: ExecutionQueue | None = None,
    ) -> None:
        self._client = client
        self._monitor_interval = monitor_interval
        self._allow_list = AllowList(allowed_ids)
        self._sessions = SessionPool(allowed_ids)
        self._dispatcher = CommandDispatcher(self._allow_list, self._sessions, script_path)
        self._queue = queue if queue is not None else ExecutionQueue()
        self._worker = ExecutionWorker(
            client=client,
            runner=ScriptRunner(script_path, timeout=script_timeout),
            queue=self._queue,
        )
        self._worker_task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> CameraBot:
        from camerabot.messaging.telegram import TelegramClient

        client = TelegramClient(
            token=settings.api_token.get_secret_value(),
            verbose=settings.is_verbose,
        )
        return cls(
            client=client,
            allowed_ids=settings.allowed_ids,
            script_path=settings.script_path,
            monitor_interval=settings.monitor_interval,
            script_timeout=settings.script_timeout,
        )

    @property
    def sessions(self) -> SessionPool:
        return self._sessions

    @property
    def queue(self) -> ExecutionQueue:
        return self._queue

    @property
    def worker(self) -> ExecutionWorker:
        return self._worker

    async def run(self) -> None:
        """Verify the bot, start the worker and poll updates until cancelled.

        Raises:
            StartupError: If the token is rejected or the webhook cannot
                be removed.
        """
        async with self._client:
            try:
                me = await self._client.get_me()
            except MessagingError as e:
                raise StartupError(f"Failed to get info of the bot: {e}") from e
            logger.info("Launching bot: @%s (%s)", me.username, me.first_name)

            # getUpdates does not work while a webhook is set up
            try:
                await self._client.delete_webhook()
            except MessagingError as e:
                raise StartupError(f"Failed to delete webhook: {e}") from e

            self._worker_task = asyncio.create_task(self._worker.run(), name="execution-worker")
            try:
                await self._client.poll_updates(self._monitor_interval, self.handle_update)
            finally:
                self._worker_task.cancel()
                try:
                    await self._worker_task
                except asyncio.CancelledError:
                    pass
                self._worker_task = None
                logger.info("Bot stopped")

    async def handle_update(self, update: dict[str, Any]) -> bool:
        """Process one incoming update.

        Returns:
            True if a reply was sent.
        """
        message = IncomingMessage.from_update(update)
        if message is None:
            return False

        if message.username is None:
            logger.info("*** Not allowed (no user name): %s", message.first_name)
            return False

        result = False
        async with self._sessions.lock:
            outcome = self._dispatcher.dispatch(message.username, message.text, message.chat_id)

            if isinstance(outcome, ReplyWith):
                options = ReplyOptions.default()
                try:
                    await self._client.send_chat_action(message.chat_id, ChatAction.TYPING)
                except MessagingError as e:
                    logger.debug("Failed to send chat action: %s", e)
                try:
                    await self._client.send_message(
                        message.chat_id, outcome.message, options.to_payload()
                    )
                    result = True
                except MessagingError as e:
                    logger.error("*** Failed to send message: %s", e)
            elif isinstance(outcome, Enqueue):
                await self._queue.push(outcome.request)
            elif isinstance(outcome, Drop):
                logger.debug("Dropped update %d (%s)", message.update_id, outcome.reason)

        return result
