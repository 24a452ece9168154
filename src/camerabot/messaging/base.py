"""Abstract base class for the chat platform client.

The bridge core depends only on these semantic operations (send text,
photo, video, chat action; receive updates), not on transport details,
so tests can swap in a mock and a different platform can be added
without touching the dispatcher or worker.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from camerabot.domain.models import BotInfo, ChatAction, ChatId

logger = logging.getLogger(__name__)

UpdateHandler = Callable[[dict[str, Any]], Awaitable[Any]]


class MessagingClient(ABC):
    """Abstract interface for talking to the chat platform.

    Example usage::

        async with TelegramClient(token="123:ABC") as client:
            me = await client.get_me()
            await client.delete_webhook()
            await client.poll_updates(5, handle_update)
    """

    @abstractmethod
    async def get_me(self) -> BotInfo:
        """Return the bot's own account info. Used to verify the token.

        Raises:
            MessagingError: If the platform rejects the credentials.
        """
        ...

    @abstractmethod
    async def delete_webhook(self) -> None:
        """Remove a configured webhook so polling for updates works.

        Raises:
            MessagingError: If the webhook cannot be removed.
        """
        ...

    @abstractmethod
    async def get_updates(self, offset: int = 0, timeout: int = 0) -> list[dict[str, Any]]:
        """Fetch pending updates starting at ``offset``."""
        ...

    @abstractmethod
    async def poll_updates(self, interval: int, handler: UpdateHandler) -> None:
        """Poll for updates forever, passing each one to ``handler``.

        Errors while receiving are logged and polling continues after
        ``interval`` seconds. Returns only when cancelled.
        """
        ...

    @abstractmethod
    async def send_message(
        self, chat_id: ChatId, text: str, reply_markup: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Send a text message.

        Raises:
            MessagingError: If the message cannot be sent.
        """
        ...

    @abstractmethod
    async def send_photo(
        self, chat_id: ChatId, photo: bytes, reply_markup: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Upload and send an image.

        Raises:
            MessagingError: If the photo cannot be sent.
        """
        ...

    @abstractmethod
    async def send_video(
        self, chat_id: ChatId, video: bytes, reply_markup: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Upload and send a video.

        Raises:
            MessagingError: If the video cannot be sent.
        """
        ...

    @abstractmethod
    async def send_chat_action(self, chat_id: ChatId, action: ChatAction) -> None:
        """Show a transient indicator such as 'typing...'."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release network resources. Safe to call multiple times."""
        ...

    async def __aenter__(self) -> MessagingClient:
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()


class MessagingError(Exception):
    """Raised when a call to the chat platform fails."""

    def __init__(self, message: str, method: str = "") -> None:
        super().__init__(message)
        self.method = method
