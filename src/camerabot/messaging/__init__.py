"""Chat platform client module for camerabot.

Public API:
    MessagingClient -- Abstract base class
    MessagingError -- Raised on failed platform calls
    TelegramClient -- Telegram Bot API implementation
"""

from camerabot.messaging.base import MessagingClient, MessagingError

__all__ = ["MessagingClient", "MessagingError", "TelegramClient"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "TelegramClient":
        from camerabot.messaging.telegram import TelegramClient
        return TelegramClient
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
