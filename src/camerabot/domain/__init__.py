"""Domain models for camerabot.

This package contains the core data structures, enumerations, and value
objects used throughout the bridge. All models use Pydantic v2 for
validation.
"""

from camerabot.domain.models import (
    BotInfo,
    ChatAction,
    ContentKind,
    DispatchOutcome,
    Drop,
    Enqueue,
    ExecuteRequest,
    IncomingMessage,
    ReplyOptions,
    ReplyWith,
    ScriptResult,
    Session,
    SessionStatus,
)

__all__ = [
    "BotInfo",
    "ChatAction",
    "ContentKind",
    "DispatchOutcome",
    "Drop",
    "Enqueue",
    "ExecuteRequest",
    "IncomingMessage",
    "ReplyOptions",
    "ReplyWith",
    "ScriptResult",
    "Session",
    "SessionStatus",
]
