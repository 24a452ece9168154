"""Core domain models for the camerabot system.

These models represent the data flowing through the bridge: inbound chat
messages, per-user sessions, dispatch decisions, queued execution
requests, and the result of running the external script.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

# Commands
COMMAND_START = "/start"
COMMAND_EXECUTE = "/execute"
COMMAND_SHOW_CODE = "/showcode"

# Messages
MESSAGE_DEFAULT = "Input your command:"
MESSAGE_UNKNOWN_COMMAND = "Unknown command."
MESSAGE_ERROR_FORMAT = "Error: {}"

ChatId = Union[int, str]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class SessionStatus(str, enum.Enum):
    """Conversation state of an allowed user."""

    WAITING = "waiting"  # Idle, waiting for the next command


class ContentKind(str, enum.Enum):
    """How script output is delivered back to the chat."""

    IMAGE = "image"
    VIDEO = "video"
    TEXT = "text"


class ChatAction(str, enum.Enum):
    """Transient indicators shown to the recipient while work is in progress."""

    TYPING = "typing"
    UPLOAD_PHOTO = "upload_photo"
    UPLOAD_VIDEO = "upload_video"


# ---------------------------------------------------------------------------
# Session / Request Models
# ---------------------------------------------------------------------------


class Session(BaseModel):
    """Per-user state, created once at startup for every allowed id."""

    user_id: str = Field(description="Telegram username this session belongs to")
    status: SessionStatus = Field(default=SessionStatus.WAITING)


class ReplyOptions(BaseModel):
    """Options attached to every outgoing message.

    Re-attaches the command keyboard so the user can always tap the
    next command.
    """

    model_config = ConfigDict(frozen=True)

    keyboard: tuple[tuple[str, ...], ...] = Field(
        default=((COMMAND_EXECUTE,), (COMMAND_SHOW_CODE,)),
        description="Rows of keyboard buttons",
    )
    resize_keyboard: bool = Field(default=True)

    @classmethod
    def default(cls) -> ReplyOptions:
        return cls()

    def to_payload(self) -> dict[str, Any]:
        """Render as Telegram ``reply_markup`` (a ReplyKeyboardMarkup)."""
        return {
            "keyboard": [[{"text": label} for label in row] for row in self.keyboard],
            "resize_keyboard": self.resize_keyboard,
        }


class ExecuteRequest(BaseModel):
    """One queued ``/execute`` invocation awaiting the camera."""

    model_config = ConfigDict(frozen=True)

    chat_id: ChatId = Field(description="Chat the result is delivered to")
    options: ReplyOptions = Field(default_factory=ReplyOptions.default)


# ---------------------------------------------------------------------------
# Dispatch Outcomes (discriminated union)
# ---------------------------------------------------------------------------


class ReplyWith(BaseModel):
    """Reply immediately with a text message."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["reply"] = "reply"
    message: str


class Enqueue(BaseModel):
    """Push an execution request onto the queue."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["enqueue"] = "enqueue"
    request: ExecuteRequest


class Drop(BaseModel):
    """Ignore the update without replying."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["drop"] = "drop"
    reason: str = ""


DispatchOutcome = Annotated[
    Union[ReplyWith, Enqueue, Drop],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Script / Messaging Models
# ---------------------------------------------------------------------------


class ScriptResult(BaseModel):
    """Combined stdout/stderr of one script run plus its failure, if any."""

    model_config = ConfigDict(frozen=True)

    output: bytes = Field(default=b"")
    error: str | None = Field(
        default=None, description="Why the run failed (e.g. 'exit status 1'); None on success"
    )

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace")


class IncomingMessage(BaseModel):
    """The part of a Telegram message update the bridge cares about."""

    model_config = ConfigDict(frozen=True)

    update_id: int
    chat_id: ChatId
    username: str | None = None
    first_name: str = ""
    text: str | None = None

    @classmethod
    def from_update(cls, update: dict[str, Any]) -> IncomingMessage | None:
        """Build from a raw ``getUpdates`` entry; None if it carries no message."""
        message = update.get("message")
        if not message:
            return None
        sender = message.get("from") or {}
        chat = message.get("chat") or {}
        return cls(
            update_id=update.get("update_id", 0),
            chat_id=chat.get("id", ""),
            username=sender.get("username"),
            first_name=sender.get("first_name", ""),
            text=message.get("text"),
        )


class BotInfo(BaseModel):
    """Identity of the bot account, from ``getMe``."""

    model_config = ConfigDict(frozen=True)

    username: str
    first_name: str = ""
