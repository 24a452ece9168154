"""Command dispatch: turns an incoming text into a decision.

The dispatcher decides only; it never talks to the network or the
queue. The caller sends ``ReplyWith`` messages and pushes ``Enqueue``
requests, which keeps this logic testable without any I/O.
"""

from __future__ import annotations

import logging
from pathlib import Path

from camerabot.bot.sessions import AllowList, SessionPool
from camerabot.domain.models import (
    COMMAND_EXECUTE,
    COMMAND_SHOW_CODE,
    COMMAND_START,
    MESSAGE_DEFAULT,
    MESSAGE_ERROR_FORMAT,
    MESSAGE_UNKNOWN_COMMAND,
    ChatId,
    DispatchOutcome,
    Drop,
    Enqueue,
    ExecuteRequest,
    ReplyOptions,
    ReplyWith,
    SessionStatus,
)

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Maps ``(user, text)`` to a :data:`DispatchOutcome`.

    Must be called with ``sessions.lock`` held.
    """

    def __init__(
        self,
        allow_list: AllowList,
        sessions: SessionPool,
        script_path: str | Path,
    ) -> None:
        self._allow_list = allow_list
        self._sessions = sessions
        self._script_path = Path(script_path)

    def dispatch(self, user_id: str, text: str | None, chat_id: ChatId) -> DispatchOutcome:
        """Decide what to do with one message.

        Args:
            user_id: Sender's username.
            text: Message text; None or empty for non-text messages.
            chat_id: Chat the message came from, used for queued work.
        """
        if not self._allow_list.is_available(user_id):
            logger.info("*** Id not allowed: %s", user_id)
            return Drop(reason="not allowed")

        session = self._sessions.get(user_id)
        if session is None:
            logger.error("*** Session does not exist for id: %s", user_id)
            return Drop(reason="no session")

        txt = text or ""
        if session.status == SessionStatus.WAITING:
            if txt.startswith(COMMAND_START):
                return ReplyWith(message=MESSAGE_DEFAULT)
            if txt.startswith(COMMAND_EXECUTE):
                return Enqueue(
                    request=ExecuteRequest(chat_id=chat_id, options=ReplyOptions.default())
                )
            if txt.startswith(COMMAND_SHOW_CODE):
                return ReplyWith(message=self.read_code())
            if txt:
                return ReplyWith(message=f"{txt}: {MESSAGE_UNKNOWN_COMMAND}")
            return ReplyWith(message=MESSAGE_UNKNOWN_COMMAND)

        # Unreachable while WAITING is the only status
        logger.error("*** Unhandled session status %s for id: %s", session.status, user_id)
        return Drop(reason="unhandled status")

    def read_code(self) -> str:
        """Contents of the configured script, or an error string."""
        try:
            return self._script_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            return MESSAGE_ERROR_FORMAT.format(e)
