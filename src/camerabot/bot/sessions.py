"""Allow-list and per-user session registry."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from camerabot.domain.models import Session, SessionStatus

logger = logging.getLogger(__name__)


class AllowList:
    """The configured set of Telegram usernames allowed to use the bot."""

    def __init__(self, allowed_ids: Iterable[str]) -> None:
        self._ids = list(allowed_ids)

    @property
    def ids(self) -> list[str]:
        return list(self._ids)

    def is_available(self, user_id: str) -> bool:
        """Exact, case-sensitive membership test."""
        for allowed in self._ids:
            if allowed == user_id:
                return True
        return False


class SessionPool:
    """Sessions for every allowed user, guarded by one lock.

    The pool is filled once from the allow-list and never grows or
    shrinks. Callers hold :attr:`lock` for the whole processing of an
    update, not only the lookup.
    """

    def __init__(self, allowed_ids: Iterable[str]) -> None:
        self._sessions: dict[str, Session] = {
            user_id: Session(user_id=user_id, status=SessionStatus.WAITING)
            for user_id in allowed_ids
        }
        self.lock = asyncio.Lock()
        logger.debug("Initialized %d sessions", len(self._sessions))

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions

    def get(self, user_id: str) -> Session | None:
        return self._sessions.get(user_id)
