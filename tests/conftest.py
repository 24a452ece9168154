"""Shared test fixtures for the camerabot test suite.

Provides common fixtures used across unit tests: a mocked chat client,
sample update payloads, sample media bytes and throwaway scripts.
"""

from __future__ import annotations

import stat
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from camerabot.domain.models import BotInfo, ExecuteRequest, ReplyOptions
from camerabot.messaging.base import MessagingClient

ALLOWED_USER = "alice"
CHAT_ID = 4242


# ---------------------------------------------------------------------------
# Media Fixtures
# ---------------------------------------------------------------------------

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00" + b"\x00" * 32
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + b"\x00" * 32
# 24-byte ftyp box: major brand isom, minor version, compatible brands isom/mp41
MP4_BYTES = (
    b"\x00\x00\x00\x18ftypisom\x00\x00\x02\x00isommp41"
    + b"\x00\x00\x00\x08free"
)


@pytest.fixture
def jpeg_bytes() -> bytes:
    return JPEG_BYTES


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def mp4_bytes() -> bytes:
    return MP4_BYTES


# ---------------------------------------------------------------------------
# Script Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_script(tmp_path: Path) -> Callable[[str], Path]:
    """Write an executable /bin/sh script and return its path."""
    counter = {"n": 0}

    def _make(body: str) -> Path:
        counter["n"] += 1
        path = tmp_path / f"script_{counter['n']}.sh"
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


@pytest.fixture
def jpeg_script(make_script: Callable[[str], Path]) -> Path:
    """A script that prints the start of a JPEG file."""
    return make_script(r"printf '\377\330\377\340\000\020JFIF\000'")


# ---------------------------------------------------------------------------
# Messaging Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_client() -> AsyncMock:
    """A mock MessagingClient with all async methods stubbed."""
    client = AsyncMock(spec=MessagingClient)
    client.get_me.return_value = BotInfo(username="camerabot", first_name="Camera")
    client.send_message.return_value = {"message_id": 1}
    client.send_photo.return_value = {"message_id": 2}
    client.send_video.return_value = {"message_id": 3}
    return client


@pytest.fixture
def execute_request() -> ExecuteRequest:
    return ExecuteRequest(chat_id=CHAT_ID, options=ReplyOptions.default())


def _make_update(
    text: str | None = None,
    username: str | None = ALLOWED_USER,
    update_id: int = 1,
    chat_id: int = CHAT_ID,
) -> dict[str, Any]:
    """Build a raw getUpdates entry carrying one message."""
    sender: dict[str, Any] = {"id": 1, "is_bot": False, "first_name": "Alice"}
    if username is not None:
        sender["username"] = username
    message: dict[str, Any] = {
        "message_id": update_id,
        "from": sender,
        "chat": {"id": chat_id, "type": "private"},
        "date": 1700000000,
    }
    if text is not None:
        message["text"] = text
    return {"update_id": update_id, "message": message}


@pytest.fixture
def make_update() -> Callable[..., dict[str, Any]]:
    """Factory fixture for raw message updates."""
    return _make_update
