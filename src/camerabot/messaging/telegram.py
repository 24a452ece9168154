"""Telegram Bot API client.

Talks to ``https://api.telegram.org/bot<token>/<method>`` over httpx.
Text calls are sent as JSON; photos and videos are uploaded as
multipart/form-data.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from camerabot.domain.models import BotInfo, ChatAction, ChatId
from camerabot.messaging.base import MessagingClient, MessagingError, UpdateHandler

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.telegram.org"

# Extra seconds on top of the long-poll timeout before httpx gives up
POLL_TIMEOUT_MARGIN = 10.0


class TelegramClient(MessagingClient):
    """Telegram Bot API implementation of :class:`MessagingClient`."""

    def __init__(
        self,
        token: str,
        base_url: str = API_BASE_URL,
        timeout: float = 30.0,
        verbose: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = f"{base_url.rstrip('/')}/bot{token}"
        self._timeout = timeout
        self._verbose = verbose
        self._offset = 0
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def offset(self) -> int:
        """Next update id to request from ``getUpdates``."""
        return self._offset

    async def close(self) -> None:
        """Close the HTTP client."""
        if not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Telegram client")

    # ------------------------------------------------------------------
    # Bot management
    # ------------------------------------------------------------------

    async def get_me(self) -> BotInfo:
        result = await self._call("getMe")
        return BotInfo(
            username=result.get("username", ""),
            first_name=result.get("first_name", ""),
        )

    async def delete_webhook(self) -> None:
        await self._call("deleteWebhook")

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    async def get_updates(self, offset: int = 0, timeout: int = 0) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {"timeout": timeout}
        if offset:
            payload["offset"] = offset
        result = await self._call(
            "getUpdates", payload, timeout=timeout + POLL_TIMEOUT_MARGIN
        )
        return list(result or [])

    async def poll_updates(self, interval: int, handler: UpdateHandler) -> None:
        """Long-poll ``getUpdates`` and feed message updates to ``handler``."""
        logger.info("Polling for updates every %ds", interval)
        while True:
            try:
                updates = await self.get_updates(offset=self._offset, timeout=interval)
            except MessagingError as e:
                logger.error("*** Error while receiving update (%s)", e)
                await asyncio.sleep(interval)
                continue

            for update in updates:
                self._offset = max(self._offset, update.get("update_id", 0) + 1)
                if not update.get("message"):
                    logger.debug("Skipping non-message update %s", update.get("update_id"))
                    continue
                try:
                    await handler(update)
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception(
                        "*** Failed to process update %s", update.get("update_id")
                    )

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send_message(
        self, chat_id: ChatId, text: str, reply_markup: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        return await self._call("sendMessage", payload)

    async def send_photo(
        self, chat_id: ChatId, photo: bytes, reply_markup: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self._upload("sendPhoto", "photo", chat_id, photo, reply_markup)

    async def send_video(
        self, chat_id: ChatId, video: bytes, reply_markup: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self._upload("sendVideo", "video", chat_id, video, reply_markup)

    async def send_chat_action(self, chat_id: ChatId, action: ChatAction) -> None:
        await self._call("sendChatAction", {"chat_id": chat_id, "action": action.value})

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _upload(
        self,
        method: str,
        field: str,
        chat_id: ChatId,
        data: bytes,
        reply_markup: dict[str, Any] | None,
    ) -> dict[str, Any]:
        form: dict[str, str] = {"chat_id": str(chat_id)}
        if reply_markup is not None:
            form["reply_markup"] = json.dumps(reply_markup)
        files = {field: (field, data, "application/octet-stream")}
        return await self._call(method, data=form, files=files)

    async def _call(
        self,
        method: str,
        payload: dict[str, Any] | None = None,
        *,
        data: dict[str, str] | None = None,
        files: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """POST to a Bot API method and return its ``result`` field."""
        if self._verbose:
            logger.debug("-> %s %s", method, payload if payload is not None else data)
        try:
            if files is not None:
                resp = await self._client.post(
                    f"/{method}", data=data, files=files,
                    timeout=timeout or self._timeout,
                )
            else:
                resp = await self._client.post(
                    f"/{method}", json=payload or {},
                    timeout=timeout or self._timeout,
                )
        except httpx.HTTPError as e:
            raise MessagingError(f"HTTP request to {method} failed: {e}", method=method) from e

        try:
            body = resp.json()
        except ValueError as e:
            raise MessagingError(
                f"{method} returned non-JSON response (HTTP {resp.status_code})",
                method=method,
            ) from e

        if self._verbose:
            logger.debug("<- %s %s", method, body)

        if not body.get("ok", False):
            description = body.get("description") or f"HTTP {resp.status_code}"
            raise MessagingError(description, method=method)
        return body.get("result")
