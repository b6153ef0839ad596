"""
Slack Web API client used by the mention pipeline.

Wraps the async Slack SDK client with bounded, jittered retries for transient
failures (rate limits, 5xx, network errors) and keeps the bot's own user id
cached for the lifetime of the process.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp
import httpx
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from garcon.entities.message import ImageReference, SlackThreadMessage
from garcon.services.SlackService.slack_service_interface import (
    SlackServiceInterface,
)

T = TypeVar("T")

_TRANSIENT_SLACK_ERRORS = {
    "ratelimited",
    "internal_error",
    "fatal_error",
    "service_unavailable",
    "request_timeout",
}


class SlackServiceError(Exception):
    """Raised when a Slack call keeps failing after all retries."""


class ImageFetchError(SlackServiceError):
    def __init__(self, url: str, status_code: int | None, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        detail = f"status {status_code}" if status_code is not None else reason
        super().__init__(f"Failed to fetch image {url}: {detail}")


def is_image_mime_type(mime_type: str | None) -> bool:
    return bool(mime_type) and mime_type.lower().startswith("image/")


def is_transient_slack_error(error: BaseException) -> bool:
    """True for failures that are worth retrying against the Slack API."""
    if isinstance(error, SlackApiError):
        response = error.response
        status_code = getattr(response, "status_code", None) or 0
        code = response.get("error") if response is not None else None
        return status_code == 429 or status_code >= 500 or code in _TRANSIENT_SLACK_ERRORS
    if isinstance(error, ImageFetchError):
        return error.status_code is not None and (
            error.status_code == 429 or error.status_code >= 500
        )
    return isinstance(
        error, (aiohttp.ClientError, asyncio.TimeoutError, httpx.TransportError)
    )


class SlackService(SlackServiceInterface):
    def __init__(
        self,
        client: AsyncWebClient,
        bot_token: str,
        logger: logging.Logger,
        max_attempts: int = 3,
        retry_initial_wait: float = 0.5,
        retry_max_wait: float = 8.0,
        http_client: httpx.AsyncClient | None = None,
        http_timeout: float = 30.0,
    ) -> None:
        self.client = client
        self.bot_token = bot_token
        self.logger = logger
        self.max_attempts = max(1, max_attempts)
        self.retry_initial_wait = retry_initial_wait
        self.retry_max_wait = retry_max_wait
        self.http_client = http_client
        self.http_timeout = http_timeout

        self._bot_user_id: str | None = None
        self._identity_lock = asyncio.Lock()

    def _make_retry_decorator(self):
        """Bounded exponential backoff with jitter, transient errors only."""
        return retry(
            retry=retry_if_exception(is_transient_slack_error),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry_initial_wait,
                max=self.retry_max_wait,
                jitter=self.retry_initial_wait,
            ),
            before_sleep=self._log_retry,
            reraise=True,
        )

    def _log_retry(self, retry_state) -> None:
        self.logger.warning(
            "Slack call %s failed (attempt %d/%d): %s",
            getattr(retry_state.fn, "__name__", "call"),
            retry_state.attempt_number,
            self.max_attempts,
            retry_state.outcome.exception() if retry_state.outcome else None,
        )

    async def _call(
        self, operation: str, func: Callable[..., Awaitable[T]], **kwargs: Any
    ) -> T:
        try:
            return await self._make_retry_decorator()(func)(**kwargs)
        except Exception as exc:
            if is_transient_slack_error(exc):
                raise SlackServiceError(
                    f"Slack {operation} failed after {self.max_attempts} attempts: {exc}"
                ) from exc
            raise

    async def initialize(self) -> str:
        if self._bot_user_id is not None:
            return self._bot_user_id

        async with self._identity_lock:
            if self._bot_user_id is None:
                response = await self._call("auth.test", self.client.auth_test)
                self._bot_user_id = str(response["user_id"])
                self.logger.info("Resolved bot user id: %s", self._bot_user_id)

        return self._bot_user_id

    def get_bot_user_id(self) -> str:
        if self._bot_user_id is None:
            raise RuntimeError("Bot user ID not initialized. Call initialize() first.")
        return self._bot_user_id

    async def fetch_thread(
        self, channel: str, thread_ts: str
    ) -> list[SlackThreadMessage]:
        messages: list[SlackThreadMessage] = []
        cursor: str | None = None

        while True:
            response = await self._call(
                "conversations.replies",
                self.client.conversations_replies,
                channel=channel,
                ts=thread_ts,
                cursor=cursor,
                limit=200,
            )
            for item in response.get("messages") or []:
                messages.append(self._to_thread_message(item))

            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break

        return messages

    def _to_thread_message(self, item: dict[str, Any]) -> SlackThreadMessage:
        files: list[ImageReference] = []
        for file in item.get("files") or []:
            mime_type = file.get("mimetype")
            if not is_image_mime_type(mime_type):
                self.logger.debug(
                    "Skipping non-image file %s (%s)", file.get("name"), mime_type
                )
                continue

            url = file.get("url_private_download") or file.get("url_private")
            if not url:
                self.logger.debug("Skipping image without a download url")
                continue

            files.append(
                {"url": url, "mime_type": mime_type, "file_name": file.get("name")}
            )

        return {
            "user": item.get("user") or item.get("bot_id") or "unknown",
            "text": item.get("text") or "",
            "ts": item.get("ts") or "",
            "files": files,
        }

    async def resolve_user_names(self, user_ids: list[str]) -> dict[str, str]:
        unique_ids = list(dict.fromkeys(uid for uid in user_ids if uid))
        names = await asyncio.gather(*(self._lookup_user_name(uid) for uid in unique_ids))
        return {uid: name for uid, name in zip(unique_ids, names) if name}

    async def _lookup_user_name(self, user_id: str) -> str | None:
        try:
            response = await self._call(
                "users.info", self.client.users_info, user=user_id
            )
        except Exception as exc:
            self.logger.warning("Failed to resolve user %s: %s", user_id, exc)
            return None

        user = response.get("user") or {}
        profile = user.get("profile") or {}
        candidates = [
            profile.get("display_name"),
            profile.get("real_name"),
            user.get("real_name"),
            user.get("name"),
        ]
        return next((name for name in candidates if name), None)

    async def fetch_image_bytes(self, url: str) -> bytes:
        return await self._call("file download", self._download, url=url)

    async def _download(self, url: str) -> bytes:
        headers = {"Authorization": f"Bearer {self.bot_token}"}
        if self.http_client is not None:
            response = await self.http_client.get(
                url, headers=headers, follow_redirects=True
            )
        else:
            async with httpx.AsyncClient(timeout=self.http_timeout) as client:
                response = await client.get(url, headers=headers, follow_redirects=True)

        if not response.is_success:
            raise ImageFetchError(url, response.status_code)

        # Slack answers a missing files:read scope with its HTML login page.
        content_type = response.headers.get("content-type", "")
        if content_type.startswith("text/html"):
            raise ImageFetchError(url, None, "received HTML instead of image data")

        return response.content

    async def post_reply(self, channel: str, text: str, thread_ts: str) -> None:
        await self._call(
            "chat.postMessage",
            self.client.chat_postMessage,
            channel=channel,
            text=text,
            thread_ts=thread_ts,
        )
