from __future__ import annotations

import logging
import time

from garcon.entities.message import MentionEvent
from garcon.services.ContentAssemblerService.content_assembler_service_interface import (
    ContentAssemblerServiceInterface,
)
from garcon.services.GeminiService.gemini_service_interface import (
    GeminiServiceInterface,
)
from garcon.services.MentionHandlerService.mention_handler_service_interface import (
    MentionHandlerServiceInterface,
)
from garcon.services.SlackService.slack_service_interface import (
    SlackServiceInterface,
)

ERROR_NOTICE = "Sorry, something went wrong while preparing my answer 😅\n\nError: {error}"
EMPTY_REPLY_NOTICE = "I couldn't come up with an answer for this one. Could you rephrase?"


class MentionHandlerService(MentionHandlerServiceInterface):
    """
    Runs one mention through the pipeline:
    fetch thread -> assemble content -> generate -> post reply.

    Used by both the socket-mode bot and the queue processor. Duplicate
    deliveries of the same event are not filtered and may produce two replies.
    """

    def __init__(
        self,
        slack_service: SlackServiceInterface,
        content_assembler: ContentAssemblerServiceInterface,
        gemini_service: GeminiServiceInterface,
        logger: logging.Logger,
    ) -> None:
        self.slack_service = slack_service
        self.content_assembler = content_assembler
        self.gemini_service = gemini_service
        self.logger = logger

    async def handle_mention(self, event: MentionEvent) -> None:
        channel = event["channel"]
        thread_ts = event.get("thread_ts") or event["ts"]
        request_id = f"{channel}-{int(time.time() * 1000)}"

        self.logger.info(
            "[%s] Mention received from %s in %s", request_id, event.get("user"), channel
        )

        try:
            bot_user_id = await self.slack_service.initialize()

            messages = await self.slack_service.fetch_thread(channel, thread_ts)
            self.logger.info(
                "[%s] Thread fetched: %d messages", request_id, len(messages)
            )

            user_names = await self.slack_service.resolve_user_names(
                [m["user"] for m in messages if m["user"] != bot_user_id]
            )
            content = await self.content_assembler.build_content_sequence(
                messages, bot_user_id, user_names
            )
            self.logger.info(
                "[%s] Content assembled: %d units", request_id, len(content)
            )

            response = await self.gemini_service.generate(content)
            self.logger.info(
                "[%s] Response generated: %d chars", request_id, len(response)
            )

            if not response.strip():
                self.logger.warning("[%s] Model returned an empty reply", request_id)
                response = EMPTY_REPLY_NOTICE

            await self.slack_service.post_reply(channel, response, thread_ts)
            self.logger.info("[%s] Reply posted to thread %s", request_id, thread_ts)

        except Exception as exc:
            self.logger.error(
                "[%s] Error handling app mention: %s", request_id, exc, exc_info=True
            )
            await self._post_error_notice(request_id, channel, thread_ts, exc)
            raise

    async def _post_error_notice(
        self, request_id: str, channel: str, thread_ts: str, error: Exception
    ) -> None:
        try:
            await self.slack_service.post_reply(
                channel, ERROR_NOTICE.format(error=str(error) or type(error).__name__), thread_ts
            )
            self.logger.info("[%s] Error notice posted", request_id)
        except Exception as post_error:
            self.logger.error(
                "[%s] Failed to post error notice: %s", request_id, post_error
            )
