from __future__ import annotations

import asyncio
import logging
from typing import Any

from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

from garcon.services.MentionHandlerService.mention_handler_service_interface import (
    MentionHandlerServiceInterface,
)
from garcon.services.SlackBotService.slack_bot_service_interface import (
    SlackBotServiceInterface,
)
from garcon.services.SlackService.slack_service_interface import (
    SlackServiceInterface,
)


class SlackBotService(SlackBotServiceInterface):
    """Long-running deployment: Slack events over a Socket Mode connection."""

    def __init__(
        self,
        app: AsyncApp,
        app_token: str,
        slack_service: SlackServiceInterface,
        mention_handler: MentionHandlerServiceInterface,
        logger: logging.Logger,
        port: int,
    ) -> None:
        self.app = app
        self.app_token = app_token
        self.slack_service = slack_service
        self.mention_handler = mention_handler
        self.logger = logger
        self.port = port
        self.socket_handler: AsyncSocketModeHandler | None = None
        self._stopped = asyncio.Event()

        self.app.event("app_mention")(self._on_app_mention)

    async def _on_app_mention(self, event: dict[str, Any]) -> None:
        await self.mention_handler.handle_mention(event)  # type: ignore[arg-type]

    async def start(self) -> None:
        self.logger.info("Starting Slack bot...")
        await self.slack_service.initialize()

        self.socket_handler = AsyncSocketModeHandler(self.app, self.app_token)
        await self.socket_handler.connect_async()
        self.logger.info("Garçon is ready to serve (port %s)", self.port)

        await self._stopped.wait()

    async def stop(self) -> None:
        self.logger.info("Shutting down gracefully...")
        if self.socket_handler is not None:
            await self.socket_handler.close_async()
            self.socket_handler = None
        self._stopped.set()
        self.logger.info("Garçon has left the building")
