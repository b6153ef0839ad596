"""
Receiver Lambda behind API Gateway.

Verifies the Slack signature, acknowledges the event and pushes its body onto
SQS. Generation happens in the processor Lambda so Slack's 3 second retry timer
never sees model latency.
"""

import logging
from collections.abc import Callable
from typing import Any

from slack_bolt import App
from slack_bolt.adapter.aws_lambda import SlackRequestHandler

from garcon.components.configuration.configuration_interface import (
    ConfigurationInterface,
)
from garcon.components.logger.logger_interface import LoggerInterface
from garcon.dependencies.components import get_components
from garcon.dependencies.services import get_queue_service
from garcon.services.QueueService.queue_service_interface import QueueServiceInterface

_slack_handler: SlackRequestHandler | None = None


def build_enqueue_listener(
    queue_service: QueueServiceInterface, logger: logging.Logger
) -> Callable[[dict[str, Any]], None]:
    def enqueue_mention(event: dict[str, Any]) -> None:
        message_id = queue_service.enqueue(event)
        logger.info("Mention %s queued as %s", event.get("ts"), message_id)

    return enqueue_mention


def create_receiver_app(
    bot_token: str,
    signing_secret: str,
    queue_service: QueueServiceInterface,
    logger: logging.Logger,
) -> App:
    app = App(
        token=bot_token,
        signing_secret=signing_secret,
        process_before_response=True,
        token_verification_enabled=False,
    )

    app.event("app_mention")(build_enqueue_listener(queue_service, logger))

    logger.info("Receiver app ready")
    return app


def _get_slack_handler() -> SlackRequestHandler:
    global _slack_handler
    if _slack_handler is None:
        components = get_components()
        configuration = components.get_component(ConfigurationInterface)
        app = create_receiver_app(
            bot_token=configuration.get_configuration("SLACK_BOT_TOKEN", str),
            signing_secret=configuration.get_configuration("SLACK_SIGNING_SECRET", str),
            queue_service=get_queue_service(components),
            logger=components.get_component(LoggerInterface).get_logger("Receiver"),
        )
        _slack_handler = SlackRequestHandler(app=app)
    return _slack_handler


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    return _get_slack_handler().handle(event, context)
