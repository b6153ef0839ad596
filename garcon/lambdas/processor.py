"""
Processor Lambda consuming the SQS queue filled by the receiver.

Services are built once per container and reused across invocations. A failure
is re-raised so SQS redelivers the message.
"""

import asyncio
import json
import logging
from typing import Any

from garcon.components.logger.logger_interface import LoggerInterface
from garcon.dependencies.components import get_components
from garcon.dependencies.services import (
    get_mention_handler_service,
    get_slack_service,
)
from garcon.services.MentionHandlerService.mention_handler_service_interface import (
    MentionHandlerServiceInterface,
)
from garcon.services.SlackService.slack_service_interface import (
    SlackServiceInterface,
)

_loop: asyncio.AbstractEventLoop | None = None
_services: tuple[SlackServiceInterface, MentionHandlerServiceInterface] | None = None
_logger = logging.getLogger("Processor")


async def process_records(
    records: list[dict[str, Any]],
    slack_service: SlackServiceInterface,
    mention_handler: MentionHandlerServiceInterface,
    logger: logging.Logger,
) -> int:
    """Handle every `app_mention` record; return how many were processed."""
    await slack_service.initialize()

    processed = 0
    for record in records:
        body = json.loads(record["body"])
        if body.get("type") != "app_mention":
            logger.info("Skipping queued event of type %s", body.get("type"))
            continue

        await mention_handler.handle_mention(body)
        processed += 1
    return processed


def _get_services() -> tuple[SlackServiceInterface, MentionHandlerServiceInterface]:
    global _services, _logger
    if _services is None:
        components = get_components()
        _logger = components.get_component(LoggerInterface).get_logger("Processor")
        slack_service = get_slack_service(components)
        _services = (
            slack_service,
            get_mention_handler_service(components, slack_service),
        )
    return _services


def _get_loop() -> asyncio.AbstractEventLoop:
    # The SDK clients hold loop-bound resources, so one loop lives per container.
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    slack_service, mention_handler = _get_services()
    records = event.get("Records") or []
    processed = _get_loop().run_until_complete(
        process_records(records, slack_service, mention_handler, _logger)
    )
    _logger.info("Processed %d of %d queued records", processed, len(records))
    return {"processed": processed}
