import json
import logging
from typing import Any

from garcon.services.QueueService.queue_service_interface import QueueServiceInterface


class SqsQueueService(QueueServiceInterface):
    """Hands Slack events over to the processor Lambda through SQS."""

    def __init__(self, sqs_client: Any, queue_url: str, logger: logging.Logger) -> None:
        self.sqs_client = sqs_client
        self.queue_url = queue_url
        self.logger = logger

    def enqueue(self, body: dict[str, Any]) -> str:
        response = self.sqs_client.send_message(
            QueueUrl=self.queue_url,
            MessageBody=json.dumps(body),
        )
        message_id = response.get("MessageId", "")
        self.logger.info(
            "Queued %s event from channel %s as %s",
            body.get("type", "unknown"),
            body.get("channel"),
            message_id,
        )
        return message_id
