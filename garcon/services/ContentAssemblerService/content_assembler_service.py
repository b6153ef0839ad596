from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import re

from garcon.entities.message import (
    ContentUnit,
    ConversationMessage,
    ImageReference,
    InlineImage,
    SlackThreadMessage,
)
from garcon.services.ContentAssemblerService.content_assembler_service_interface import (
    ContentAssemblerServiceInterface,
)
from garcon.services.SlackService.slack_service import is_image_mime_type
from garcon.services.SlackService.slack_service_interface import (
    SlackServiceInterface,
)

DEFAULT_BOT_LABEL = "Garçon"
DEFAULT_HUMAN_LABEL = "User"


class ContentAssemblerService(ContentAssemblerServiceInterface):
    """Turns a Slack thread into the ordered text and image parts sent to Gemini."""

    _MAX_IMAGE_BYTES: int = 5 * 1024 * 1024

    def __init__(
        self,
        slack_service: SlackServiceInterface,
        logger: logging.Logger,
        bot_label: str = DEFAULT_BOT_LABEL,
        max_image_bytes: int | None = None,
    ) -> None:
        self.slack_service = slack_service
        self.logger = logger
        self.bot_label = bot_label
        self.max_image_bytes = max_image_bytes or self._MAX_IMAGE_BYTES

    async def build_content_sequence(
        self,
        messages: list[SlackThreadMessage],
        bot_user_id: str,
        user_names: dict[str, str],
    ) -> list[ContentUnit]:
        conversation = await self.build_conversation(messages, bot_user_id, user_names)
        return to_content_units(conversation)

    async def build_conversation(
        self,
        messages: list[SlackThreadMessage],
        bot_user_id: str,
        user_names: dict[str, str],
    ) -> list[ConversationMessage]:
        mention = re.compile(rf"<@{re.escape(bot_user_id)}(?:\|[^>]*)?>")

        # Image downloads for all messages run together; order is kept by gather.
        resolved_images = await asyncio.gather(
            *(self._resolve_images(message.get("files") or []) for message in messages)
        )

        conversation: list[ConversationMessage] = []
        for message, images in zip(messages, resolved_images):
            author = message["user"]
            is_bot = author == bot_user_id
            conversation.append(
                {
                    "role": "bot" if is_bot else "human",
                    "display_name": (
                        self.bot_label
                        if is_bot
                        else user_names.get(author) or author or DEFAULT_HUMAN_LABEL
                    ),
                    "content": mention.sub("", message.get("text") or "").strip(),
                    "images": images,
                }
            )

        return conversation

    async def _resolve_images(self, files: list[ImageReference]) -> list[InlineImage]:
        results = await asyncio.gather(*(self._resolve_image(file) for file in files))
        return [image for image in results if image is not None]

    async def _resolve_image(self, file: ImageReference) -> InlineImage | None:
        mime_type = file.get("mime_type")
        if not is_image_mime_type(mime_type):
            self.logger.info("Skipping non-image attachment with mime type: %s", mime_type)
            return None

        encoded = file.get("base64")
        if encoded:
            try:
                size_bytes = len(base64.b64decode(encoded, validate=True))
            except (binascii.Error, ValueError) as exc:
                self.logger.warning("Dropping malformed inline image: %s", exc)
                return None
            return {"base64": encoded, "mime_type": mime_type, "size_bytes": size_bytes}

        url = file.get("url")
        if not url:
            self.logger.warning("Dropping image attachment without url or payload")
            return None

        try:
            data = await self.slack_service.fetch_image_bytes(url)
        except Exception as exc:
            self.logger.warning(
                "Failed to fetch image %s: %s", file.get("file_name") or url, exc
            )
            return None

        size_bytes = len(data)
        if size_bytes == 0:
            self.logger.warning("Skipping empty image %s", url)
            return None
        if size_bytes > self.max_image_bytes:
            self.logger.warning(
                "Skipping oversized image %s (%s bytes)", url, size_bytes
            )
            return None

        self.logger.info(
            "Collected image attachment: %s (%s bytes)",
            file.get("file_name") or "unnamed",
            size_bytes,
        )
        return {
            "base64": base64.b64encode(data).decode("ascii"),
            "mime_type": mime_type,
            "size_bytes": size_bytes,
        }


def to_content_units(conversation: list[ConversationMessage]) -> list[ContentUnit]:
    """One `label: text` unit per message, followed by that message's images."""
    units: list[ContentUnit] = []
    for message in conversation:
        units.append({"text": f"{message['display_name']}: {message['content']}"})
        for image in message["images"]:
            units.append(
                {
                    "inline_data": {
                        "data": image["base64"],
                        "mime_type": image["mime_type"],
                    }
                }
            )
    return units
