from abc import ABC, abstractmethod

from garcon.entities.message import (
    ContentUnit,
    ConversationMessage,
    SlackThreadMessage,
)


class ContentAssemblerServiceInterface(ABC):
    @abstractmethod
    async def build_conversation(
        self,
        messages: list[SlackThreadMessage],
        bot_user_id: str,
        user_names: dict[str, str],
    ) -> list[ConversationMessage]:
        """Resolve roles, labels and inline images for every thread message."""

    @abstractmethod
    async def build_content_sequence(
        self,
        messages: list[SlackThreadMessage],
        bot_user_id: str,
        user_names: dict[str, str],
    ) -> list[ContentUnit]:
        """Return the ordered model input for the thread."""
