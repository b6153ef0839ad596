from abc import ABC, abstractmethod

from garcon.entities.message import MentionEvent


class MentionHandlerServiceInterface(ABC):
    @abstractmethod
    async def handle_mention(self, event: MentionEvent) -> None:
        """Answer a mention in its thread. Failures are re-raised after a notice."""
