from abc import ABC, abstractmethod

from garcon.entities.message import ContentUnit


class GeminiServiceInterface(ABC):
    @abstractmethod
    async def generate(self, content: list[ContentUnit]) -> str:
        """Return the model reply for the ordered content units."""
