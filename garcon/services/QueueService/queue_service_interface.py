from abc import ABC, abstractmethod
from typing import Any


class QueueServiceInterface(ABC):
    @abstractmethod
    def enqueue(self, body: dict[str, Any]) -> str:
        """Publish `body` as JSON and return the queue message id."""
