from abc import ABC, abstractmethod


class SlackBotServiceInterface(ABC):
    @abstractmethod
    async def start(self) -> None:
        """Connect to Slack and process events until `stop` is called."""
        raise NotImplementedError

    @abstractmethod
    async def stop(self) -> None:
        """Close the Slack connection."""
        raise NotImplementedError
