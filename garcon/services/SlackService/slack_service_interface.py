from abc import ABC, abstractmethod

from garcon.entities.message import SlackThreadMessage


class SlackServiceInterface(ABC):
    @abstractmethod
    async def initialize(self) -> str:
        """Resolve and cache the bot's own user id; return it."""

    @abstractmethod
    def get_bot_user_id(self) -> str:
        """Return the cached bot user id. Raises if `initialize` never ran."""

    @abstractmethod
    async def fetch_thread(
        self, channel: str, thread_ts: str
    ) -> list[SlackThreadMessage]:
        """Return every message of the thread, root included, oldest first."""

    @abstractmethod
    async def resolve_user_names(self, user_ids: list[str]) -> dict[str, str]:
        """Map user ids to display names. Failed lookups are left out."""

    @abstractmethod
    async def fetch_image_bytes(self, url: str) -> bytes:
        """Download a private Slack file using the bot token."""

    @abstractmethod
    async def post_reply(self, channel: str, text: str, thread_ts: str) -> None:
        """Post `text` into the thread."""
