from abc import ABC, abstractmethod
from typing import Any, TypeVar

T = TypeVar("T")


class ConfigurationError(Exception):
    """Raised when a required setting is missing or cannot be parsed."""


class ConfigurationInterface(ABC):
    @abstractmethod
    def get_configuration(self, key: str, cast_type: type[T], default: Any = ...) -> T:
        """Return the setting `key` cast to `cast_type`."""

    @abstractmethod
    def validate_required(self, keys: list[str]) -> None:
        """Raise ConfigurationError listing every missing key."""
