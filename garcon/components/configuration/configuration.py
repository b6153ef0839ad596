import os
from collections.abc import Mapping
from typing import Any, TypeVar, cast

from garcon.components.configuration.configuration_interface import (
    ConfigurationError,
    ConfigurationInterface,
)

T = TypeVar("T")

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class Configuration(ConfigurationInterface):
    """
    Environment-backed settings.

    Values come from the process environment (a `.env` file is loaded when the
    components module is imported). A mapping can be injected instead.
    """

    def __init__(
        self,
        env: str,
        source: Mapping[str, str] | None = None,
    ) -> None:
        self.env = env
        self._source: Mapping[str, str] = os.environ if source is None else source

    def _raw(self, key: str) -> str | None:
        value = self._source.get(key)
        if value is None:
            return None
        value = value.strip()
        return value or None

    def get_configuration(self, key: str, cast_type: type[T], default: Any = ...) -> T:
        raw = self._raw(key)
        if raw is None:
            if default is ...:
                raise ConfigurationError(f"Missing required environment variable: {key}")
            return cast(T, default)

        try:
            if cast_type is bool:
                lowered = raw.lower()
                if lowered in _TRUTHY:
                    return cast(T, True)
                if lowered in _FALSY:
                    return cast(T, False)
                raise ValueError(raw)
            if cast_type is list:
                return cast(T, [item.strip() for item in raw.split(",") if item.strip()])
            return cast_type(raw)  # type: ignore[call-arg]
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"Invalid value for {key}: {raw!r} is not a valid {cast_type.__name__}"
            ) from exc

    def validate_required(self, keys: list[str]) -> None:
        missing = [key for key in keys if self._raw(key) is None]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
