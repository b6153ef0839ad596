import os
import sys
from threading import Lock
from typing import Any, TypeVar, cast

from dotenv import load_dotenv
from google import genai
from openinference.instrumentation.google_genai import GoogleGenAIInstrumentor
from slack_sdk.web.async_client import AsyncWebClient

from garcon.components.configuration.configuration import Configuration
from garcon.components.configuration.configuration_interface import (
    ConfigurationInterface,
)
from garcon.components.logger.logger import Logger
from garcon.components.logger.logger_interface import LoggerInterface

load_dotenv()

REQUIRED_SETTINGS = ["SLACK_BOT_TOKEN", "SLACK_SIGNING_SECRET", "GEMINI_API_KEY"]


def _is_test_environment() -> bool:
    """
    Check if we are running in a test environment.

    Returns:
        True if running under pytest or if TESTING env var is set, False otherwise.
    """
    if any("pytest" in arg for arg in sys.argv):
        return True

    if os.getenv("TESTING", "").lower() in ("true", "1", "yes"):
        return True

    return False


def _is_tracing_disabled() -> bool:
    return os.getenv("LANGFUSE_TRACING_ENABLED", "").strip().lower() in (
        "false",
        "0",
        "no",
    )


def _validate_otel_env_vars() -> None:
    """
    Validate the environment for Gemini call tracing.

    Two setups are accepted:

    1.  **Langfuse:** `LANGFUSE_PUBLIC_KEY`, `LANGFUSE_SECRET_KEY` and
        `LANGFUSE_BASE_URL` are all set.

    2.  **Plain OTLP export:** `OTEL_EXPORTER_OTLP_ENDPOINT` and
        `OTEL_EXPORTER_OTLP_HEADERS` are both set.

    Raises:
        RuntimeError: If neither setup is complete.
    """
    langfuse_public_key = os.getenv("LANGFUSE_PUBLIC_KEY", "").strip()
    langfuse_secret_key = os.getenv("LANGFUSE_SECRET_KEY", "").strip()
    langfuse_base_url = os.getenv("LANGFUSE_BASE_URL", "").strip()

    if langfuse_public_key and langfuse_secret_key and langfuse_base_url:
        return

    otel_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "").strip()
    otel_headers = os.getenv("OTEL_EXPORTER_OTLP_HEADERS", "").strip()

    if not otel_endpoint:
        raise RuntimeError(
            "OTEL_EXPORTER_OTLP_ENDPOINT environment variable is not set or is empty. "
            "Set it, provide LANGFUSE_PUBLIC_KEY/LANGFUSE_SECRET_KEY/LANGFUSE_BASE_URL, "
            "or disable tracing with LANGFUSE_TRACING_ENABLED=false."
        )

    if not otel_headers:
        raise RuntimeError(
            "OTEL_EXPORTER_OTLP_HEADERS environment variable is not set or is empty. "
            "Set it (e.g. 'Authorization=Basic <base64_credentials>') or disable "
            "tracing with LANGFUSE_TRACING_ENABLED=false."
        )


if not _is_test_environment() and not _is_tracing_disabled():
    _validate_otel_env_vars()

    GoogleGenAIInstrumentor().instrument()

T = TypeVar("T")


class ComponentsMeta(type):
    _instances: dict[tuple[type, str], "Components"] = {}
    _lock: Lock = Lock()

    def __call__(cls, *args, **kwargs):
        env = args[0] if args else kwargs.get("env")
        if env is None:
            raise ValueError("Environment must be provided")

        key = (cls, str(env))
        with cls._lock:
            if key not in cls._instances:
                instance = super().__call__(*args, **kwargs)
                cls._instances[key] = instance
        return cls._instances[key]


class Components(metaclass=ComponentsMeta):
    def __init__(self, env: str) -> None:
        self.__env: str = env
        self.__components: dict[type[Any], Any] = self.__bootstrap_components()

    def __bootstrap_components(self) -> dict[type[Any], Any]:
        if self.__env in {"development", "staging", "production"}:
            return self.__get_components()

        raise ValueError(f"Invalid environment: {self.__env}")

    def __get_components(self) -> dict[type[Any], Any]:
        configuration: ConfigurationInterface = Configuration(self.__env)
        configuration.validate_required(REQUIRED_SETTINGS)

        logger: LoggerInterface = Logger(
            log_format=configuration.get_configuration("LOG_FORMAT", str, default="text"),
            log_level=configuration.get_configuration("LOG_LEVEL", str, default="INFO"),
        )

        slack_client = AsyncWebClient(
            token=configuration.get_configuration("SLACK_BOT_TOKEN", str)
        )
        genai_client = genai.Client(
            api_key=configuration.get_configuration("GEMINI_API_KEY", str)
        )

        components: dict[type[Any], Any] = {
            ConfigurationInterface: configuration,
            LoggerInterface: logger,
            AsyncWebClient: slack_client,
            genai.Client: genai_client,
        }

        logger.get_logger("Components").info(
            "Components initialized for environment '%s'", self.__env
        )
        return components

    def get_component(self, component_name: type[T]) -> T:
        if component_name not in self.__components:
            raise ValueError(f"Component {component_name} not found")

        return cast(T, self.__components[component_name])

    def get_env(self) -> str:
        return self.__env
