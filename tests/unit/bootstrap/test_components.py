import pytest
from google import genai
from slack_sdk.web.async_client import AsyncWebClient

from garcon.bootstrap import components
from garcon.components.configuration.configuration_interface import (
    ConfigurationError,
    ConfigurationInterface,
)
from garcon.components.logger.logger_interface import LoggerInterface


@pytest.fixture(autouse=True)
def reset_components_registry():
    components.ComponentsMeta._instances.clear()
    yield
    components.ComponentsMeta._instances.clear()


@pytest.fixture
def required_env(monkeypatch):
    monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-test")
    monkeypatch.setenv("SLACK_SIGNING_SECRET", "secret")
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")


@pytest.mark.unit
class TestComponents:
    def test_registers_clients(self, required_env) -> None:
        registry = components.Components("development")

        assert isinstance(registry.get_component(AsyncWebClient), AsyncWebClient)
        assert isinstance(registry.get_component(genai.Client), genai.Client)
        assert registry.get_component(ConfigurationInterface) is not None
        assert registry.get_component(LoggerInterface) is not None

    def test_is_a_singleton_per_environment(self, required_env) -> None:
        assert components.Components("staging") is components.Components("staging")

    def test_missing_required_settings_raise(self, monkeypatch) -> None:
        monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-test")
        monkeypatch.delenv("SLACK_SIGNING_SECRET", raising=False)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        with pytest.raises(ConfigurationError) as exc_info:
            components.Components("production")

        assert "SLACK_SIGNING_SECRET, GEMINI_API_KEY" in str(exc_info.value)

    def test_invalid_environment_raises(self, required_env) -> None:
        with pytest.raises(ValueError, match="Invalid environment"):
            components.Components("qa")

    def test_unknown_component_raises(self, required_env) -> None:
        registry = components.Components("development")

        with pytest.raises(ValueError, match="not found"):
            registry.get_component(dict)


@pytest.mark.unit
class TestComponentsOTELEnvVarsValidation:
    """Test suite for OpenTelemetry/Langfuse environment variables validation."""

    @pytest.fixture(autouse=True)
    def clear_tracing_env(self, monkeypatch):
        for name in (
            "OTEL_EXPORTER_OTLP_ENDPOINT",
            "OTEL_EXPORTER_OTLP_HEADERS",
            "LANGFUSE_PUBLIC_KEY",
            "LANGFUSE_SECRET_KEY",
            "LANGFUSE_BASE_URL",
        ):
            monkeypatch.delenv(name, raising=False)

    def test_otel_validation_raises_error_when_endpoint_not_set(self) -> None:
        with pytest.raises(RuntimeError) as exc_info:
            components._validate_otel_env_vars()

        assert "OTEL_EXPORTER_OTLP_ENDPOINT" in str(exc_info.value)
        assert "not set or is empty" in str(exc_info.value)

    def test_otel_validation_raises_error_when_headers_not_set(
        self, monkeypatch
    ) -> None:
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "https://example.com/otlp")

        with pytest.raises(RuntimeError) as exc_info:
            components._validate_otel_env_vars()

        assert "OTEL_EXPORTER_OTLP_HEADERS" in str(exc_info.value)

    def test_otel_validation_succeeds_with_direct_headers(self, monkeypatch) -> None:
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "https://example.com/otlp")
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_HEADERS", "Authorization=Basic dGVzdA==")

        components._validate_otel_env_vars()

    def test_otel_validation_succeeds_with_langfuse_keys(self, monkeypatch) -> None:
        monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk-test")
        monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk-test")
        monkeypatch.setenv("LANGFUSE_BASE_URL", "https://cloud.langfuse.com")

        components._validate_otel_env_vars()

    def test_tracing_disabled_flag(self, monkeypatch) -> None:
        monkeypatch.setenv("LANGFUSE_TRACING_ENABLED", "false")
        assert components._is_tracing_disabled() is True

        monkeypatch.setenv("LANGFUSE_TRACING_ENABLED", "true")
        assert components._is_tracing_disabled() is False
