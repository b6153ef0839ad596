import pytest

from garcon.services.GeminiService.error_classification import (
    ErrorClassification,
    GenerationErrorInfo,
    classify_generation_error,
    describe_generation_error,
)


class FakeAPIError(Exception):
    def __init__(self, code, status, message) -> None:
        super().__init__(message)
        self.code = code
        self.status = status
        self.message = message


@pytest.mark.parametrize(
    "info, expected",
    [
        (GenerationErrorInfo(429, "RESOURCE_EXHAUSTED", "quota"), ErrorClassification.TRANSIENT),
        (GenerationErrorInfo(503, None, "unavailable"), ErrorClassification.TRANSIENT),
        (GenerationErrorInfo(None, "unavailable", ""), ErrorClassification.TRANSIENT),
        (
            GenerationErrorInfo(None, None, "The model is overloaded. Please try again later."),
            ErrorClassification.TRANSIENT,
        ),
        (GenerationErrorInfo(400, "INVALID_ARGUMENT", "bad"), ErrorClassification.NON_TRANSIENT),
        (GenerationErrorInfo(500, "INTERNAL", "oops"), ErrorClassification.NON_TRANSIENT),
        (GenerationErrorInfo(None, None, "connection reset"), ErrorClassification.NON_TRANSIENT),
    ],
)
def test_classify_generation_error(
    info: GenerationErrorInfo, expected: ErrorClassification
) -> None:
    assert classify_generation_error(info) is expected


def test_describe_reads_api_error_fields() -> None:
    info = describe_generation_error(FakeAPIError(503, "UNAVAILABLE", "busy"))

    assert info == GenerationErrorInfo(503, "UNAVAILABLE", "busy")


def test_describe_falls_back_to_status_code_attribute() -> None:
    error = RuntimeError("rate limited")
    error.status_code = 429  # type: ignore[attr-defined]

    assert describe_generation_error(error) == GenerationErrorInfo(
        429, None, "rate limited"
    )


def test_describe_plain_exception() -> None:
    assert describe_generation_error(ValueError("boom")) == GenerationErrorInfo(
        None, None, "boom"
    )
