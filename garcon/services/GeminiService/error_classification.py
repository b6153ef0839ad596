"""
Classification of Gemini API failures.

The fallback policy only needs one bit of information about a failure: whether
the provider was out of capacity (try the next model) or not (give up). The
SDK's exception shapes are flattened into `GenerationErrorInfo` first so the
decision itself can be tested without the SDK.
"""

from dataclasses import dataclass
from enum import Enum

TRANSIENT_STATUS_CODES = frozenset({429, 503})
TRANSIENT_STATUSES = frozenset({"RESOURCE_EXHAUSTED", "UNAVAILABLE"})


class ErrorClassification(Enum):
    TRANSIENT = "transient"
    NON_TRANSIENT = "non_transient"


@dataclass(frozen=True)
class GenerationErrorInfo:
    status_code: int | None
    status: str | None
    message: str


def describe_generation_error(error: BaseException) -> GenerationErrorInfo:
    """Normalize a provider exception (google.genai.errors.APIError or other)."""
    code = getattr(error, "code", None)
    if not isinstance(code, int) or isinstance(code, bool):
        code = getattr(error, "status_code", None)
    status = getattr(error, "status", None)
    message = getattr(error, "message", None) or str(error)
    return GenerationErrorInfo(
        status_code=code if isinstance(code, int) else None,
        status=status if isinstance(status, str) else None,
        message=str(message),
    )


def classify_generation_error(info: GenerationErrorInfo) -> ErrorClassification:
    if info.status_code in TRANSIENT_STATUS_CODES:
        return ErrorClassification.TRANSIENT
    if info.status and info.status.upper() in TRANSIENT_STATUSES:
        return ErrorClassification.TRANSIENT
    if "overloaded" in info.message.lower():
        return ErrorClassification.TRANSIENT
    return ErrorClassification.NON_TRANSIENT
