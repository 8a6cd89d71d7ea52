from __future__ import annotations

import re
from typing import Optional

from medlingo.contracts import ErrorKind

USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_INPUT: "Nothing to translate. Dictate or type some text first.",
    ErrorKind.UNKNOWN_LANGUAGE: "Unsupported language selected.",
    ErrorKind.RATE_LIMIT_EXCEEDED: (
        "Rate limit exceeded. The free tier allows 15 requests per minute. "
        "Please wait 60 seconds and try again."
    ),
    ErrorKind.PERMISSION_DENIED: (
        "Invalid API key or the key lacks permission. "
        "Get a new key at https://aistudio.google.com/apikey"
    ),
    ErrorKind.MODEL_UNAVAILABLE: "Model not available. Please verify your API key and model name.",
    ErrorKind.MALFORMED_RESPONSE: "The translation service returned an unexpected response.",
    ErrorKind.TRANSPORT_ERROR: "Translation failed",
}


class TranslationError(Exception):
    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class TransportFailure(Exception):
    """Raised by a transport on network errors and non-2xx responses."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


def _has_code(failure: TransportFailure, code: int) -> bool:
    # digits in the text only count when the transport did not report a status
    if failure.status is not None:
        return failure.status == code
    return re.search(rf"\b{code}\b", failure.message or "") is not None


def classify_failure(failure: TransportFailure) -> TranslationError:
    detail = failure.message or ""
    lowered = detail.lower()

    if _has_code(failure, 429) or "quota" in lowered or "resource_exhausted" in lowered:
        kind = ErrorKind.RATE_LIMIT_EXCEEDED
    elif (
        _has_code(failure, 403)
        or "permission_denied" in lowered
        or "permission denied" in lowered
        or "api key" in lowered
    ):
        kind = ErrorKind.PERMISSION_DENIED
    elif _has_code(failure, 404) or "not found" in lowered or "not_found" in lowered:
        kind = ErrorKind.MODEL_UNAVAILABLE
    else:
        return TranslationError(
            ErrorKind.TRANSPORT_ERROR,
            f"{USER_MESSAGES[ErrorKind.TRANSPORT_ERROR]}: {detail or 'unknown error'}",
        )
    return TranslationError(kind, USER_MESSAGES[kind])
