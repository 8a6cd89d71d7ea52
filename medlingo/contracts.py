from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class RecognitionSegment:
    text: str
    is_final: bool = False


@dataclass(frozen=True)
class RecognitionEvent:
    """
    One batch of recognizer output. Only new or updated segments are delivered;
    segments finalized by earlier events are not repeated.
    """
    segments: Tuple[RecognitionSegment, ...] = ()


@dataclass(frozen=True)
class TranscriptState:
    finalized_text: str = ""  # append-only while listening
    interim_text: str = ""    # rebuilt on every event


@dataclass(frozen=True)
class TranslationRequest:
    text: str
    # speech codes from the language table, e.g. "en-US"
    source_lang: str = "en-US"
    target_lang: str = "es-ES"


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    UNKNOWN_LANGUAGE = "unknown_language"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    PERMISSION_DENIED = "permission_denied"
    MODEL_UNAVAILABLE = "model_unavailable"
    MALFORMED_RESPONSE = "malformed_response"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class TranslationResult:
    source_text: str
    translated_text: str = ""
    provider: str = ""
    error_kind: Optional[ErrorKind] = None
    error_message: str = ""

    @property
    def ok(self) -> bool:
        return self.error_kind is None
