from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class Language:
    speech_code: str   # recognizer tag, e.g. "en-US"
    display_name: str  # used in model prompts
    model_code: str    # ISO 639-1


SUPPORTED_LANGUAGES: Tuple[Language, ...] = (
    Language("en-US", "English (US)", "en"),
    Language("es-ES", "Spanish", "es"),
    Language("zh-CN", "Chinese (Mandarin)", "zh"),
    Language("hi-IN", "Hindi", "hi"),
    Language("ar-SA", "Arabic", "ar"),
    Language("fr-FR", "French", "fr"),
    Language("ru-RU", "Russian", "ru"),
    Language("pt-BR", "Portuguese", "pt"),
    Language("ja-JP", "Japanese", "ja"),
    Language("ko-KR", "Korean", "ko"),
)

_BY_SPEECH: Dict[str, Language] = {lang.speech_code.lower(): lang for lang in SUPPORTED_LANGUAGES}
_BY_MODEL: Dict[str, Language] = {lang.model_code: lang for lang in SUPPORTED_LANGUAGES}


class UnknownLanguageError(LookupError):
    pass


def resolve_model_code(speech_code: str) -> str:
    lang = _BY_SPEECH.get((speech_code or "").strip().lower())
    if lang is None:
        raise UnknownLanguageError(f"Unsupported language code: {speech_code!r}")
    return lang.model_code


def display_name(model_code: str) -> str:
    lang = _BY_MODEL.get((model_code or "").strip().lower())
    if lang is None:
        raise UnknownLanguageError(f"Unsupported language code: {model_code!r}")
    return lang.display_name


def whisper_language(speech_code: str) -> str:
    # faster-whisper takes the bare ISO 639-1 code
    return resolve_model_code(speech_code)
