from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from medlingo.contracts import ErrorKind, TranslationRequest, TranslationResult
from medlingo.languages import UnknownLanguageError, display_name, resolve_model_code

from .base import ModelTransport, Translator
from .errors import USER_MESSAGES, TranslationError, TransportFailure, classify_failure
from .rate_limit import RateLimiter

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    "Translate the following text from {source} to {target}.\n"
    "This may contain medical terminology, so ensure accuracy for medical terms.\n"
    "Provide only the translation without any additional text or explanations.\n"
    "\n"
    'Text: "{text}"\n'
    "\n"
    "Translation:"
)


def build_prompt(text: str, source_name: str, target_name: str) -> str:
    return PROMPT_TEMPLATE.format(source=source_name, target=target_name, text=text)


def extract_text(payload: Any) -> str:
    """Return candidates[0].content.parts[0].text, trimmed."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise TranslationError(ErrorKind.MALFORMED_RESPONSE, USER_MESSAGES[ErrorKind.MALFORMED_RESPONSE]) from e
    if not isinstance(text, str) or not text.strip():
        raise TranslationError(ErrorKind.MALFORMED_RESPONSE, USER_MESSAGES[ErrorKind.MALFORMED_RESPONSE])
    return text.strip()


class TranslationClient(Translator):
    """
    Rate-limited translation through a remote generative model.

    Every call that passes input validation takes exactly one limiter slot,
    whatever happens afterwards. There is no retry; callers issue a new
    translate() and go through the gate again.
    """

    def __init__(
        self,
        transport: ModelTransport,
        *,
        limiter: Optional[RateLimiter] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.transport = transport
        self.limiter = limiter or RateLimiter()
        self.generation_config = dict(generation_config or {"temperature": 0.0, "topP": 1.0})

    @property
    def name(self) -> str:
        return self.transport.name

    def translate(self, req: TranslationRequest) -> TranslationResult:
        started = time.perf_counter()
        try:
            translated = self._translate(req)
        except TranslationError as e:
            logger.warning(
                "translate_failed",
                extra={
                    "kind": e.kind.value,
                    "detail": e.message,
                    "source_lang": req.source_lang,
                    "target_lang": req.target_lang,
                    "chars": len(req.text or ""),
                },
            )
            return TranslationResult(
                source_text=req.text,
                provider=self.name,
                error_kind=e.kind,
                error_message=e.message,
            )
        logger.info(
            "translate_done",
            extra={
                "source_lang": req.source_lang,
                "target_lang": req.target_lang,
                "chars": len(req.text),
                "ms": round((time.perf_counter() - started) * 1000.0, 2),
            },
        )
        return TranslationResult(source_text=req.text, translated_text=translated, provider=self.name)

    def _translate(self, req: TranslationRequest) -> str:
        text = (req.text or "").strip()
        if not text:
            raise TranslationError(ErrorKind.INVALID_INPUT, USER_MESSAGES[ErrorKind.INVALID_INPUT])

        self.limiter.admit()

        try:
            source_name = display_name(resolve_model_code(req.source_lang))
            target_name = display_name(resolve_model_code(req.target_lang))
        except UnknownLanguageError as e:
            raise TranslationError(ErrorKind.UNKNOWN_LANGUAGE, str(e)) from e

        prompt = build_prompt(text, source_name, target_name)
        try:
            payload = self.transport.generate(prompt, self.generation_config)
        except TransportFailure as e:
            raise classify_failure(e) from e
        return extract_text(payload)
