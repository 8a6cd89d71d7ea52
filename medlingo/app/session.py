from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from medlingo.asr.base import Recognizer
from medlingo.contracts import ErrorKind, TranslationRequest, TranslationResult
from medlingo.live.accumulator import TranscriptAccumulator
from medlingo.nlp.enhancer import TextStats, TranscriptEnhancer, text_stats
from medlingo.nlp.translator.base import Translator

logger = logging.getLogger(__name__)


@dataclass
class SessionError:
    source: str  # "translate" | "recognizer"
    message: str
    kind: Optional[ErrorKind] = None


class TranslationSession:
    """
    State behind one dictate-and-translate screen.

    The accumulator owns the live source text; the session keeps the
    translation, the language pair and the in-progress flag. Failures are
    stored in `last_error` and never clear the source text or the previous
    translation.
    """

    def __init__(
        self,
        *,
        translator: Translator,
        enhancer: Optional[TranscriptEnhancer] = None,
        source_lang: str = "en-US",
        target_lang: str = "es-ES",
        on_change: Optional[Callable[["TranslationSession"], None]] = None,
    ) -> None:
        self.translator = translator
        self.enhancer = enhancer or TranscriptEnhancer()
        self.source_lang = source_lang
        self.target_lang = target_lang
        self.on_change = on_change
        self.translated_text = ""
        self.in_progress = False
        self.last_error: Optional[SessionError] = None
        self.accumulator = TranscriptAccumulator(
            enhancer=self.enhancer,
            on_update=self._on_transcript,
            on_error=self._on_recognizer_error,
        )

    @property
    def source_text(self) -> str:
        return self.accumulator.display_text

    @property
    def detected_terms(self) -> List[str]:
        return list(self.accumulator.terms)

    @property
    def listening(self) -> bool:
        return self.accumulator.listening

    @property
    def source_stats(self) -> TextStats:
        return text_stats(self.source_text)

    @property
    def can_translate(self) -> bool:
        return bool(self.source_text.strip()) and not self.in_progress

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def _on_transcript(self, display: str, terms: List[str]) -> None:
        self._changed()

    def _on_recognizer_error(self, message: str) -> None:
        self.last_error = SessionError(source="recognizer", message=message)
        self._changed()

    def set_source_text(self, text: str) -> bool:
        return self.accumulator.edit(text)

    def listen(self, recognizer: Recognizer) -> None:
        """Dictate into the current source text until the recognizer ends or stop_listening()."""
        self.last_error = None
        self.accumulator.run(recognizer, self.source_lang, current_text=self.source_text)

    def stop_listening(self, recognizer: Optional[Recognizer] = None) -> None:
        if recognizer is not None:
            recognizer.stop()
        self.accumulator.stop()

    def swap_languages(self) -> bool:
        """Swap the language pair and the two texts. Never calls the translator."""
        if self.listening or self.in_progress:
            return False
        self.source_lang, self.target_lang = self.target_lang, self.source_lang
        previous_source = self.source_text
        self.accumulator.edit(self.translated_text)
        self.translated_text = previous_source
        logger.info("languages_swapped", extra={"source_lang": self.source_lang, "target_lang": self.target_lang})
        self._changed()
        return True

    def translate(self) -> Optional[TranslationResult]:
        """Run one translation. Returns None when another one is still in flight."""
        if self.in_progress:
            logger.info("translate_refused_in_progress")
            return None
        self.in_progress = True
        self._changed()
        try:
            result = self.translator.translate(
                TranslationRequest(
                    text=self.source_text,
                    source_lang=self.source_lang,
                    target_lang=self.target_lang,
                )
            )
        finally:
            self.in_progress = False

        if result.ok:
            self.translated_text = result.translated_text
            self.last_error = None
        else:
            self.last_error = SessionError(source="translate", message=result.error_message, kind=result.error_kind)
        self._changed()
        return result
