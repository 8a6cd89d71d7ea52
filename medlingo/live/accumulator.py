# medlingo/live/accumulator.py
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, List, Optional

from medlingo.asr.base import Recognizer, RecognizerError
from medlingo.contracts import RecognitionEvent, TranscriptState
from medlingo.nlp.enhancer import TranscriptEnhancer

logger = logging.getLogger(__name__)


class ListenState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"


def merge_event(state: TranscriptState, event: RecognitionEvent) -> TranscriptState:
    """
    Fold one recognizer event into the transcript.
    Finals are appended in delivery order; interim is rebuilt and the last interim wins.
    """
    finalized = state.finalized_text
    interim = ""
    for seg in event.segments:
        if seg.is_final:
            finalized += seg.text + " "
        else:
            interim = seg.text
    return TranscriptState(finalized_text=finalized, interim_text=interim)


class TranscriptAccumulator:
    def __init__(
        self,
        *,
        enhancer: Optional[TranscriptEnhancer] = None,
        on_update: Optional[Callable[[str, List[str]], None]] = None,  # (display, terms)
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.enhancer = enhancer or TranscriptEnhancer()
        self.on_update = on_update
        self.on_error = on_error
        self.state = ListenState.IDLE
        self.transcript = TranscriptState()
        self.display_text = ""
        self.terms: List[str] = []
        # guards state transitions between the dictation worker and the caller
        self._lock = threading.RLock()

    @property
    def listening(self) -> bool:
        return self.state == ListenState.LISTENING

    def _publish(self) -> None:
        raw = self.transcript.finalized_text + self.transcript.interim_text
        self.display_text = self.enhancer.enhance(raw)
        self.terms = self.enhancer.detect_terms(self.display_text)
        if self.on_update is not None:
            self.on_update(self.display_text, list(self.terms))

    def start(self, current_text: str = "") -> None:
        seed = current_text or ""
        if seed and not seed[-1].isspace():
            seed += " "
        with self._lock:
            self.transcript = TranscriptState(finalized_text=seed, interim_text="")
            self.state = ListenState.LISTENING
        logger.info("listen_start", extra={"seed_chars": len(seed)})

    def handle(self, event: RecognitionEvent) -> None:
        with self._lock:
            if not self.listening:
                logger.debug("event_ignored_idle", extra={"segments": len(event.segments)})
                return
            self.transcript = merge_event(self.transcript, event)
            self._publish()

    def stop(self) -> None:
        with self._lock:
            was_listening = self.listening
            self.state = ListenState.IDLE
            self.transcript = TranscriptState(finalized_text=self.transcript.finalized_text, interim_text="")
            if was_listening:
                logger.info("listen_stop", extra={"finalized_chars": len(self.transcript.finalized_text)})
                self._publish()

    def edit(self, text: str) -> bool:
        """Apply a manual edit of the displayed text. Rejected while listening."""
        with self._lock:
            if self.listening:
                return False
            self.transcript = TranscriptState(finalized_text=text or "", interim_text="")
            self._publish()
            return True

    def fail(self, message: str) -> None:
        logger.warning("recognizer_error", extra={"detail": message})
        self.stop()
        if self.on_error is not None:
            self.on_error(message)

    def run(self, recognizer: Recognizer, lang_tag: str, current_text: str = "") -> None:
        """Drive one dictation pass: start, reduce every event, stop."""
        self.start(current_text)
        try:
            recognizer.start(lang_tag)
            for event in recognizer.events():
                if not self.listening:
                    break
                self.handle(event)
        except RecognizerError as e:
            self.fail(str(e))
        finally:
            recognizer.stop()
            self.stop()
