from __future__ import annotations

import contextlib
import logging
import threading
from typing import Iterable, Iterator, Optional

import numpy as np

from medlingo.asr.base import Recognizer, RecognizerError
from medlingo.contracts import RecognitionEvent, RecognitionSegment
from medlingo.languages import UnknownLanguageError, whisper_language

logger = logging.getLogger(__name__)


def pcm16_to_float32(pcm16: bytes) -> np.ndarray:
    return np.frombuffer(pcm16, dtype=np.int16).astype(np.float32) / 32768.0


def pcm16_rms(pcm16: bytes) -> float:
    """Return RMS energy for little-endian int16 PCM bytes."""
    x = np.frombuffer(pcm16, dtype=np.int16).astype(np.float32)
    if not x.size:
        return 0.0
    return float(np.sqrt(np.mean(x * x)))


class WhisperStreamRecognizer(Recognizer):
    """
    Streaming recognizer on top of faster-whisper.

    Mono PCM16 chunks are gated by RMS energy. While speech continues the
    growing utterance is re-transcribed and reported as an interim segment;
    after `silence_chunks` quiet chunks (or when the audio ends) the utterance
    is transcribed once more and reported as final.
    An utterance that reaches `max_utter_sec` is cut and reported as final
    even while speech continues.
    """

    def __init__(
        self,
        *,
        model_size: str = "base",
        device: str = "cpu",
        compute_type: str = "int8",
        sample_rate: int = 16000,
        chunk_sec: float = 0.5,
        rms_threshold: float = 250.0,
        silence_chunks: int = 2,
        max_utter_sec: Optional[float] = 6.0,
        input_device: Optional[int] = None,
        chunk_source: Optional[Iterable[bytes]] = None,
    ) -> None:
        if sample_rate <= 0:
            raise ValueError("sample_rate must be > 0")
        if chunk_sec <= 0:
            raise ValueError("chunk_sec must be > 0")
        if silence_chunks <= 0:
            raise ValueError("silence_chunks must be > 0")
        if rms_threshold < 0:
            raise ValueError("rms_threshold must be >= 0")
        if max_utter_sec is not None and max_utter_sec <= 0:
            raise ValueError("max_utter_sec must be > 0 when set")

        self.model_size = model_size
        self.device = device
        self.compute_type = compute_type
        self.sample_rate = int(sample_rate)
        self.chunk_sec = float(chunk_sec)
        self.rms_threshold = float(rms_threshold)
        self.silence_chunks = int(silence_chunks)
        self.max_utter_sec = None if max_utter_sec is None else float(max_utter_sec)
        self.input_device = input_device
        self.chunk_source = chunk_source
        self.language: Optional[str] = None
        self._model = None
        self._started = False
        self._stop = threading.Event()

    def start(self, lang_tag: str) -> None:
        try:
            self.language = whisper_language(lang_tag)
        except UnknownLanguageError as e:
            raise RecognizerError(str(e)) from e
        self._stop.clear()
        self._started = True

    def stop(self) -> None:
        self._stop.set()
        self._started = False

    def _get_model(self):
        if self._model is None:
            try:
                from faster_whisper import WhisperModel

                self._model = WhisperModel(
                    self.model_size,
                    device=self.device,
                    compute_type=self.compute_type,
                )
            except Exception as e:
                raise RecognizerError(f"Failed to load faster-whisper model {self.model_size!r}: {e}") from e
        return self._model

    def _transcribe(self, pcm16: bytes) -> str:
        model = self._get_model()
        try:
            segments, _info = model.transcribe(
                pcm16_to_float32(pcm16),
                language=self.language,
                beam_size=1,
                vad_filter=False,
                condition_on_previous_text=False,
            )
            texts = [(s.text or "").strip() for s in segments]
        except Exception as e:
            raise RecognizerError(f"Transcription failed: {e}") from e
        return " ".join(t for t in texts if t)

    @contextlib.contextmanager
    def _open_stream(self):
        try:
            import sounddevice as sd
        except ImportError as e:
            raise RecognizerError(
                "sounddevice is not installed. Install with: python -m pip install sounddevice"
            ) from e

        try:
            stream = sd.RawInputStream(
                samplerate=self.sample_rate,
                channels=1,
                dtype="int16",
                device=self.input_device,
                blocksize=0,  # let PortAudio choose
            )
        except Exception as e:
            raise RecognizerError(
                "Failed to open microphone stream. Check the input device and mic permissions."
            ) from e

        try:
            with stream:
                yield stream
        except RecognizerError:
            raise
        except Exception as e:
            # start/stop on a vanished device raise PortAudioError
            raise RecognizerError(f"Microphone stream failed: {e}") from e

    def _mic_chunks(self) -> Iterator[bytes]:
        frames = max(1, int(round(self.chunk_sec * self.sample_rate)))
        with self._open_stream() as stream:
            while not self._stop.is_set():
                try:
                    data, _overflowed = stream.read(frames)
                except Exception as e:
                    raise RecognizerError(f"Microphone read failed: {e}") from e
                yield bytes(data)

    def events(self) -> Iterator[RecognitionEvent]:
        if not self._started:
            raise RecognizerError("recognizer not started")
        chunks = self.chunk_source if self.chunk_source is not None else self._mic_chunks()

        # PCM16 mono: two bytes per sample
        max_bytes = None if self.max_utter_sec is None else int(self.max_utter_sec * self.sample_rate) * 2
        utterance = bytearray()
        quiet = 0
        for pcm16 in chunks:
            if self._stop.is_set():
                return
            if pcm16_rms(pcm16) >= self.rms_threshold:
                utterance.extend(pcm16)
                quiet = 0
                text = self._transcribe(bytes(utterance))
                if max_bytes is not None and len(utterance) >= max_bytes:
                    logger.debug("utterance_cut", extra={"bytes": len(utterance), "chars": len(text)})
                    utterance.clear()
                    yield RecognitionEvent((RecognitionSegment(text, is_final=True),) if text else ())
                    continue
                if text:
                    yield RecognitionEvent((RecognitionSegment(text, is_final=False),))
                continue

            if not utterance:
                continue
            quiet += 1
            if quiet >= self.silence_chunks:
                text = self._transcribe(bytes(utterance))
                logger.debug("utterance_final", extra={"bytes": len(utterance), "chars": len(text)})
                utterance.clear()
                quiet = 0
                # an empty final still clears the interim on the consumer side
                yield RecognitionEvent((RecognitionSegment(text, is_final=True),) if text else ())

        if utterance and not self._stop.is_set():
            text = self._transcribe(bytes(utterance))
            if text:
                yield RecognitionEvent((RecognitionSegment(text, is_final=True),))
