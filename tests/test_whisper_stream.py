from __future__ import annotations

import sys
import types
from dataclasses import dataclass

import numpy as np
import pytest

from medlingo.asr.base import RecognizerError
from medlingo.app.session import TranslationSession
from medlingo.asr.whisper_stream import WhisperStreamRecognizer, pcm16_rms, pcm16_to_float32

LOUD = np.full(800, 4000, dtype=np.int16).tobytes()
QUIET = np.zeros(800, dtype=np.int16).tobytes()


@dataclass(frozen=True)
class _Seg:
    text: str


class _FakeModel:
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[dict] = []
        self.fail = fail

    def transcribe(self, audio, **kwargs):
        if self.fail:
            raise RuntimeError("decoder exploded")
        self.calls.append({"samples": len(audio), **kwargs})
        # one word per loud chunk so interim text grows with the utterance
        return [_Seg(" ".join(["word"] * (len(audio) // 800)))], None


def _recognizer(chunks, model: _FakeModel, **kwargs) -> WhisperStreamRecognizer:
    rec = WhisperStreamRecognizer(chunk_source=chunks, rms_threshold=250.0, **kwargs)
    rec._model = model
    return rec


def _flatten(events):
    return [[(s.text, s.is_final) for s in ev.segments] for ev in events]


def test_pcm16_helpers() -> None:
    assert pcm16_rms(b"") == 0.0
    assert pcm16_rms(LOUD) == pytest.approx(4000.0)
    x = pcm16_to_float32(np.array([16384, -32768], dtype=np.int16).tobytes())
    assert x.dtype == np.float32
    assert x.tolist() == [0.5, -1.0]


def test_interim_while_speaking_then_final_after_silence() -> None:
    model = _FakeModel()
    rec = _recognizer([QUIET, LOUD, LOUD, QUIET, QUIET, QUIET], model, silence_chunks=2)
    rec.start("en-US")
    events = list(rec.events())
    assert _flatten(events) == [
        [("word", False)],
        [("word word", False)],
        [("word word", True)],
    ]
    assert model.calls[0]["language"] == "en"


def test_pending_utterance_is_finalized_when_audio_ends() -> None:
    rec = _recognizer([LOUD], _FakeModel(), silence_chunks=3)
    rec.start("es-ES")
    assert _flatten(rec.events()) == [[("word", False)], [("word", True)]]
    assert rec.language == "es"


def test_stop_ends_the_stream() -> None:
    rec = _recognizer([LOUD, LOUD, LOUD], _FakeModel(), silence_chunks=2)
    rec.start("en-US")
    it = rec.events()
    first = next(it)
    assert first.segments[0].is_final is False
    rec.stop()
    assert list(it) == []


def test_events_before_start_raise() -> None:
    rec = _recognizer([LOUD], _FakeModel())
    with pytest.raises(RecognizerError):
        next(rec.events())


def test_unknown_language_raises_recognizer_error() -> None:
    rec = _recognizer([LOUD], _FakeModel())
    with pytest.raises(RecognizerError):
        rec.start("xx-XX")


def test_model_failure_becomes_recognizer_error() -> None:
    rec = _recognizer([LOUD], _FakeModel(fail=True))
    rec.start("en-US")
    with pytest.raises(RecognizerError):
        list(rec.events())


@pytest.mark.parametrize("kwargs", [{"sample_rate": 0}, {"chunk_sec": 0}, {"silence_chunks": 0}, {"rms_threshold": -1}, {"max_utter_sec": 0}])
def test_invalid_settings_raise(kwargs) -> None:
    with pytest.raises(ValueError):
        WhisperStreamRecognizer(**kwargs)


def test_continuous_speech_is_cut_at_max_utterance_length() -> None:
    # 800 samples at 16 kHz are 0.05 s, so 0.15 s holds three loud chunks
    model = _FakeModel()
    rec = _recognizer([LOUD] * 7, model, silence_chunks=2, max_utter_sec=0.15)
    rec.start("en-US")
    assert _flatten(rec.events()) == [
        [("word", False)],
        [("word word", False)],
        [("word word word", True)],
        [("word", False)],
        [("word word", False)],
        [("word word word", True)],
        [("word", False)],
        [("word", True)],
    ]
    assert max(c["samples"] for c in model.calls) == 2400


def test_long_noise_floor_keeps_producing_finals() -> None:
    model = _FakeModel()
    rec = _recognizer([LOUD] * 200, model, max_utter_sec=0.5)
    rec.start("en-US")
    events = list(rec.events())
    finals = [s for ev in events for s in ev.segments if s.is_final]
    assert len(finals) == 20
    assert max(c["samples"] for c in model.calls) == 8000


def test_max_utterance_length_can_be_disabled() -> None:
    model = _FakeModel()
    rec = _recognizer([LOUD] * 5, model, max_utter_sec=None)
    rec.start("en-US")
    events = _flatten(rec.events())
    assert events[-1] == [("word word word word word", True)]
    assert sum(1 for ev in events if ev[0][1]) == 1


class _PortAudioError(Exception):
    pass


def _fake_sounddevice(*, fail_start: bool = False, fail_read: bool = False):
    class _RawInputStream:
        def __init__(self, **kwargs) -> None:
            self.kwargs = kwargs

        def __enter__(self):
            if fail_start:
                raise _PortAudioError("Error starting stream: Device unavailable")
            return self

        def __exit__(self, *exc) -> bool:
            return False

        def read(self, frames):
            if fail_read:
                raise _PortAudioError("Input overflowed / device unplugged")
            return LOUD, False

    return types.SimpleNamespace(RawInputStream=_RawInputStream)


@pytest.mark.parametrize("flags", [{"fail_start": True}, {"fail_read": True}])
def test_mic_stream_failures_become_recognizer_errors(monkeypatch, flags) -> None:
    monkeypatch.setitem(sys.modules, "sounddevice", _fake_sounddevice(**flags))
    rec = WhisperStreamRecognizer()
    rec._model = _FakeModel()
    rec.start("en-US")
    with pytest.raises(RecognizerError):
        list(rec.events())


class _Translator:
    name = "fake"

    def translate(self, req):
        raise AssertionError("not called")


def test_unplugged_mic_is_reported_on_the_session(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "sounddevice", _fake_sounddevice(fail_read=True))
    rec = WhisperStreamRecognizer()
    rec._model = _FakeModel()
    session = TranslationSession(translator=_Translator())

    session.listen(rec)

    assert session.listening is False
    assert session.last_error is not None
    assert session.last_error.source == "recognizer"
    assert "device unplugged" in session.last_error.message
