from __future__ import annotations

from medlingo.app.diagnostics import hint_for_error_kind, hint_for_recognizer_error, summarize_exception
from medlingo.contracts import ErrorKind


def test_summarize_exception_picks_last_meaningful_line() -> None:
    detail = (
        "Traceback (most recent call last):\n"
        '  File "x.py", line 1, in <module>\n'
        "    boom()\n"
        "RecognizerError: Failed to open microphone stream."
    )
    assert summarize_exception(detail) == "RecognizerError: Failed to open microphone stream."


def test_summarize_exception_truncates_long_line() -> None:
    out = summarize_exception("ValueError: " + ("x" * 500), max_len=60)
    assert out.startswith("ValueError: ")
    assert out.endswith("...")
    assert len(out) <= 60


def test_summarize_exception_empty() -> None:
    assert summarize_exception("") == "Unknown error."


def test_recognizer_hints() -> None:
    assert "--device" in hint_for_recognizer_error("Failed to open microphone stream.")
    assert "sounddevice" in hint_for_recognizer_error("sounddevice is not installed.")
    assert "keep typing" in hint_for_recognizer_error("something odd")


def test_error_kind_hints() -> None:
    assert "GEMINI_API_KEY" in hint_for_error_kind(ErrorKind.PERMISSION_DENIED)
    assert hint_for_error_kind(ErrorKind.RATE_LIMIT_EXCEEDED)
    assert hint_for_error_kind(None) == ""
