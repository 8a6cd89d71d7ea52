from __future__ import annotations

import _thread
import logging
import threading
from pathlib import Path
from typing import Iterator

from medlingo.app import config as app_config
from medlingo.app import main as app_main
from medlingo.app.main import main
from medlingo.asr.base import Recognizer
from medlingo.contracts import RecognitionEvent, RecognitionSegment


def _isolate(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(app_config, "user_config_dir", lambda appname, appauthor=None: str(tmp_path))
    monkeypatch.setattr(app_config, "load_dotenv", lambda *a, **k: False)


def _close_app_logger() -> None:
    logger = logging.getLogger("medlingo")
    for h in logger.handlers:
        h.close()
    logger.handlers.clear()


def test_main_translates_given_text_with_stub(tmp_path: Path, monkeypatch, capsys) -> None:
    _isolate(tmp_path, monkeypatch)
    try:
        code = main(["--translator", "stub", "--text", "hi pertension and azma", "--status"])
    finally:
        _close_app_logger()
    out = capsys.readouterr().out
    assert code == 0
    assert "Source (en-US): hypertension and asthma" in out
    assert "Medical terms: hypertension, asthma" in out
    assert "[stub] hypertension and asthma" in out
    assert "Requests in last minute: 1/12" in out


def test_main_empty_text_reports_invalid_input(tmp_path: Path, monkeypatch, capsys) -> None:
    _isolate(tmp_path, monkeypatch)
    try:
        code = main(["--translator", "stub", "--text", "   ", "--status"])
    finally:
        _close_app_logger()
    captured = capsys.readouterr()
    assert code == 1
    assert "Nothing to translate" in captured.err
    assert "Requests in last minute: 0/12" in captured.out


def test_main_without_api_key_exits_with_error(tmp_path: Path, monkeypatch, capsys) -> None:
    _isolate(tmp_path, monkeypatch)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    try:
        code = main(["--translator", "gemini", "--text", "fever"])
    finally:
        _close_app_logger()
    assert code == 2
    assert "GEMINI_API_KEY" in capsys.readouterr().err


class _InterruptingRecognizer(Recognizer):
    """Delivers speech, then presses Ctrl+C on the main thread and waits to be stopped."""

    def __init__(self) -> None:
        self.stopped = threading.Event()

    def start(self, lang_tag: str) -> None:
        self.stopped.clear()

    def stop(self) -> None:
        self.stopped.set()

    def events(self) -> Iterator[RecognitionEvent]:
        yield RecognitionEvent((RecognitionSegment("fever", is_final=True), RecognitionSegment("coughing", is_final=False)))
        _thread.interrupt_main()
        self.stopped.wait(timeout=10.0)


def test_main_ctrl_c_stops_dictation_and_translates_final_text(tmp_path: Path, monkeypatch, capsys) -> None:
    _isolate(tmp_path, monkeypatch)
    rec = _InterruptingRecognizer()
    monkeypatch.setattr(app_main, "build_recognizer", lambda args: rec)
    try:
        code = main(["--translator", "stub"])
    finally:
        _close_app_logger()
    out = capsys.readouterr().out
    assert code == 0
    assert rec.stopped.is_set()
    assert "[stub] fever" in out
    assert "coughing" not in out
