from __future__ import annotations

from argparse import Namespace

import pytest

from medlingo.app import config as app_config
from medlingo.app import services as app_services
from medlingo.nlp.translator.gemini import GeminiTransport
from medlingo.nlp.translator.stub import StubTransport


def _args(translator: str) -> Namespace:
    return Namespace(
        translator=translator,
        gemini_model="gemini-test",
        gemini_endpoint="https://example.invalid/v1beta",
        request_timeout_sec=5.0,
        temperature=0.3,
        top_p=0.9,
        max_requests_per_minute=15,
        min_request_interval_ms=250,
        rate_buffer_ms=1000,
        source_lang="en-US",
        target_lang="hi-IN",
        asr_model="tiny",
        device=None,
        sr=16000,
        chunk_sec=0.5,
        rms_th=180.0,
        silence_chunks=2,
        max_utter_sec=4.5,
    )


def test_build_services_with_stub_translator() -> None:
    services = app_services.build_services(_args("stub"))
    assert isinstance(services.client.transport, StubTransport)
    assert services.session.translator is services.client
    assert services.limiter is services.client.limiter
    assert services.limiter.max_requests_per_minute == 15
    assert services.limiter.min_interval_sec == pytest.approx(0.25)
    assert services.client.generation_config == {"temperature": 0.3, "topP": 0.9}
    assert services.session.target_lang == "hi-IN"


def test_build_services_gemini_uses_env_key(monkeypatch) -> None:
    monkeypatch.setattr(app_config, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setenv("GEMINI_API_KEY", "key-1")
    services = app_services.build_services(_args("gemini"))
    transport = services.client.transport
    assert isinstance(transport, GeminiTransport)
    assert transport.api_key == "key-1"
    assert transport.model == "gemini-test"
    assert transport.url == "https://example.invalid/v1beta/models/gemini-test:generateContent"


def test_build_services_gemini_without_key_fails(monkeypatch) -> None:
    monkeypatch.setattr(app_config, "load_dotenv", lambda *a, **k: False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(ValueError):
        app_services.build_services(_args("gemini"))


def test_build_recognizer_from_args() -> None:
    rec = app_services.build_recognizer(_args("stub"))
    assert rec.model_size == "tiny"
    assert rec.rms_threshold == 180.0
    assert rec.silence_chunks == 2
    assert rec.max_utter_sec == 4.5
