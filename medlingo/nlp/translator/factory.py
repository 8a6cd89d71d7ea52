from __future__ import annotations
import os
from typing import Any, Mapping
from .base import ModelTransport
from .gemini import DEFAULT_ENDPOINT, DEFAULT_MODEL, GeminiTransport
from .stub import StubTransport

def get_transport(provider: str | None = None, settings: Mapping[str, Any] | None = None) -> ModelTransport:
    provider = (provider or os.getenv("MEDLINGO_TRANSLATOR", "gemini")).lower().strip()
    settings = settings or {}

    if provider == "stub":
        return StubTransport()
    if provider == "gemini":
        return GeminiTransport(
            api_key=str(settings.get("api_key") or os.getenv("GEMINI_API_KEY", "")),
            model=str(settings.get("gemini_model") or DEFAULT_MODEL),
            endpoint=str(settings.get("gemini_endpoint") or DEFAULT_ENDPOINT),
            timeout_sec=float(settings.get("request_timeout_sec") or 30.0),
        )

    raise ValueError(f"Unknown translator provider: {provider}")
