from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

import requests

from .base import ModelTransport
from .errors import TransportFailure

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash-exp"

_KEY_PARAM_RE = re.compile(r"(key=)[^&\s]+", re.IGNORECASE)


def _error_detail(response: requests.Response) -> str:
    # Gemini errors look like {"error": {"code": 429, "message": "...", "status": "RESOURCE_EXHAUSTED"}}
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        err = payload["error"]
        parts = [str(response.status_code), str(err.get("status") or ""), str(err.get("message") or "")]
        return " ".join(p for p in parts if p).strip()
    text = (response.text or "").strip()
    return f"{response.status_code} {text[:200]}".strip()


class GeminiTransport(ModelTransport):
    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_MODEL,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout_sec: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ValueError(
                "API key is required. Set GEMINI_API_KEY in the environment or a .env file"
            )
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        self.timeout_sec = float(timeout_sec)
        self.session = session or requests.Session()

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def url(self) -> str:
        return f"{self.endpoint}/models/{self.model}:generateContent"

    def _redact(self, text: str) -> str:
        # request errors echo the URL; never let a credential reach the logs
        text = _KEY_PARAM_RE.sub(r"\1***", text)
        return text.replace(self.api_key, "***")

    def generate(self, prompt: str, generation_config: Dict[str, Any]) -> Dict[str, Any]:
        data = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": dict(generation_config),
        }
        try:
            response = self.session.post(
                self.url,
                headers={"x-goog-api-key": self.api_key},
                json=data,
                timeout=self.timeout_sec,
            )
        except requests.RequestException as e:
            raise TransportFailure(self._redact(f"{type(e).__name__}: {e}")) from e

        if not 200 <= response.status_code < 300:
            detail = self._redact(_error_detail(response))
            logger.warning("gemini_http_error", extra={"status": response.status_code, "model": self.model})
            raise TransportFailure(detail, status=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            # handled by the client as a malformed response
            return {"_raw": response.text, "_error": str(e)}
        return payload if isinstance(payload, dict) else {"_raw": payload}
