from __future__ import annotations
import re
from typing import Any, Dict
from .base import ModelTransport

_TEXT = re.compile(r'Text: "(.*)"', flags=re.DOTALL)

class StubTransport(ModelTransport):
    """Offline stand-in for the remote model. Echoes the quoted text back."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "stub"

    def generate(self, prompt: str, generation_config: Dict[str, Any]) -> Dict[str, Any]:
        # Deterministic, test-friendly
        self.calls.append(prompt)
        m = _TEXT.search(prompt)
        text = m.group(1) if m else prompt
        return {"candidates": [{"content": {"parts": [{"text": f"[stub] {text}\n"}]}}]}
