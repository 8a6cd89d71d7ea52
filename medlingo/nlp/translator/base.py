from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict
from medlingo.contracts import TranslationRequest, TranslationResult

class Translator(ABC):
    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def translate(self, req: TranslationRequest) -> TranslationResult: ...


class ModelTransport(ABC):
    """One remote generation call. Raises TransportFailure on any failure."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def generate(self, prompt: str, generation_config: Dict[str, Any]) -> Dict[str, Any]: ...
