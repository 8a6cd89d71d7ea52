from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterator
from medlingo.contracts import RecognitionEvent


class RecognizerError(RuntimeError):
    pass


class Recognizer(ABC):
    @abstractmethod
    def start(self, lang_tag: str) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...

    @abstractmethod
    def events(self) -> Iterator[RecognitionEvent]:
        """Yield events until stopped or the audio ends. Raises RecognizerError on failure."""
        raise NotImplementedError
