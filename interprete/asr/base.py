from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Union


@dataclass(frozen=True)
class Started:
    pass


@dataclass(frozen=True)
class Result:
    text: str
    confidence: float = 0.9
    is_final: bool = False


@dataclass(frozen=True)
class Error:
    error_class: str


@dataclass(frozen=True)
class Ended:
    pass


PlatformEvent = Union[Started, Result, Error, Ended]
EventSink = Callable[[PlatformEvent], None]


@dataclass(frozen=True)
class RecognizerConfig:
    language: str = "es-ES"
    continuous: bool = True
    interim_results: bool = True


class RecognitionCapability(ABC):
    """
    A platform speech recognizer. It reports everything it does through the
    attached sink as PlatformEvents; begin() and end() only request changes.
    """

    def __init__(self) -> None:
        self._sink: Optional[EventSink] = None
        self.config = RecognizerConfig()

    def configure(self, config: RecognizerConfig) -> None:
        self.config = config

    def attach(self, sink: EventSink) -> None:
        self._sink = sink

    def detach(self) -> None:
        self._sink = None

    def emit(self, event: PlatformEvent) -> None:
        sink = self._sink
        if sink is not None:
            sink(event)

    @abstractmethod
    def begin(self) -> None: ...

    @abstractmethod
    def end(self) -> None: ...


class MicrophonePermission(ABC):
    @abstractmethod
    async def request_access(self) -> bool: ...
