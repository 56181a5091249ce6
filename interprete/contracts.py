from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class Lang(str, Enum):
    ES = "es"
    EN = "en"

    def complement(self) -> "Lang":
        return Lang.EN if self is Lang.ES else Lang.ES

    @property
    def speech_tag(self) -> str:
        return "es-ES" if self is Lang.ES else "en-US"


# Request-only sentinel; never stored on a TranslationResult.
AUTO = "auto"

SourceLang = Union[Lang, str]


def parse_source_lang(value: str) -> SourceLang:
    v = str(value or "").strip().lower()
    if v == AUTO:
        return AUTO
    try:
        return Lang(v)
    except ValueError:
        raise ValueError(f"unknown source language: {value!r}") from None


def _clamp01(value: float) -> float:
    return min(max(float(value), 0.0), 1.0)


@dataclass(frozen=True)
class RecognitionEvent:
    text: str
    confidence: float = 0.9
    is_final: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", _clamp01(self.confidence))


def _new_request_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class TranslationRequest:
    text: str
    source_lang: SourceLang = AUTO
    # Advisory only; the pipeline always targets the complement of the source.
    target_lang: Optional[Lang] = None
    request_id: str = field(default_factory=_new_request_id)
    confidence: float = 1.0


@dataclass(frozen=True)
class TranslationResult:
    original_text: str
    translated_text: str
    source_lang: Lang
    target_lang: Lang
    timestamp: datetime
    confidence: float
    provider: str
    request_id: str = ""


@dataclass(frozen=True)
class ASRSegment:
    text: str
    t0: float
    t1: float
    is_final: bool = True
    confidence: float = 0.9


@dataclass(frozen=True)
class AudioChunk:
    """
    Raw PCM16 audio chunk captured from a live source (e.g., microphone).
    pcm16: little-endian signed 16-bit PCM bytes (interleaved if channels > 1).
    """
    pcm16: bytes
    sample_rate: int
    channels: int
    start_time: float  # seconds since stream start
    duration: float    # seconds
