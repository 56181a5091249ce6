from __future__ import annotations

import math
from array import array


def pcm16_rms(pcm16: bytes) -> float:
    """Return RMS energy for little-endian int16 PCM bytes."""
    samples = array("h")
    # A trailing odd byte is not a whole sample.
    samples.frombytes(pcm16[: len(pcm16) - (len(pcm16) % 2)])
    if not samples:
        return 0.0
    return math.sqrt(sum(float(v) * float(v) for v in samples) / len(samples))


class EnergyVAD:
    """Speech/non-speech decision per chunk from its RMS level."""

    def __init__(self, rms_threshold: float = 250.0) -> None:
        if rms_threshold < 0:
            raise ValueError("rms_threshold must be >= 0")
        self.rms_threshold = float(rms_threshold)

    def level(self, pcm16: bytes) -> float:
        return pcm16_rms(pcm16)

    def is_speech(self, pcm16: bytes) -> bool:
        return self.level(pcm16) >= self.rms_threshold
