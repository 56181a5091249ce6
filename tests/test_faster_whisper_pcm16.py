from __future__ import annotations

import math
import os
from unittest.mock import MagicMock

import pytest

from interprete.asr.faster_whisper_pcm16 import (
    FasterWhisperPCM16Transcriber,
    segment_confidence,
    whisper_language,
)


@pytest.mark.parametrize(
    "tag, expected",
    [("es-ES", "es"), ("en-US", "en"), ("EN", "en"), ("auto", None), ("", None), (None, None)],
)
def test_whisper_language(tag, expected) -> None:
    assert whisper_language(tag) == expected


def test_segment_confidence_from_avg_logprob() -> None:
    assert segment_confidence(None) == 0.9
    assert segment_confidence(0.0) == 1.0
    assert segment_confidence(math.log(0.5)) == pytest.approx(0.5)


def test_transcribe_utterance_wraps_segments(monkeypatch) -> None:
    fake_model = MagicMock()
    seg1 = MagicMock(start=0.0, end=1.2, text=" Hola ", avg_logprob=math.log(0.8))
    seg2 = MagicMock(start=1.2, end=2.5, text="   ", avg_logprob=0.0)
    seg3 = MagicMock(start=2.5, end=3.0, text="amigo.", avg_logprob=math.log(0.6))
    seen_paths: list[str] = []

    def _transcribe(path, **kwargs):
        seen_paths.append(path)
        assert os.path.exists(path)
        assert kwargs["language"] == "es"
        return [seg1, seg2, seg3], MagicMock()

    fake_model.transcribe.side_effect = _transcribe

    tr = FasterWhisperPCM16Transcriber(model_size="tiny")
    monkeypatch.setattr(tr, "_get_model", lambda: fake_model)

    out = tr.transcribe_utterance(b"\x00\x00" * 1600, sample_rate=16000, channels=1, utter_t0=2.0, language="es")
    assert [s.text for s in out] == ["Hola", "amigo."]
    assert out[0].t0 == 2.0
    assert out[1].t1 == 5.0
    assert out[0].confidence == pytest.approx(0.8)
    assert not os.path.exists(seen_paths[0])


def test_empty_audio_skips_the_model(monkeypatch) -> None:
    tr = FasterWhisperPCM16Transcriber()

    def _boom():
        raise AssertionError("model should not load")

    monkeypatch.setattr(tr, "_get_model", _boom)
    assert tr.transcribe_utterance(b"", 16000, 1, 0.0) == []
