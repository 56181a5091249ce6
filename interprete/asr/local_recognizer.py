from __future__ import annotations

import logging
import threading
from typing import Iterable, List, Optional, Protocol

from interprete.asr.base import Ended, Error, RecognitionCapability, Result, Started
from interprete.asr.faster_whisper_pcm16 import whisper_language
from interprete.audio.vad import EnergyVAD
from interprete.contracts import ASRSegment, AudioChunk
from interprete.errors import MicError

logger = logging.getLogger("interprete.recognizer")


class ChunkSource(Protocol):
    def chunks(self, stop_event: threading.Event, on_open=None) -> Iterable[AudioChunk]:
        ...


class UtteranceTranscriber(Protocol):
    def transcribe_utterance(
        self,
        pcm16: bytes,
        sample_rate: int,
        channels: int,
        utter_t0: float,
        language: Optional[str] = None,
    ) -> List[ASRSegment]:
        ...


def _duration_from_pcm16(pcm16: bytes, sample_rate: int, channels: int) -> float:
    bytes_per_second = sample_rate * channels * 2
    if bytes_per_second <= 0:
        return 0.0
    return len(pcm16) / float(bytes_per_second)


class LocalSpeechRecognizer(RecognitionCapability):
    """
    Recognition capability backed by the local microphone, an energy VAD and
    faster-whisper. The audio loop runs on its own daemon thread and reports
    through the attached sink: Started once the stream is open, interim and
    final Results per utterance, Error("audio-capture") if the microphone
    fails, and always Ended last.
    """

    def __init__(
        self,
        *,
        mic: ChunkSource,
        vad: EnergyVAD,
        transcriber: UtteranceTranscriber,
        silence_chunks_to_finalize: int = 2,
        min_utter_sec: float = 0.6,
        max_utter_sec: Optional[float] = 6.0,
        interim_every_chunks: int = 2,
        debug: bool = False,
        join_timeout_sec: float = 2.0,
    ) -> None:
        super().__init__()
        if silence_chunks_to_finalize <= 0:
            raise ValueError("silence_chunks_to_finalize must be > 0")
        if min_utter_sec < 0:
            raise ValueError("min_utter_sec must be >= 0")
        if max_utter_sec is not None and max_utter_sec <= 0:
            raise ValueError("max_utter_sec must be > 0 when set")
        if interim_every_chunks <= 0:
            raise ValueError("interim_every_chunks must be > 0")

        self.mic = mic
        self.vad = vad
        self.transcriber = transcriber
        self.silence_chunks_to_finalize = int(silence_chunks_to_finalize)
        self.min_utter_sec = float(min_utter_sec)
        self.max_utter_sec = float(max_utter_sec) if max_utter_sec is not None else None
        self.interim_every_chunks = int(interim_every_chunks)
        self.debug = debug
        self.join_timeout_sec = float(join_timeout_sec)
        self._thread: Optional[threading.Thread] = None
        self._stop: Optional[threading.Event] = None

    def begin(self) -> None:
        prior = self._thread
        if prior is not None and prior.is_alive():
            if self._stop is None or not self._stop.is_set():
                raise RuntimeError("recognizer is already running")
            # The previous cycle has stopped or already reported Ended; let it exit.
            if prior is not threading.current_thread():
                prior.join(timeout=self.join_timeout_sec)
                if prior.is_alive():
                    raise RuntimeError("previous recognition cycle did not exit")
        stop = threading.Event()
        self._stop = stop
        self._thread = threading.Thread(
            target=self.run_cycle,
            args=(stop,),
            name="interprete-recognizer",
            daemon=True,
        )
        self._thread.start()

    def end(self) -> None:
        if self._stop is not None:
            self._stop.set()

    def run_cycle(self, stop: threading.Event) -> None:
        """One recognition cycle, from opening the microphone to Ended."""
        error_class: Optional[str] = None
        try:
            self._listen(stop)
        except MicError:
            logger.exception("recognizer_mic_failed")
            error_class = "audio-capture"
        except Exception:
            logger.exception("recognizer_crashed")
            error_class = "recognizer-crashed"
        finally:
            # Marks the cycle finished before anyone can react to Ended.
            stop.set()
            try:
                if error_class is not None:
                    self.emit(Error(error_class))
            finally:
                self.emit(Ended())

    def _transcribe(self, pcm16: bytes, sr: int, ch: int, t0: float) -> tuple[str, float]:
        segments = self.transcriber.transcribe_utterance(
            pcm16,
            sample_rate=sr,
            channels=ch,
            utter_t0=t0,
            language=whisper_language(self.config.language),
        )
        texts = [(seg.text or "").strip() for seg in segments]
        texts = [t for t in texts if t]
        if not texts:
            return "", 0.0
        confidence = sum(seg.confidence for seg in segments) / len(segments)
        return " ".join(texts), confidence

    def _finalize(self, pcm16: bytes, sr: int, ch: int, t0: float, reason: str) -> bool:
        utter_sec = _duration_from_pcm16(pcm16, sr, ch)
        if utter_sec < self.min_utter_sec:
            if self.debug:
                logger.debug("utterance_skipped_short", extra={"reason": reason, "t0": t0, "dur": utter_sec})
            return False
        text, confidence = self._transcribe(pcm16, sr, ch, t0)
        logger.debug("utterance_final", extra={"reason": reason, "t0": t0, "dur": round(utter_sec, 2)})
        if not text:
            return False
        self.emit(Result(text=text, confidence=confidence, is_final=True))
        return True

    def _listen(self, stop: threading.Event) -> None:
        parts: list[bytes] = []
        utter_t0 = 0.0
        sr = 0
        ch = 0
        in_utterance = False
        trailing_silence = 0
        speech_chunks = 0

        def _reset() -> None:
            nonlocal parts, in_utterance, trailing_silence, speech_chunks
            parts = []
            in_utterance = False
            trailing_silence = 0
            speech_chunks = 0

        def _done(emitted: bool) -> bool:
            # Single-shot mode ends the cycle after the first utterance.
            return emitted and not self.config.continuous

        for chunk in self.mic.chunks(stop, on_open=lambda: self.emit(Started())):
            is_speech = self.vad.is_speech(chunk.pcm16)
            if self.debug:
                logger.debug(
                    "mic_chunk",
                    extra={"t0": chunk.start_time, "rms": round(self.vad.level(chunk.pcm16), 1), "speech": is_speech},
                )

            if is_speech:
                if not in_utterance:
                    _reset()
                    in_utterance = True
                    utter_t0 = float(chunk.start_time)
                    sr = int(chunk.sample_rate)
                    ch = int(chunk.channels)
                parts.append(chunk.pcm16)
                speech_chunks += 1
                trailing_silence = 0

                pcm16 = b"".join(parts)
                if self.max_utter_sec is not None and _duration_from_pcm16(pcm16, sr, ch) >= self.max_utter_sec:
                    emitted = self._finalize(pcm16, sr, ch, utter_t0, "max_utter_sec")
                    _reset()
                    if _done(emitted):
                        return
                elif self.config.interim_results and speech_chunks % self.interim_every_chunks == 0:
                    text, confidence = self._transcribe(pcm16, sr, ch, utter_t0)
                    if text:
                        self.emit(Result(text=text, confidence=confidence, is_final=False))
                continue

            if in_utterance:
                trailing_silence += 1
                if trailing_silence >= self.silence_chunks_to_finalize:
                    emitted = self._finalize(b"".join(parts), sr, ch, utter_t0, "silence")
                    _reset()
                    if _done(emitted):
                        return

        if in_utterance and parts:
            self._finalize(b"".join(parts), sr, ch, utter_t0, "stream_end")
