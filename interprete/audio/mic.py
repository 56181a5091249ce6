from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from typing import Callable, Iterator, Optional

from interprete.asr.base import MicrophonePermission
from interprete.contracts import AudioChunk
from interprete.errors import MicError

logger = logging.getLogger("interprete.audio.mic")

_NOT_INSTALLED = "sounddevice is not installed. Install with: python -m pip install sounddevice"


class SoundDeviceMicSource:
    """
    Live microphone source using the `sounddevice` package (PortAudio).
    Captures raw PCM16 chunks of fixed duration until a stop event is set.
    """

    def __init__(
        self,
        *,
        chunk_seconds: float = 0.5,
        sample_rate: int = 16000,
        channels: int = 1,
        device: Optional[int] = None,
    ) -> None:
        if chunk_seconds <= 0:
            raise ValueError("chunk_seconds must be > 0")
        if sample_rate <= 0:
            raise ValueError("sample_rate must be > 0")
        if channels not in (1, 2):
            raise ValueError("channels must be 1 or 2 (for now)")

        self.chunk_seconds = float(chunk_seconds)
        self.sample_rate = int(sample_rate)
        self.channels = int(channels)
        self.device = device

    @staticmethod
    def list_devices() -> str:
        try:
            import sounddevice as sd
        except ImportError as e:
            raise MicError(_NOT_INSTALLED) from e
        return str(sd.query_devices())

    @contextlib.contextmanager
    def open_stream(self):
        try:
            import sounddevice as sd
        except ImportError as e:
            raise MicError(_NOT_INSTALLED) from e

        try:
            stream = sd.RawInputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                device=self.device,
                blocksize=0,  # let PortAudio choose
            )
        except Exception as e:
            raise MicError(
                "Failed to open microphone stream. "
                "Try --list-devices and select a device id with --device."
            ) from e

        with stream:
            yield stream

    def chunks(
        self,
        stop_event: threading.Event,
        on_open: Optional[Callable[[], None]] = None,
    ) -> Iterator[AudioChunk]:
        frames_per_chunk = max(1, int(round(self.chunk_seconds * self.sample_rate)))
        frames_seen = 0

        with self.open_stream() as stream:
            if on_open is not None:
                on_open()
            while not stop_event.is_set():
                data, overflowed = stream.read(frames_per_chunk)
                if overflowed:
                    logger.debug("mic_overflow")

                start_time = frames_seen / self.sample_rate
                frames_seen += frames_per_chunk
                yield AudioChunk(
                    pcm16=bytes(data),
                    sample_rate=self.sample_rate,
                    channels=self.channels,
                    start_time=start_time,
                    duration=frames_per_chunk / self.sample_rate,
                )


class SoundDevicePermission(MicrophonePermission):
    """Access is granted when an input stream can be opened and closed again."""

    def __init__(self, mic: SoundDeviceMicSource) -> None:
        self.mic = mic

    def _try_open(self) -> None:
        with self.mic.open_stream():
            pass

    async def request_access(self) -> bool:
        try:
            await asyncio.to_thread(self._try_open)
        except MicError:
            logger.warning("mic_permission_denied", exc_info=True)
            return False
        return True
