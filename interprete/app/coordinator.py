from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Optional, Protocol

from interprete.app.diagnostics import user_message
from interprete.asr.session import CaptureSession
from interprete.contracts import AUTO, Lang, RecognitionEvent, SourceLang, TranslationResult, parse_source_lang
from interprete.errors import CapabilityUnsupportedError, CaptureError, InvalidInputError, PipelineExhaustedError
from interprete.nlp.pipeline import TranslationPipeline

logger = logging.getLogger("interprete.coordinator")


class SpeechOutput(Protocol):
    def speak(self, text: str, language_tag: str, volume: float) -> None:
        ...


def recognizer_language(source: SourceLang) -> str:
    return source.speech_tag if isinstance(source, Lang) else AUTO


def _clamp_volume(volume: float) -> float:
    return min(max(float(volume), 0.0), 1.0)


class SessionCoordinator:
    """
    Glue between the capture session, the translation pipeline and the
    display/speech collaborators.

    Final utterances are resolved as independent tasks and land in
    ``history`` (newest first) in completion order. Interim text is kept in
    ``interim_text`` until a resolution succeeds or it goes stale. Once a
    final is submitted the stale timer stops; a failed resolution leaves the
    interim text visible and sets ``notice`` instead.
    """

    def __init__(
        self,
        *,
        pipeline: TranslationPipeline,
        source_lang: SourceLang = AUTO,
        volume: float = 0.8,
        speech: Optional[SpeechOutput] = None,
        interim_clear_sec: float = 3.0,
        on_change: Optional[Callable[["SessionCoordinator"], None]] = None,
    ) -> None:
        self.pipeline = pipeline
        self.source_lang: SourceLang = source_lang
        self.volume = _clamp_volume(volume)
        self.speech = speech
        self.interim_clear_sec = float(interim_clear_sec)
        self.on_change = on_change
        self.session: Optional[CaptureSession] = None

        self.history: list[TranslationResult] = []
        self.interim_text = ""
        self.notice: Optional[str] = None

        self._next_utterance = 0
        self._pending: dict[int, "asyncio.Task[Optional[TranslationResult]]"] = {}
        self._interim_timer: Optional[asyncio.TimerHandle] = None

    def bind(self, session: CaptureSession) -> None:
        self.session = session
        session.on_result = self.on_recognition
        session.on_error = self.on_capture_error
        self._apply_recognizer_language()

    @property
    def is_listening(self) -> bool:
        return self.session is not None and self.session.is_listening

    @property
    def pending_utterances(self) -> list[int]:
        return sorted(self._pending)

    # -- capture callbacks --

    def on_recognition(self, event: RecognitionEvent) -> None:
        self.notice = None
        if event.is_final and event.text.strip():
            self._next_utterance += 1
            self.submit_final(self._next_utterance, event)
        else:
            self._set_interim(event.text)
        self._changed()

    def on_capture_error(self, error: CaptureError) -> None:
        self.notice = user_message(error)
        self._changed()

    # -- resolution --

    def submit_final(
        self, utterance_id: int, event: RecognitionEvent
    ) -> "Optional[asyncio.Task[Optional[TranslationResult]]]":
        """Start resolving one utterance; refused while that utterance is already pending."""
        if utterance_id in self._pending:
            logger.warning("utterance_already_pending", extra={"utterance_id": utterance_id})
            return None
        # The interim text now waits on this resolution, not on the stale timer.
        self._cancel_interim_timer()
        task = asyncio.get_running_loop().create_task(self._resolve(utterance_id, event))
        self._pending[utterance_id] = task
        task.add_done_callback(lambda _t, uid=utterance_id: self._pending.pop(uid, None))
        return task

    async def _resolve(self, utterance_id: int, event: RecognitionEvent) -> Optional[TranslationResult]:
        try:
            result = await self.pipeline.resolve(
                event.text,
                self.source_lang,
                confidence=event.confidence,
                request_id=f"utt-{utterance_id}",
            )
        except (InvalidInputError, PipelineExhaustedError) as e:
            logger.warning(
                "resolve_failed",
                extra={"utterance_id": utterance_id, "error_type": type(e).__name__, "detail": str(e)},
            )
            self.notice = user_message(e)
            self._changed()
            return None

        self.history.insert(0, result)
        self._speak(result)
        self._clear_interim()
        logger.info(
            "utterance_translated",
            extra={
                "utterance_id": utterance_id,
                "provider": result.provider,
                "source": result.source_lang.value,
                "target": result.target_lang.value,
            },
        )
        self._changed()
        return result

    def _speak(self, result: TranslationResult) -> None:
        if self.speech is None:
            return
        try:
            self.speech.speak(result.translated_text, result.target_lang.speech_tag, self.volume)
        except Exception:
            logger.exception("speech_output_failed", extra={"request_id": result.request_id})

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending.values()))

    # -- interim buffer --

    def _set_interim(self, text: str) -> None:
        self.interim_text = text
        self._cancel_interim_timer()
        self._interim_timer = asyncio.get_running_loop().call_later(
            self.interim_clear_sec, self._expire_interim, text
        )

    def _expire_interim(self, text: str) -> None:
        if self.interim_text == text:
            self._clear_interim()
            self._changed()

    def _clear_interim(self) -> None:
        self.interim_text = ""
        self._cancel_interim_timer()

    def _cancel_interim_timer(self) -> None:
        if self._interim_timer is not None:
            self._interim_timer.cancel()
            self._interim_timer = None

    # -- user controls --

    async def toggle_listening(self) -> None:
        if self.session is None:
            raise CapabilityUnsupportedError()
        if not self.session.has_permission:
            await self.session.request_permission()
        elif self.session.is_listening:
            self.session.stop()
        else:
            await self.session.start()
        self._changed()

    def set_source_language(self, value: SourceLang | str) -> None:
        self.source_lang = value if isinstance(value, Lang) else parse_source_lang(value)
        self._apply_recognizer_language()
        self._changed()

    def swap_languages(self) -> None:
        current = self.source_lang
        self.set_source_language(current.complement() if isinstance(current, Lang) else Lang.EN)

    def set_volume(self, volume: float) -> None:
        self.volume = _clamp_volume(volume)
        self._changed()

    def clear_history(self) -> None:
        self.history.clear()
        self._clear_interim()
        self._changed()

    def close(self) -> None:
        self._cancel_interim_timer()

    def _apply_recognizer_language(self) -> None:
        if self.session is None:
            return
        config = replace(self.session.config, language=recognizer_language(self.source_lang))
        self.session.reconfigure(config)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
