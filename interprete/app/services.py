from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from interprete.asr.base import RecognizerConfig
from interprete.asr.faster_whisper_pcm16 import FasterWhisperPCM16Transcriber
from interprete.asr.local_recognizer import LocalSpeechRecognizer
from interprete.asr.session import CaptureSession
from interprete.audio.mic import SoundDeviceMicSource, SoundDevicePermission
from interprete.audio.vad import EnergyVAD
from interprete.contracts import parse_source_lang
from interprete.nlp.pipeline import TranslationPipeline
from interprete.nlp.translator.factory import build_translators
from interprete.app.coordinator import SessionCoordinator, SpeechOutput, recognizer_language


@dataclass(frozen=True)
class LiveServices:
    mic: SoundDeviceMicSource
    recognizer: LocalSpeechRecognizer
    session: CaptureSession
    pipeline: TranslationPipeline
    coordinator: SessionCoordinator


def build_pipeline(args: Any) -> TranslationPipeline:
    translators = build_translators(
        args.providers,
        timeout_sec=float(args.http_timeout_sec),
        lingva_url=str(args.lingva_url),
        mymemory_url=str(args.mymemory_url),
        phrasebook_path=args.phrasebook_path,
    )
    return TranslationPipeline(translators)


def build_live_services(args: Any, speech: SpeechOutput | None = None) -> LiveServices:
    source_lang = parse_source_lang(str(args.source_lang))
    mic = SoundDeviceMicSource(
        chunk_seconds=float(args.chunk_sec),
        sample_rate=int(args.sr),
        channels=int(args.channels),
        device=args.device,
    )
    recognizer = LocalSpeechRecognizer(
        mic=mic,
        vad=EnergyVAD(rms_threshold=float(args.rms_th)),
        transcriber=FasterWhisperPCM16Transcriber(model_size=str(args.model)),
        silence_chunks_to_finalize=int(args.silence_chunks),
        min_utter_sec=float(args.min_utter_sec),
        max_utter_sec=None if args.max_utter_sec is None else float(args.max_utter_sec),
        interim_every_chunks=int(args.interim_every_chunks),
        debug=bool(args.debug),
    )
    session = CaptureSession(
        recognizer,
        SoundDevicePermission(mic),
        config=RecognizerConfig(
            language=recognizer_language(source_lang),
            continuous=bool(args.continuous),
            interim_results=bool(args.interim_results),
        ),
    )
    pipeline = build_pipeline(args)
    coordinator = SessionCoordinator(
        pipeline=pipeline,
        source_lang=source_lang,
        volume=float(args.volume),
        speech=speech,
        interim_clear_sec=float(args.interim_clear_sec),
    )
    coordinator.bind(session)
    return LiveServices(
        mic=mic,
        recognizer=recognizer,
        session=session,
        pipeline=pipeline,
        coordinator=coordinator,
    )
