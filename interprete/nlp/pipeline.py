# interprete/nlp/pipeline.py
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from interprete.contracts import AUTO, Lang, SourceLang, TranslationRequest, TranslationResult
from interprete.errors import InvalidInputError, PipelineExhaustedError, ProviderError
from interprete.nlp.langdetect import classify
from interprete.nlp.translator.base import Translator

logger = logging.getLogger("interprete.pipeline")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_languages(text: str, source_lang: SourceLang) -> tuple[Lang, Lang]:
    """Resolve the (source, target) pair. Explicit sources are trusted as given."""
    if source_lang == AUTO:
        source = classify(text)
    elif isinstance(source_lang, Lang):
        source = source_lang
    else:
        try:
            source = Lang(str(source_lang).lower())
        except ValueError:
            raise InvalidInputError(f"unknown source language: {source_lang!r}") from None
    return source, source.complement()


class TranslationPipeline:
    """
    Resolve one finalized utterance through an ordered chain of providers.

    Providers are tried one after another, never raced; the first success
    wins. The pipeline keeps no per-call state, so distinct utterances may be
    resolved concurrently. Keeping a single resolution per utterance is the
    caller's job.
    """

    def __init__(
        self,
        translators: Sequence[Translator],
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.translators = list(translators)
        self.clock = clock

    @property
    def provider_names(self) -> list[str]:
        return [t.name for t in self.translators]

    async def resolve(
        self,
        text: str,
        source_lang: SourceLang = AUTO,
        target_hint: Optional[Lang] = None,
        *,
        confidence: float = 1.0,
        request_id: Optional[str] = None,
    ) -> TranslationResult:
        request_id = request_id or ""
        original = text or ""
        cleaned = original.strip()
        if not cleaned:
            raise InvalidInputError("cannot translate empty text")

        source, target = resolve_languages(cleaned, source_lang)
        if target_hint is not None and target_hint != target:
            logger.debug(
                "target_hint_ignored",
                extra={"request_id": request_id, "hint": str(target_hint.value), "target": target.value},
            )

        failures: list[ProviderError] = []
        for translator in self.translators:
            t0 = time.perf_counter()
            try:
                translated = await translator.translate(cleaned, source, target)
            except ProviderError as e:
                failures.append(e)
                logger.warning(
                    "provider_failed",
                    extra={"request_id": request_id, "provider": e.provider, "detail": e.detail},
                )
                continue
            except Exception as e:
                failures.append(ProviderError(translator.name, repr(e)))
                logger.exception(
                    "provider_crashed",
                    extra={"request_id": request_id, "provider": translator.name},
                )
                continue

            logger.info(
                "provider_succeeded",
                extra={
                    "request_id": request_id,
                    "provider": translator.name,
                    "source": source.value,
                    "target": target.value,
                    "chars": len(cleaned),
                    "ms": round((time.perf_counter() - t0) * 1000.0, 2),
                    "fallbacks": len(failures),
                },
            )
            return TranslationResult(
                original_text=original,
                translated_text=translated,
                source_lang=source,
                target_lang=target,
                timestamp=self.clock(),
                confidence=confidence,
                provider=translator.name,
                request_id=request_id,
            )

        logger.error(
            "pipeline_exhausted",
            extra={"request_id": request_id, "providers": self.provider_names},
        )
        raise PipelineExhaustedError(failures)

    async def resolve_request(self, req: TranslationRequest) -> TranslationResult:
        return await self.resolve(
            req.text,
            req.source_lang,
            req.target_lang,
            confidence=req.confidence,
            request_id=req.request_id,
        )

    async def aclose(self) -> None:
        for translator in self.translators:
            await translator.aclose()
