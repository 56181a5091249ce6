from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import traceback
from typing import Optional

from interprete.app.config import resolve_args
from interprete.app.coordinator import SessionCoordinator
from interprete.app.diagnostics import hint_for_exception, summarize_exception, user_message
from interprete.app.logging_setup import setup_app_logger
from interprete.app.services import build_live_services, build_pipeline
from interprete.audio.mic import SoundDeviceMicSource
from interprete.contracts import parse_source_lang
from interprete.errors import InterpreteError
from interprete.nlp.translator.phrasebook import is_unresolved


class ConsoleDisplay:
    """Prints what changed on the coordinator since the last call."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._shown_interim = ""
        self._shown_count = 0
        self._shown_notice: Optional[str] = None

    def __call__(self, coord: SessionCoordinator) -> None:
        if not self.enabled:
            return
        if coord.interim_text and coord.interim_text != self._shown_interim:
            print(f"  ... {coord.interim_text}")
        self._shown_interim = coord.interim_text

        fresh = max(0, len(coord.history) - self._shown_count)
        for result in reversed(coord.history[:fresh]):
            mark = " (untranslated)" if is_unresolved(result.translated_text) else ""
            print(f"[{result.source_lang.value}] {result.original_text}")
            print(f"[{result.target_lang.value}] {result.translated_text}{mark}  <{result.provider}>")
        self._shown_count = len(coord.history)

        if coord.notice and coord.notice != self._shown_notice:
            print(f"! {coord.notice}", file=sys.stderr)
        self._shown_notice = coord.notice


async def _translate_once(args: argparse.Namespace) -> int:
    pipeline = build_pipeline(args)
    try:
        result = await pipeline.resolve(str(args.text), parse_source_lang(str(args.source_lang)))
    except InterpreteError as e:
        print(user_message(e), file=sys.stderr)
        return 2
    finally:
        await pipeline.aclose()
    print(f"[{result.source_lang.value}->{result.target_lang.value} via {result.provider}] {result.translated_text}")
    return 0


async def _run_live(args: argparse.Namespace, logger: logging.Logger) -> int:
    services = build_live_services(args)
    session = services.session
    coordinator = services.coordinator
    coordinator.on_change = ConsoleDisplay(enabled=bool(args.print_console))

    runner = asyncio.create_task(session.run(), name="interprete-capture-events")
    try:
        if not await session.start():
            print(coordinator.notice or "Microphone permission denied.", file=sys.stderr)
            return 1
        logger.info("live_started", extra={"providers": services.pipeline.provider_names})
        print("Listening. Press Ctrl+C to stop.")
        await runner
        return 0
    finally:
        session.stop()
        session.close()
        coordinator.close()
        try:
            await asyncio.wait_for(coordinator.drain(), timeout=float(args.http_timeout_sec) * 3)
        except asyncio.TimeoutError:
            logger.warning("drain_timeout", extra={"pending": coordinator.pending_utterances})
        await services.pipeline.aclose()
        if not runner.done():
            runner.cancel()
        logger.info("live_stopped", extra={"translations": len(coordinator.history)})


def main(argv: list[str] | None = None) -> int:
    args = resolve_args(argv)
    logger, _log_dir, log_path = setup_app_logger(debug=bool(args.debug))
    logger.info("app_start", extra={"config_path": str(getattr(args, "config", "")), "argv": argv or []})

    if args.list_devices:
        print(SoundDeviceMicSource.list_devices())
        return 0

    try:
        if args.text is not None:
            return asyncio.run(_translate_once(args))
        return asyncio.run(_run_live(args, logger))
    except KeyboardInterrupt:
        logger.info("app_keyboard_interrupt")
        return 0
    except Exception:
        detail = traceback.format_exc()
        logger.exception("app_crash")
        summary = summarize_exception(detail)
        print(f"Error: {summary}", file=sys.stderr)
        print(f"Hint: {hint_for_exception(summary)}", file=sys.stderr)
        print(f"Logs: {log_path}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
