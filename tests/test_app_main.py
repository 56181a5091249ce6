from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import pytest

from interprete.app import config as app_config
from interprete.app import main as app_main
from interprete.app.coordinator import SessionCoordinator
from interprete.contracts import Lang, TranslationResult
from interprete.errors import ProviderError
from interprete.nlp.pipeline import TranslationPipeline
from interprete.nlp.translator.base import Translator
from interprete.nlp.translator.phrasebook import PhrasebookTranslator


class _Offline(Translator):
    @property
    def name(self) -> str:
        return "lingva"

    async def translate(self, text: str, source: Lang, target: Lang) -> str:
        raise ProviderError(self.name, "transport error")


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setattr(app_config, "user_config_dir", lambda appname, appauthor=None: str(tmp_path))
    yield tmp_path
    logger = logging.getLogger("interprete")
    for h in list(logger.handlers):
        h.close()
    logger.handlers.clear()


def test_translate_once_falls_back_to_phrasebook(isolated_config: Path, monkeypatch, capsys) -> None:
    monkeypatch.setattr(
        app_main,
        "build_pipeline",
        lambda args: TranslationPipeline([_Offline(), PhrasebookTranslator()]),
    )
    assert app_main.main(["--text", "buenos días", "--source-lang", "es"]) == 0
    out = capsys.readouterr().out
    assert "[es->en via phrasebook] good morning" in out

    log_path = isolated_config / "logs" / "interprete.log"
    messages = [json.loads(ln)["message"] for ln in log_path.read_text(encoding="utf-8").splitlines()]
    assert "provider_failed" in messages
    assert "provider_succeeded" in messages


def test_translate_once_reports_exhaustion(isolated_config: Path, monkeypatch, capsys) -> None:
    monkeypatch.setattr(app_main, "build_pipeline", lambda args: TranslationPipeline([_Offline()]))
    assert app_main.main(["--text", "hola"]) == 2
    assert "Translation failed" in capsys.readouterr().err


def test_console_display_prints_only_new_lines(capsys) -> None:
    coord = SessionCoordinator(pipeline=TranslationPipeline([]))
    display = app_main.ConsoleDisplay()

    coord.interim_text = "hol"
    display(coord)
    coord.interim_text = ""
    coord.history.insert(
        0,
        TranslationResult(
            original_text="hola",
            translated_text="hello",
            source_lang=Lang.ES,
            target_lang=Lang.EN,
            timestamp=datetime.now(timezone.utc),
            confidence=0.9,
            provider="lingva",
        ),
    )
    display(coord)
    display(coord)

    out = capsys.readouterr().out.splitlines()
    assert out == ["  ... hol", "[es] hola", "[en] hello  <lingva>"]
