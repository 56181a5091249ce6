from __future__ import annotations

import json
from pathlib import Path

from interprete.app.config import resolve_args


def test_app_resolve_args_cli_overrides_config(tmp_path: Path) -> None:
    cfg_path = tmp_path / "app.json"
    cfg_path.write_text(
        json.dumps({"source_lang": "es", "sr": 16000, "volume": 0.5}),
        encoding="utf-8",
    )
    args = resolve_args(["--config", str(cfg_path), "--source-lang", "en", "--volume", "0.9"])
    assert args.source_lang == "en"
    assert args.sr == 16000
    assert args.volume == 0.9


def test_app_resolve_args_provider_order(tmp_path: Path) -> None:
    cfg_path = tmp_path / "app.json"
    cfg_path.write_text(json.dumps({"providers": ["mymemory"]}), encoding="utf-8")

    args = resolve_args(["--config", str(cfg_path)])
    assert args.providers == ["mymemory"]

    args = resolve_args(["--config", str(cfg_path), "--providers", "lingva, argos"])
    assert args.providers == ["lingva", "argos"]


def test_app_resolve_args_capture_toggles(tmp_path: Path) -> None:
    cfg_path = tmp_path / "app.json"
    cfg_path.write_text(json.dumps({"continuous": False, "interim_results": True}), encoding="utf-8")
    args = resolve_args(["--config", str(cfg_path), "--no-interim-results"])
    assert args.continuous is False
    assert args.interim_results is False


def test_app_resolve_args_debug_from_config(tmp_path: Path) -> None:
    cfg_path = tmp_path / "app.json"
    cfg_path.write_text(json.dumps({"debug": True}), encoding="utf-8")
    args = resolve_args(["--config", str(cfg_path), "--text", "hola"])
    assert args.debug is True
    assert args.text == "hola"
