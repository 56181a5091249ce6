from __future__ import annotations

import argparse
import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from interprete.nlp.translator.factory import DEFAULT_PROVIDERS
from interprete.nlp.translator.lingva import DEFAULT_LINGVA_URL
from interprete.nlp.translator.mymemory import DEFAULT_MYMEMORY_URL

DEFAULTS: dict[str, Any] = {
    "list_devices": False,
    "debug": False,
    "source_lang": "auto",
    "volume": 0.8,
    "continuous": True,
    "interim_results": True,
    "interim_clear_sec": 3.0,
    "providers": list(DEFAULT_PROVIDERS),
    "lingva_url": DEFAULT_LINGVA_URL,
    "mymemory_url": DEFAULT_MYMEMORY_URL,
    "http_timeout_sec": 8.0,
    "phrasebook_path": None,
    "device": None,
    "sr": 16000,
    "channels": 1,
    "chunk_sec": 0.5,
    "rms_th": 250.0,
    "silence_chunks": 2,
    "min_utter_sec": 0.6,
    "max_utter_sec": 8.0,
    "interim_every_chunks": 2,
    "model": "small",
    "print_console": True,
}
CONFIG_KEYS: tuple[str, ...] = tuple(DEFAULTS.keys())


@dataclass(frozen=True)
class AppPaths:
    config_dir: Path
    config_path: Path


def app_paths() -> AppPaths:
    config_dir = Path(user_config_dir("Interprete", "Interprete"))
    return AppPaths(config_dir=config_dir, config_path=config_dir / "config.json")


def _load_json_dict(path: Path) -> dict[str, Any]:
    # Accept UTF-8 with or without BOM for Windows-edited config files.
    with path.open("r", encoding="utf-8-sig") as f:
        loaded = json.load(f)
    if not isinstance(loaded, dict):
        raise ValueError(f"config must be a JSON object: {path}")
    return loaded


def _write_json_dict(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
        f.write("\n")


def _known_only(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: payload[key] for key in CONFIG_KEYS if key in payload}


def load_default_config() -> dict[str, Any]:
    return copy.deepcopy(DEFAULTS)


def ensure_user_config_exists(defaults: dict[str, Any] | None = None) -> Path:
    paths = app_paths()
    if paths.config_path.exists():
        return paths.config_path
    _write_json_dict(paths.config_path, defaults or load_default_config())
    return paths.config_path


def load_user_config(config_path: str | None = None) -> tuple[dict[str, Any], Path]:
    defaults = load_default_config()
    if config_path:
        chosen = Path(config_path)
        if not chosen.exists():
            raise SystemExit(f"Config file not found: {chosen}")
    else:
        chosen = ensure_user_config_exists(defaults)
    merged = dict(defaults)
    merged.update(_known_only(_load_json_dict(chosen)))
    return merged, chosen


def save_user_config(values: dict[str, Any], config_path: str | None = None) -> Path:
    path = Path(config_path) if config_path else ensure_user_config_exists()
    existing = _known_only(_load_json_dict(path)) if path.exists() else {}
    merged = load_default_config()
    merged.update(existing)
    merged.update(_known_only(values))
    _write_json_dict(path, merged)
    return path


def resolve_defaults(config_path: str | None = None) -> tuple[dict[str, Any], Path]:
    return load_user_config(config_path=config_path)


def _provider_list(value: str) -> list[str]:
    return [p.strip() for p in value.split(",") if p.strip()]


def parser_with_defaults(defaults: dict[str, Any]) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="interprete", description="Live ES<->EN speech interpreter")
    p.add_argument("--config", default=None, help="JSON config path (CLI flags override config)")
    p.add_argument("--list-devices", action="store_true", help="print audio devices and exit")
    p.add_argument("--text", default=None, help="translate this text once and exit")
    p.add_argument("--debug", action="store_true", help="log chunk levels and provider requests")
    p.add_argument(
        "--source-lang",
        default=defaults["source_lang"],
        choices=["auto", "es", "en"],
        help="spoken language; auto classifies each utterance",
    )
    p.add_argument("--volume", type=float, default=defaults["volume"], help="speech output volume (0-1)")
    p.add_argument(
        "--continuous",
        action=argparse.BooleanOptionalAction,
        default=defaults["continuous"],
        help="keep listening across utterances (auto-restart)",
    )
    p.add_argument(
        "--interim-results",
        action=argparse.BooleanOptionalAction,
        default=defaults["interim_results"],
        help="show partial text while an utterance is in progress",
    )
    p.add_argument(
        "--interim-clear-sec",
        type=float,
        default=defaults["interim_clear_sec"],
        help="clear stale interim text after this many seconds",
    )
    p.add_argument(
        "--providers",
        type=_provider_list,
        default=defaults["providers"],
        help="comma separated provider order (lingva,mymemory,argos,phrasebook)",
    )
    p.add_argument("--lingva-url", default=defaults["lingva_url"], help="Lingva API base URL")
    p.add_argument("--mymemory-url", default=defaults["mymemory_url"], help="MyMemory API URL")
    p.add_argument(
        "--http-timeout-sec",
        type=float,
        default=defaults["http_timeout_sec"],
        help="per-request timeout for networked providers",
    )
    p.add_argument(
        "--phrasebook-path",
        default=defaults["phrasebook_path"],
        help="extra JSON phrasebook merged into the offline fallback",
    )
    p.add_argument("--device", type=int, default=defaults["device"], help="sounddevice input device id")
    p.add_argument("--sr", type=int, default=defaults["sr"], help="sample rate (Hz)")
    p.add_argument("--channels", type=int, default=defaults["channels"], help="input channels")
    p.add_argument("--chunk-sec", type=float, default=defaults["chunk_sec"], help="mic chunk size in seconds")
    p.add_argument("--rms-th", type=float, default=defaults["rms_th"], help="RMS threshold for speech VAD")
    p.add_argument(
        "--silence-chunks",
        type=int,
        default=defaults["silence_chunks"],
        help="finalize after this many non-speech chunks",
    )
    p.add_argument(
        "--min-utter-sec",
        type=float,
        default=defaults["min_utter_sec"],
        help="ignore utterances shorter than this",
    )
    p.add_argument(
        "--max-utter-sec",
        type=float,
        default=defaults["max_utter_sec"],
        help="force finalize while continuously speaking (seconds)",
    )
    p.add_argument(
        "--interim-every-chunks",
        type=int,
        default=defaults["interim_every_chunks"],
        help="re-transcribe the open utterance every N speech chunks",
    )
    p.add_argument("--model", default=defaults["model"], help="faster-whisper model size")
    p.add_argument(
        "--print-console",
        action=argparse.BooleanOptionalAction,
        default=defaults["print_console"],
        help="print interim and translated lines to the console",
    )
    return p


def resolve_args(argv: list[str] | None = None) -> argparse.Namespace:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None)
    pre_args, _ = pre.parse_known_args(argv)
    defaults, _ = resolve_defaults(config_path=pre_args.config)
    parser = parser_with_defaults(defaults)
    args = parser.parse_args(argv)
    if defaults.get("list_devices"):
        args.list_devices = True
    if defaults.get("debug"):
        args.debug = True
    return args
