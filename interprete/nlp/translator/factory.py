from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

import aiohttp

from .argos import ArgosTranslator
from .base import Translator
from .lingva import DEFAULT_LINGVA_URL, LingvaTranslator
from .mymemory import DEFAULT_MYMEMORY_URL, MyMemoryTranslator
from .phrasebook import PhrasebookTranslator, load_phrasebook_file

DEFAULT_PROVIDERS: tuple[str, ...] = ("lingva", "mymemory", "phrasebook")


def get_translator(
    provider: str,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    timeout_sec: float = 8.0,
    lingva_url: str = DEFAULT_LINGVA_URL,
    mymemory_url: str = DEFAULT_MYMEMORY_URL,
    phrasebook_path: Optional[str] = None,
) -> Translator:
    provider = (provider or "").lower().strip()

    if provider == "lingva":
        return LingvaTranslator(base_url=lingva_url, session=session, timeout_sec=timeout_sec)
    if provider == "mymemory":
        return MyMemoryTranslator(base_url=mymemory_url, session=session, timeout_sec=timeout_sec)
    if provider == "argos":
        return ArgosTranslator()
    if provider in ("phrasebook", "local"):
        extra = load_phrasebook_file(phrasebook_path) if phrasebook_path else None
        return PhrasebookTranslator(extra=extra)

    raise ValueError(f"Unknown translator provider: {provider}")


def normalize_provider_names(names: Iterable[str] | str | None) -> list[str]:
    if names is None:
        return list(DEFAULT_PROVIDERS)
    if isinstance(names, str):
        names = names.split(",")
    out: list[str] = []
    for n in names:
        key = str(n).lower().strip()
        if key == "local":
            key = "phrasebook"
        if key and key not in out:
            out.append(key)
    # The phrasebook is total, so keeping it last makes the chain total.
    if "phrasebook" in out:
        out.remove("phrasebook")
    out.append("phrasebook")
    return out


def build_translators(names: Sequence[str] | str | None, **kwargs: Any) -> list[Translator]:
    return [get_translator(name, **kwargs) for name in normalize_provider_names(names)]
