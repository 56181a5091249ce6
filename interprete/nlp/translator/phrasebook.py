from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping, Optional

from interprete.contracts import Lang
from .base import Translator

UNRESOLVED_PREFIX = "[untranslated] "

_ES_EN: dict[str, str] = {
    "hola": "hello",
    "adiós": "goodbye",
    "gracias": "thank you",
    "por favor": "please",
    "sí": "yes",
    "no": "no",
    "buenos días": "good morning",
    "buenas tardes": "good afternoon",
    "buenas noches": "good night",
    "cómo estás": "how are you",
    "muy bien": "very well",
    "lo siento": "sorry",
    "disculpe": "excuse me",
    "no entiendo": "I don't understand",
    "habla más despacio": "speak more slowly",
    "cuánto cuesta": "how much does it cost",
    "dónde está": "where is",
    "qué hora es": "what time is it",
    "me llamo": "my name is",
    "mucho gusto": "nice to meet you",
    "de nada": "you're welcome",
    "con permiso": "excuse me",
    "hasta luego": "see you later",
    "buen día": "good day",
    "feliz cumpleaños": "happy birthday",
    "salud": "cheers",
    "ayuda": "help",
    "agua": "water",
    "comida": "food",
    "baño": "bathroom",
    "hospital": "hospital",
    "policía": "police",
    "aeropuerto": "airport",
    "hotel": "hotel",
    "restaurante": "restaurant",
    "taxi": "taxi",
    "dinero": "money",
    "precio": "price",
    "caro": "expensive",
    "barato": "cheap",
}

_EN_ES: dict[str, str] = {
    "hello": "hola",
    "goodbye": "adiós",
    "thank you": "gracias",
    "please": "por favor",
    "yes": "sí",
    "no": "no",
    "good morning": "buenos días",
    "good afternoon": "buenas tardes",
    "good night": "buenas noches",
    "how are you": "cómo estás",
    "very well": "muy bien",
    "sorry": "lo siento",
    "excuse me": "disculpe",
    "i don't understand": "no entiendo",
    "speak more slowly": "habla más despacio",
    "how much does it cost": "cuánto cuesta",
    "where is": "dónde está",
    "what time is it": "qué hora es",
    "my name is": "me llamo",
    "nice to meet you": "mucho gusto",
    "you're welcome": "de nada",
    "see you later": "hasta luego",
    "good day": "buen día",
    "happy birthday": "feliz cumpleaños",
    "cheers": "salud",
    "help": "ayuda",
    "water": "agua",
    "food": "comida",
    "bathroom": "baño",
    "hospital": "hospital",
    "police": "policía",
    "airport": "aeropuerto",
    "hotel": "hotel",
    "restaurant": "restaurante",
    "taxi": "taxi",
    "money": "dinero",
    "price": "precio",
    "expensive": "caro",
    "cheap": "barato",
}

BUILTIN_TABLES: dict[str, dict[str, str]] = {"es-en": _ES_EN, "en-es": _EN_ES}


def unresolved(text: str) -> str:
    return f"{UNRESOLVED_PREFIX}{text}"


def is_unresolved(text: str) -> bool:
    return str(text).startswith(UNRESOLVED_PREFIX)


def load_phrasebook_file(path: str | Path) -> dict[str, dict[str, str]]:
    with Path(path).open("r", encoding="utf-8-sig") as f:
        loaded = json.load(f)
    if not isinstance(loaded, dict):
        raise ValueError(f"phrasebook must be a JSON object: {path}")
    out: dict[str, dict[str, str]] = {}
    for direction, table in loaded.items():
        if not isinstance(table, dict):
            raise ValueError(f"phrasebook direction {direction!r} must map phrases to phrases")
        out[str(direction)] = {str(k): str(v) for k, v in table.items()}
    return out


class PhrasebookTranslator(Translator):
    """
    Offline last resort: a small bilingual phrase table.

    Tries an exact match of the whole utterance first, then word-by-word
    substitution. Never fails; text it cannot resolve comes back wrapped
    in the unresolved marker.
    """

    def __init__(self, extra: Optional[Mapping[str, Mapping[str, str]]] = None) -> None:
        self.tables: dict[str, dict[str, str]] = {}
        for direction, table in BUILTIN_TABLES.items():
            self._merge(direction, table)
        for direction, table in (extra or {}).items():
            self._merge(direction, table)

    def _merge(self, direction: str, table: Mapping[str, str]) -> None:
        dest = self.tables.setdefault(direction.lower(), {})
        for phrase, translated in table.items():
            dest[phrase.strip().lower()] = translated

    @property
    def name(self) -> str:
        return "phrasebook"

    def lookup(self, text: str, source: Lang, target: Lang) -> str:
        table = self.tables.get(f"{source.value}-{target.value}", {})
        key = text.strip().lower()

        if key in table:
            return table[key]

        words = key.split()
        # Identity entries (e.g. "hotel") do not count as resolving a word.
        resolved = [w in table and table[w].lower() != w for w in words]
        if any(resolved):
            return " ".join(table.get(w, w) for w in words)
        return unresolved(text)

    async def translate(self, text: str, source: Lang, target: Lang) -> str:
        return self.lookup(text, source, target)
