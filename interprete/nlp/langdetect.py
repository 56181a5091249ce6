# interprete/nlp/langdetect.py
from __future__ import annotations

import re

from interprete.contracts import Lang


def _words(*items: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(items) + r")\b", flags=re.IGNORECASE)


_ES_PATTERNS = (
    # articles, pronouns, prepositions
    _words(
        "el", "la", "los", "las", "un", "una", "de", "del", "al", "en", "con", "por",
        "para", "que", "y", "o", "pero", "si", "no", "se", "te", "me", "le", "lo",
        "su", "sus", "mi", "mis", "tu", "tus",
    ),
    # verbs
    _words(
        "es", "son", "está", "están", "tiene", "tienen", "hace", "hacen", "dice",
        "dicen", "va", "van", "viene", "vienen",
    ),
)
_ES_SUFFIXES = ("ción", "sión", "dad", "tad", "mente", "ando", "endo", "ado", "ido")

_EN_PATTERNS = (
    _words(
        "the", "a", "an", "and", "or", "but", "if", "of", "to", "in", "on", "at", "by",
        "for", "with", "from", "up", "about", "into", "through", "during", "before",
        "after", "above", "below", "between", "among", "this", "that", "these",
        "those", "i", "you", "he", "she", "it", "we", "they", "me", "him", "her",
        "us", "them", "my", "your", "his", "its", "our", "their",
    ),
    _words(
        "is", "are", "was", "were", "have", "has", "had", "do", "does", "did", "will",
        "would", "can", "could", "should", "may", "might", "must", "go", "goes",
        "went", "come", "comes", "came", "get", "gets", "got", "make", "makes",
        "made", "take", "takes", "took", "see", "sees", "saw", "know", "knows",
        "knew", "think", "thinks", "thought", "say", "says", "said", "tell",
        "tells", "told",
    ),
)
_EN_SUFFIXES = ("ing", "ed", "er", "est", "ly", "tion", "sion", "ness", "ment", "able", "ible")

_WORD = re.compile(r"[^\W\d_]+")
_ES_CHARS = re.compile(r"[ñáéíóúü¿¡]", flags=re.IGNORECASE)
_ES_CHAR_WEIGHT = 2
_INVERTED_PUNCT_BONUS = 3

_VERY_COMMON_ES = ("que", "de", "la", "el", "y", "es", "en", "un", "se", "no")
_VERY_COMMON_EN = ("the", "and", "of", "to", "a", "in", "is", "it", "you", "that")


def _suffix_hits(words: list[str], suffixes: tuple[str, ...]) -> int:
    # A suffix only counts when something precedes it in the word.
    return sum(1 for w in words if any(len(w) > len(s) and w.endswith(s) for s in suffixes))


def score(text: str) -> tuple[int, int]:
    """Return the (spanish, english) weighted scores for ``text``."""
    text = text or ""
    words = [w.lower() for w in _WORD.findall(text)]

    es = sum(len(p.findall(text)) for p in _ES_PATTERNS) + _suffix_hits(words, _ES_SUFFIXES)
    en = sum(len(p.findall(text)) for p in _EN_PATTERNS) + _suffix_hits(words, _EN_SUFFIXES)

    es += len(_ES_CHARS.findall(text)) * _ES_CHAR_WEIGHT
    if "¿" in text or "¡" in text:
        es += _INVERTED_PUNCT_BONUS

    if es == 0 and en == 0:
        lowered = text.lower()
        es += sum(1 for w in _VERY_COMMON_ES if w in lowered)
        en += sum(1 for w in _VERY_COMMON_EN if w in lowered)
    return es, en


def classify(text: str) -> Lang:
    es, en = score(text)
    # Ties go to English.
    return Lang.ES if es > en else Lang.EN
