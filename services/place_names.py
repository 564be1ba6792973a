# services/place_names.py
from __future__ import annotations

import re
from typing import Dict, List, Tuple

# Multi-word cities that generic "from X" patterns tend to truncate.
KNOWN_MULTIWORD_CITIES: Tuple[str, ...] = (
    "Los Angeles", "New York", "San Francisco", "Las Vegas", "San Diego",
    "Buenos Aires", "Rio de Janeiro", "Mexico City", "Hong Kong", "New Delhi",
    "Kuala Lumpur", "Cape Town", "St Petersburg", "St Louis", "Salt Lake City",
    "Washington DC", "New Orleans", "El Paso", "Oklahoma City",
)

REGION_CITIES: Dict[str, Tuple[str, ...]] = {
    "europe": ("London", "Paris", "Rome", "Barcelona", "Amsterdam"),
    "asia": ("Tokyo", "Bangkok", "Singapore", "Hong Kong", "Seoul"),
    "america": ("New York", "Los Angeles", "Chicago", "Miami", "San Francisco"),
}

# Lowercase words allowed between two capitalized words of one name.
NAME_PARTICLES = frozenset({"de", "da", "del", "do", "dos", "das", "di", "du", "la", "le", "los", "las", "of", "y"})

# Connectors and verbs that precede a name but are never part of it (compared lowercased).
LEADING_NOISE = frozenset({
    "visit", "visiting", "plan", "explore", "exploring", "include", "spend",
    "then", "and", "also", "maybe", "finally", "plus", "from", "to", "in",
})

_LIST_SPLIT_RE = re.compile(r",\s*(?:and\s+)?|\s+and\s+|\s*&\s*")
_SENTENCE_END = ".;:!?"


def clean_place_name(raw: str) -> str:
    """
    Reduce a captured fragment to the place name it starts with.

    Keeps leading capitalized words (plus particles such as 'de' inside
    'Rio de Janeiro'), stops at the first comma, lowercase word or sentence end.
    """
    text = (raw or "").strip().split(",", 1)[0]
    words = text.split()
    while words and words[0].lower() in LEADING_NOISE:
        words.pop(0)

    kept: List[str] = []
    for i, word in enumerate(words):
        stripped = word.rstrip(_SENTENCE_END).strip("\"'()")
        if not stripped:
            break
        if stripped[0].isupper():
            kept.append(stripped)
        elif (
            stripped.lower() in NAME_PARTICLES
            and kept
            and i + 1 < len(words)
            and words[i + 1][:1].isupper()
        ):
            kept.append(stripped)
        else:
            break
        if stripped != word.strip("\"'()"):
            break
    return " ".join(kept)


def split_city_list(text: str) -> List[str]:
    """Split 'A, B, and C' into cleaned, case-insensitively unique names."""
    names: List[str] = []
    seen = set()
    for part in _LIST_SPLIT_RE.split(text or ""):
        name = clean_place_name(part)
        key = name.lower()
        if len(name) <= 1 or key in seen:
            continue
        seen.add(key)
        names.append(name)
    return names


def expand_region(region: str) -> List[str]:
    """Representative cities for a continent name; unknown regions stand for themselves."""
    cities = REGION_CITIES.get(region.strip().lower())
    return list(cities) if cities else [region]
