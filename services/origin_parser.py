# services/origin_parser.py
from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from request_context import get_request_id
from services.place_names import KNOWN_MULTIWORD_CITIES, clean_place_name

log = logging.getLogger("parser")

# Keywords match in any case; the captured name must start uppercase.
_NAME = r"([A-Z][a-zA-Z\s]+?)"
_STOP_AFTER_ORIGIN = r"(?=\s*[.,]|\s+(?i:to|on|in|for)\b|\s*$)"

_KNOWN_ORIGIN_PATTERNS = tuple(
    (city, re.compile(r"(?i:\bfrom)\s+" + r"\s+".join(map(re.escape, city.split())) + r"\b"))
    for city in KNOWN_MULTIWORD_CITIES
)

_ORIGIN_PATTERNS = (
    re.compile(r"(?i:\bfrom)\s+" + _NAME + r"(?:[.,]|\s+(?i:to|on|in|next|this|for|plan|visit)\b)"),
    re.compile(r"(?i:\bfrom)\s+" + _NAME + r"\s*(?:[.,!?]|$)"),
    re.compile(r"(?i:\bdeparting\s+(?:from\s+)?)" + _NAME + _STOP_AFTER_ORIGIN),
    re.compile(r"(?i:\bleaving\s+(?:from\s+)?)" + _NAME + _STOP_AFTER_ORIGIN),
    re.compile(r"(?i:\bstarting\s+(?:from|in)\s+)" + _NAME + _STOP_AFTER_ORIGIN),
)

_RETURN_NAME = r"([A-Z][a-zA-Z\s]+?)(?=\s*[.,!?;]|\s+(?i:on|by|at|in|for|after|before)\b|\s*$)"
_RETURN_PATTERNS = (
    re.compile(r"(?i:\b(?:return|go\s+back|fly\s+back|head\s+back|back\s+home)\s+to)\s+" + _RETURN_NAME),
    re.compile(r"(?i:\bhome\s+(?:to|in))\s+" + _RETURN_NAME),
    re.compile(r"(?i:\bback\s+to)\s+" + _RETURN_NAME),
)

_STRAGGLER_RE = re.compile(r"\s+(?:visit|to|next|this)\b.*$", re.IGNORECASE)
_STOP_WORDS = frozenset({"visit", "to", "in", "for", "next", "this", "from", "plan"})


def _clean_match(raw: str) -> Optional[str]:
    """Trim a captured place; None when what's left is too short or a stop-word."""
    name = _STRAGGLER_RE.sub("", raw.strip().rstrip(",."))
    name = clean_place_name(name)
    if len(name) <= 2 or name.lower() in _STOP_WORDS:
        return None
    return name


def _first_match(text: str, patterns: Sequence[re.Pattern]) -> str:
    for pattern in patterns:
        m = pattern.search(text)
        if not m:
            continue
        name = _clean_match(m.group(1))
        if name:
            return name
    return ""


def extract_origin(text: str) -> str:
    """Departure city, or '' when the request doesn't say (the caller should ask)."""
    text = text or ""
    for city, pattern in _KNOWN_ORIGIN_PATTERNS:
        if pattern.search(text):
            log.info("Extracted known city origin", extra={"request_id": get_request_id(), "origin": city})
            return city

    origin = _first_match(text, _ORIGIN_PATTERNS)
    if origin:
        log.info("Extracted origin via pattern", extra={"request_id": get_request_id(), "origin": origin})
    else:
        log.warning("Could not extract origin, will ask user", extra={"request_id": get_request_id()})
    return origin


def extract_return(text: str) -> str:
    """Explicit return city ('fly back to X', 'home to X'), else ''."""
    return _first_match(text or "", _RETURN_PATTERNS)
