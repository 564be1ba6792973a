# services/duration_parser.py
from __future__ import annotations

import logging
import re

from request_context import get_request_id

log = logging.getLogger("parser")

WEEKEND_DAYS = 2
DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30
FALLBACK_DAYS = 5

_WEEKEND_PHRASES = frozenset({"weekend", "a weekend", "the weekend"})
_COUNT_WORDS = {"a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4}

_WEEK_RE = re.compile(r"\b(\d+|an?|one|two|three|four)[\s-]*weeks?\b")
_DAY_RE = re.compile(r"(\d+)[\s-]*days?\b")
_NIGHT_RE = re.compile(r"(\d+)[\s-]*nights?\b")


def normalize_duration(text: str) -> int:
    """
    Convert a duration phrase ('a week', '10-day', '5 nights', 'weekend') to days.

    Rules are tried in priority order; an unrecognized phrase falls back to
    FALLBACK_DAYS and is logged as a low-confidence guess.
    """
    phrase = (text or "").strip().lower()

    if phrase in _WEEKEND_PHRASES:
        return WEEKEND_DAYS

    if "week" in phrase:
        m = _WEEK_RE.search(phrase)
        if not m:
            return DAYS_PER_WEEK
        count = m.group(1)
        return (_COUNT_WORDS.get(count) or int(count)) * DAYS_PER_WEEK

    m = _DAY_RE.search(phrase)
    if m:
        return int(m.group(1))

    # nights count as days here
    m = _NIGHT_RE.search(phrase)
    if m:
        return int(m.group(1))

    if "month" in phrase:
        return DAYS_PER_MONTH

    log.warning(
        "Could not parse duration, using fallback",
        extra={"request_id": get_request_id(), "duration_phrase": text, "fallback_days": FALLBACK_DAYS},
    )
    return FALLBACK_DAYS
