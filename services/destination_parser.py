# services/destination_parser.py
"""
Ordered destination extraction from a free-text trip request.

Stages are tried top to bottom and the first one that yields at least one
destination wins:

  1. "Plan 3 weeks in Japan ... Visit Tokyo, Kyoto, and Osaka"
  2. "Include Bangkok, Singapore, and Bali"
  3. "Visit London, Paris, and Rome"
  4. "2 weeks across London, Paris, Rome"
  5. "10 days exploring Europe" / "... exploring Hawaii, Fiji, and New Zealand"
  6. "30 days visiting Lima, Cusco, and Santiago"
  7. every per-phrase match ("3 days in London", "weekend in Paris", ...)
  8. the first "in/to/visit/explore City" anywhere

List stages (1-6) split one total across the named cities: integer division,
with the remainder handed out one day each to the first cities.
"""
from __future__ import annotations

import logging
import re
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

from models import UNSPECIFIED_DURATION, Destination
from request_context import get_request_id
from services.duration_parser import normalize_duration
from services.place_names import clean_place_name, expand_region, split_city_list

log = logging.getLogger("parser")

DEFAULT_STAY_DAYS = 7

# --- shared fragments (keywords case-insensitive, names must start uppercase) ---
_TOTAL = r"(\b\d+[\s-]*(?i:days?|weeks?)\b)"
_WORD_TOTAL = r"(\b(?:\d+|(?i:an?|one|two|three|four))[\s-]*(?i:days?|weeks?)\b)"
_LIST = r"([A-Z][^.!?;\n]*)"
_CITY = r"([A-Z][a-zA-Z\s]*?)(?=\s+(?i:from|then|after|and|before|for|on|in|with)\b|\s*[,.;:!?]|\s*$)"
_DURATION = r"(?i:\d+[\s-]*(?:days?|nights?|weeks?)|(?:an?|one|two|three|four)\s+weeks?|(?:(?:a|the)\s+)?weekend|an?\s+month)\b"

_PLAN_VISIT_RE = re.compile(r"(?i:\bplan)\s+" + _TOTAL + r"\s+(?i:in)\s+[A-Z][a-zA-Z]+.*?(?i:\bvisit)\s+(.+?)(?:\.|$)", re.DOTALL)
_INCLUDE_RE = re.compile(r"(?i:\binclude)\s+" + _LIST)
_VISIT_LIST_RE = re.compile(r"\bVisit\s+" + _LIST)
_ACROSS_RE = re.compile(_TOTAL + r"\s+(?i:across)\s+" + _LIST)
_EXPLORING_RE = re.compile(_WORD_TOTAL + r"\s+(?i:exploring)\s+" + _LIST)
_VISITING_RE = re.compile(_TOTAL + r"\s+(?i:visiting)\s+" + _LIST)

_ANY_TOTAL_RE = re.compile(r"\b\d+[\s-]*(?i:days?|weeks?)\b")
_ANY_DURATION_RE = re.compile(r"\b" + _DURATION)
_LOOSE_PLACE_RE = re.compile(r"\b(?:in|to|visit|explore)\s+([A-Z][a-zA-Z\s,]*)")
_TRAILING_FROM_RE = re.compile(r"\s+(?i:from)\s+.*$", re.DOTALL)

# which capture group holds the duration vs the city
DURATION_FIRST = "duration_city"
CITY_FIRST = "city_duration"
CITY_ONLY = "city"


class _Phrase(NamedTuple):
    pattern: re.Pattern
    layout: str


_PHRASES: Tuple[_Phrase, ...] = (
    _Phrase(re.compile(r"\b(\d+[\s-]*(?i:days?|nights?))\s+(?i:in)\s+" + _CITY), DURATION_FIRST),
    _Phrase(re.compile(r"\b((?:\d+|(?i:an?|one|two|three|four))\s+(?i:weeks?))\s+(?i:in)\s+" + _CITY), DURATION_FIRST),
    _Phrase(re.compile(r"\b((?i:weekend))\s+(?i:in)\s+" + _CITY), DURATION_FIRST),
    _Phrase(re.compile(r"\b((?i:weekend))\s+(?i:trip\s+to)\s+" + _CITY), DURATION_FIRST),
    _Phrase(re.compile(r"(?i:\b(?:visit|explore))\s+" + _CITY + r"\s+(?i:for)\s+(" + _DURATION + r")"), CITY_FIRST),
    _Phrase(re.compile(r"(?i:\bspend)\s+(" + _DURATION + r")\s+(?i:in)\s+" + _CITY), DURATION_FIRST),
    _Phrase(re.compile(r"(?:^|(?<=[,\s]))([A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)?)\s+(?i:for)\s+(\d+[\s-]*(?i:days?))\b"), CITY_FIRST),
    _Phrase(re.compile(r"(?i:\b(?:travel|fly|go)\s+to)\s+" + _CITY), CITY_ONLY),
)


class _Context(NamedTuple):
    text: str
    origin: str
    return_to: str

    def excludes(self, name: str) -> bool:
        key = name.lower()
        return bool(key) and key in {self.origin.lower(), self.return_to.lower()}


class _Stop(NamedTuple):
    name: str
    days: int
    duration_text: str


def _days_label(days: int) -> str:
    return f"{days} day" if days == 1 else f"{days} days"


def _distribute(cities: Sequence[str], total_days: int, defaulted: bool = False) -> List[_Stop]:
    """Split total_days over cities, remainder to the first ones; every city keeps >= 1 day."""
    if not cities:
        return []
    per_city, remainder = divmod(total_days, len(cities))
    if per_city == 0:
        log.warning(
            "More cities than days, giving each city at least one day",
            extra={"request_id": get_request_id(), "city_count": len(cities), "total_days": total_days},
        )
    stops: List[_Stop] = []
    for index, city in enumerate(cities):
        days = max(1, per_city + (1 if index < remainder else 0))
        stops.append(_Stop(city, days, UNSPECIFIED_DURATION if defaulted else _days_label(days)))
    return stops


def _total_from_text(text: str) -> Tuple[int, bool]:
    """First 'N days/weeks' anywhere in the text; (DEFAULT_STAY_DAYS, True) when absent."""
    m = _ANY_TOTAL_RE.search(text)
    if not m:
        return DEFAULT_STAY_DAYS, True
    return normalize_duration(m.group(0)), False


def _list_text(raw: str) -> str:
    return _TRAILING_FROM_RE.sub("", raw.strip())


# ----------------------------
# Stages
# ----------------------------

def _plan_visit(ctx: _Context) -> List[_Stop]:
    m = _PLAN_VISIT_RE.search(ctx.text)
    if not m:
        return []
    return _distribute(split_city_list(m.group(2)), normalize_duration(m.group(1)))


def _listed_with_total_from_text(pattern: re.Pattern) -> Callable[[_Context], List[_Stop]]:
    def stage(ctx: _Context) -> List[_Stop]:
        m = pattern.search(ctx.text)
        if not m:
            return []
        cities = split_city_list(_list_text(m.group(1)))
        if not cities:
            return []
        total, defaulted = _total_from_text(ctx.text)
        return _distribute(cities, total, defaulted)
    return stage


def _listed_with_captured_total(pattern: re.Pattern) -> Callable[[_Context], List[_Stop]]:
    def stage(ctx: _Context) -> List[_Stop]:
        m = pattern.search(ctx.text)
        if not m:
            return []
        return _distribute(split_city_list(_list_text(m.group(2))), normalize_duration(m.group(1)))
    return stage


def _exploring(ctx: _Context) -> List[_Stop]:
    m = _EXPLORING_RE.search(ctx.text)
    if not m:
        return []
    total = normalize_duration(m.group(1))
    named = split_city_list(_list_text(m.group(2)))
    if len(named) > 1:
        return _distribute(named, total)
    if not named:
        return []

    # a single name is either a region or one city
    region = named[0]
    cities = expand_region(region)
    log.info(
        "Expanded region into cities",
        extra={"request_id": get_request_id(), "region": region, "cities": cities},
    )
    return _distribute(cities, total)


def _phrase_scan(ctx: _Context) -> List[_Stop]:
    """All per-phrase matches, in the order their cities appear in the text."""
    found: List[Tuple[int, int, str, Optional[str]]] = []
    for priority, phrase in enumerate(_PHRASES):
        for m in phrase.pattern.finditer(ctx.text):
            if phrase.layout == DURATION_FIRST:
                city_group, duration_text = 2, m.group(1)
            elif phrase.layout == CITY_FIRST:
                city_group, duration_text = 1, m.group(2)
            else:
                city_group, duration_text = 1, None
            found.append((m.start(city_group), priority, m.group(city_group), duration_text))
    found.sort(key=lambda item: item[:2])

    stops: List[_Stop] = []
    seen = set()
    for _, _, raw_city, duration_text in found:
        name = clean_place_name(raw_city)
        key = name.lower()
        if len(name) <= 1 or key in seen or ctx.excludes(name):
            continue
        seen.add(key)
        if duration_text:
            stops.append(_Stop(name, max(1, normalize_duration(duration_text)), duration_text.strip()))
        else:
            stops.append(_Stop(name, DEFAULT_STAY_DAYS, UNSPECIFIED_DURATION))
    return stops


def _last_resort(ctx: _Context) -> List[_Stop]:
    for m in _LOOSE_PLACE_RE.finditer(ctx.text):
        name = clean_place_name(m.group(1))
        if len(name) <= 1 or ctx.excludes(name):
            continue
        duration = _ANY_DURATION_RE.search(ctx.text)
        if duration:
            return [_Stop(name, max(1, normalize_duration(duration.group(0))), duration.group(0))]
        return [_Stop(name, normalize_duration("one week"), UNSPECIFIED_DURATION)]
    return []


_STAGES: Tuple[Tuple[str, Callable[[_Context], List[_Stop]]], ...] = (
    ("plan_visit", _plan_visit),
    ("include", _listed_with_total_from_text(_INCLUDE_RE)),
    ("visit_list", _listed_with_total_from_text(_VISIT_LIST_RE)),
    ("across", _listed_with_captured_total(_ACROSS_RE)),
    ("exploring", _exploring),
    ("visiting", _listed_with_captured_total(_VISITING_RE)),
    ("phrases", _phrase_scan),
    ("last_resort", _last_resort),
)


def extract_destinations(text: str, origin: str = "", return_to: str = "") -> List[Destination]:
    ctx = _Context(text or "", origin or "", return_to or "")
    for stage_name, stage in _STAGES:
        stops = stage(ctx)
        if not stops:
            continue
        destinations = [
            Destination(name=s.name, duration_days=s.days, duration_text=s.duration_text, order=i)
            for i, s in enumerate(stops, start=1)
        ]
        log.info(
            "Destinations extracted",
            extra={
                "request_id": get_request_id(),
                "stage": stage_name,
                "destinations": [f"{d.name} ({d.duration_days} days)" for d in destinations],
            },
        )
        return destinations

    log.info("No destinations found", extra={"request_id": get_request_id()})
    return []
