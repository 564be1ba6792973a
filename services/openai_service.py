# services/openai_service.py
from __future__ import annotations

import copy
import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from fastapi import HTTPException
from openai import OpenAI

from config import settings
from models import ItineraryDraft, ItineraryPayload, Meta, TripIntent
from request_context import get_request_id
from services.cache import TTLCache
from services.prompt_builder import build_structured_prompt
from services.trip_intent_service import day_schedule

log = logging.getLogger("llm")

SYSTEM_PROMPT = """You are an expert multi-city travel planner.

Return strictly VALID JSON with the keys `title` and `daily_plan`.
IMPORTANT:
- `daily_plan` has exactly one entry per trip day, `day_index` starting at 1.
- Each day names the `city` it is spent in; follow the destination order and day counts you are given.
- Each activity has a `title`, and where known a `time_of_day` (morning, afternoon or evening), a `place` and a short `description`.
- No markdown, no prose. JSON only.

Planning rules:
- Group each day's activities by time of day and keep them in one part of the city.
- Include at least 3 activities per day with at least one food stop.
- On a day that moves between cities, keep the plan light and mention the transfer in `notes`.
"""

_TIME_OF_DAY_RANK = {"morning": 0, "afternoon": 1, "evening": 2}

# ---------- strict schema for structured outputs ----------
def _make_nullable(prop_schema: Dict[str, Any]) -> Dict[str, Any]:
    if "anyOf" in prop_schema and any(s.get("type") == "null" for s in prop_schema["anyOf"] if isinstance(s, dict)):
        return prop_schema
    if prop_schema.get("type") == "null":
        return prop_schema
    return {"anyOf": [prop_schema, {"type": "null"}]}

def _strictify(node: Any) -> None:
    """Structured outputs need every property required and no extras; optional ones become nullable."""
    if isinstance(node, dict):
        if node.get("type") == "object" and "properties" in node:
            props: Dict[str, Any] = node["properties"]
            optional = set(props) - set(node.get("required", []))
            node["required"] = list(props)
            node["additionalProperties"] = False
            for name in optional:
                props[name] = _make_nullable(props[name])
        node.pop("default", None)
        for v in node.values():
            _strictify(v)
    elif isinstance(node, list):
        for item in node:
            _strictify(item)

def build_openai_strict_schema() -> Dict[str, Any]:
    schema = copy.deepcopy(ItineraryPayload.model_json_schema())
    _strictify(schema)
    return schema

# ---------- response normalization ----------
def _strip_code_fences(s: str | None) -> str:
    if not s:
        return ""
    t = s.strip()
    if t.startswith("```"):
        parts = t.split("```")
        if len(parts) >= 3:
            body = parts[1].strip()
            return body[4:].lstrip() if body.lower().startswith("json") else body
    return t

def _unwrap_root(candidate: Any) -> Any:
    if isinstance(candidate, dict) and len(candidate) == 1:
        k = next(iter(candidate.keys()))
        if k in {"itinerary", "plan", "data", "result"}:
            return candidate[k]
    return candidate

def _sanitize_activities(activities: Any) -> List[Dict[str, Any]]:
    if not isinstance(activities, list):
        return []
    clean: List[Dict[str, Any]] = []
    for a in activities:
        if isinstance(a, str) and a.strip():
            clean.append({"title": a.strip()})
            continue
        if not isinstance(a, dict) or not a.get("title"):
            continue
        tod = a.get("time_of_day")
        tod = tod.strip().lower() if isinstance(tod, str) else None
        clean.append({
            "title": str(a["title"]),
            "time_of_day": tod if tod in _TIME_OF_DAY_RANK else None,
            "place": a.get("place") if isinstance(a.get("place"), str) else None,
            "description": a.get("description") if isinstance(a.get("description"), str) else None,
        })
    # stable: untimed activities keep their place after the timed ones
    return sorted(clean, key=lambda act: _TIME_OF_DAY_RANK.get(act.get("time_of_day"), len(_TIME_OF_DAY_RANK)))

def normalize_draft_payload(trip: TripIntent, raw: Any) -> Dict[str, Any]:
    """
    Coerce whatever JSON the model returned into ItineraryDraft fields.

    Days are renumbered, each day's city is taken from the extracted
    destination schedule when there is one, and the plan is padded or
    trimmed to the trip's total length.
    """
    candidate = _unwrap_root(raw)
    days_raw: Any = []
    title = None
    if isinstance(candidate, dict):
        days_raw = candidate.get("daily_plan") or candidate.get("days") or candidate.get("itinerary") or []
        title = candidate.get("title")
    elif isinstance(candidate, list):
        days_raw = candidate
    if not isinstance(days_raw, list):
        days_raw = []

    total = trip.total_duration_days
    schedule = day_schedule(trip)

    clean_days: List[Dict[str, Any]] = []
    for day in days_raw:
        if len(clean_days) >= total:
            break
        if not isinstance(day, dict):
            continue
        idx = len(clean_days) + 1
        llm_city = day.get("city") if isinstance(day.get("city"), str) else ""
        clean_days.append({
            "day_index": idx,
            "city": schedule[idx - 1] if idx <= len(schedule) else llm_city,
            "summary": day.get("summary") if isinstance(day.get("summary"), str) else None,
            "activities": _sanitize_activities(day.get("activities") or day.get("plans")),
            "notes": [n for n in (day.get("notes") or []) if isinstance(n, str)],
        })

    while len(clean_days) < total:
        idx = len(clean_days) + 1
        clean_days.append({
            "day_index": idx,
            "city": schedule[idx - 1] if idx <= len(schedule) else "",
            "summary": None,
            "activities": [],
            "notes": [],
        })

    if not isinstance(title, str) or not title.strip():
        names = ", ".join(trip.destination_names) or "your destination"
        title = f"{total}-day trip to {names}"

    return {"title": title, "total_days": total, "trip": trip, "daily_plan": clean_days}

# ---------- generation ----------
def _cache_key(prompt: str) -> str:
    digest = hashlib.sha256(prompt.encode("utf-8")).hexdigest()
    return f"{settings.OPENAI_MODEL}:{digest}"

def generate_itinerary(
    trip: TripIntent,
    original_text: str,
    *,
    client: Optional[Any] = None,
    cache: Optional[TTLCache] = None,
    progress: Optional[Callable[[str], None]] = None,
) -> ItineraryDraft:
    """
    Ask the LLM for a day-by-day draft of an extracted trip.

    Tries structured outputs first and falls back to JSON mode; raises
    HTTPException(502) when neither yields a usable plan.
    """
    rid = get_request_id()

    def p(msg: str) -> None:
        if progress is None:
            return
        try:
            progress(msg)
        except Exception:
            log.debug("Progress callback failed", extra={"request_id": rid}, exc_info=True)

    if client is None:
        if not settings.OPENAI_API_KEY:
            raise HTTPException(status_code=500, detail="OpenAI API key not configured.")
        client = OpenAI(api_key=settings.OPENAI_API_KEY)

    prompt = build_structured_prompt(trip, original_text)
    key = _cache_key(prompt)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            p("Using cached itinerary")
            log.info("Itinerary cache hit", extra={"request_id": rid, "total_days": trip.total_duration_days})
            return cached

    modes = (
        ("structured", {
            "type": "json_schema",
            "json_schema": {"name": "ItineraryPayload", "schema": build_openai_strict_schema(), "strict": True},
        }),
        ("json_mode", {"type": "json_object"}),
    )

    for mode, response_format in modes:
        try:
            p(f"Calling OpenAI ({mode})")
            chat = client.chat.completions.create(
                model=settings.OPENAI_MODEL,
                temperature=settings.LLM_TEMPERATURE,
                response_format=response_format,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
            p(f"OpenAI returned ({mode})")
            content = _strip_code_fences(chat.choices[0].message.content)
            raw = json.loads(content)
            draft = ItineraryDraft.model_validate(normalize_draft_payload(trip, raw))
        except Exception:
            log.warning("LLM %s generation failed", mode, extra={"request_id": rid, "model": settings.OPENAI_MODEL}, exc_info=True)
            p(f"{mode} failed")
            continue

        draft = draft.model_copy(update={
            "meta": Meta(generated_at_iso=datetime.now(timezone.utc).isoformat(), model=settings.OPENAI_MODEL),
        })

        total_acts = sum(len(d.activities) for d in draft.daily_plan)
        if total_acts == 0:
            log.warning("Itinerary has 0 activities after validation", extra={"request_id": rid, "days": len(draft.daily_plan)})

        log.info("Itinerary draft validated", extra={"request_id": rid, "mode": mode, "days": len(draft.daily_plan), "activities_total": total_acts})
        p("Validation complete")
        if cache is not None:
            cache.set(key, draft, settings.LLM_CACHE_TTL_SECONDS)
        return draft

    log.error("OpenAI itinerary generation failed", extra={"request_id": rid})
    p("Error: LLM generation failed")
    raise HTTPException(status_code=502, detail="LLM generation failed")
