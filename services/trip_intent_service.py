# services/trip_intent_service.py
from __future__ import annotations

import logging
from typing import Any, List

from config import settings
from models import DEFAULT_TRIP_DAYS, TripIntent
from request_context import get_request_id
from services.destination_parser import extract_destinations
from services.origin_parser import extract_origin, extract_return

log = logging.getLogger("parser")


def _bound_input(text: Any) -> str:
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)
    limit = settings.MAX_INPUT_CHARS
    if len(text) > limit:
        log.warning(
            "Trip request truncated",
            extra={"request_id": get_request_id(), "length": len(text), "max_length": limit},
        )
        text = text[:limit]
    return text


def assemble(text: str) -> TripIntent:
    """
    Build a TripIntent from one free-text message.

    Never raises: an unrecognizable request comes back with an empty origin
    and/or no destinations, and the caller decides whether to ask a follow-up.
    """
    message = _bound_input(text)
    log.info("Parsing trip request", extra={"request_id": get_request_id(), "input_length": len(message)})

    origin = extract_origin(message)
    return_to = extract_return(message) or origin
    destinations = extract_destinations(message, origin, return_to)

    total_days = sum(d.duration_days for d in destinations)
    if total_days == 0:
        log.warning(
            "Total days calculated is 0, using default",
            extra={"request_id": get_request_id(), "default_days": DEFAULT_TRIP_DAYS},
        )
        total_days = DEFAULT_TRIP_DAYS

    trip = TripIntent(
        origin=origin,
        destinations=tuple(destinations),
        return_to=return_to,
        total_duration_days=total_days,
    )
    log.info(
        "Trip intent assembled",
        extra={
            "request_id": get_request_id(),
            "origin": trip.origin,
            "destination_count": len(trip.destinations),
            "return_to": trip.return_to,
            "total_days": trip.total_duration_days,
        },
    )
    return trip


def day_schedule(trip: TripIntent) -> List[str]:
    """City for each trip day, in visiting order."""
    schedule: List[str] = []
    for dest in trip.destinations:
        schedule.extend([dest.name] * dest.duration_days)
    return schedule
