# services/prompt_builder.py
from __future__ import annotations

from models import TripIntent


def build_structured_prompt(trip: TripIntent, original_text: str) -> str:
    """Turn a TripIntent into the ordered, per-city prompt sent to the LLM."""
    lines = [f"Generate a {trip.total_duration_days}-day travel itinerary with the following structure:", ""]

    if trip.origin:
        lines.append(f"DEPARTURE: From {trip.origin}")

    lines.append("")
    lines.append("DESTINATIONS (in order):")
    if not trip.destinations:
        lines.append("(none identified; infer them from the original request)")
    for idx, dest in enumerate(trip.destinations):
        lines.append(f"{dest.order}. {dest.name}: {dest.duration_days} days")
        if idx < len(trip.destinations) - 1:
            lines.append("   [Travel day between cities]")

    if trip.return_to:
        lines.append("")
        lines.append(f"RETURN: To {trip.return_to}")

    lines.append("")
    lines.append(f"TOTAL TRIP LENGTH: {trip.total_duration_days} days")
    lines.append("")
    lines.append(f"ORIGINAL REQUEST: {original_text}")
    if trip.destinations:
        lines.append("")
        lines.append(
            f"IMPORTANT: You MUST include ALL {len(trip.destinations)} destinations listed above "
            "in the exact order and duration specified."
        )
    return "\n".join(lines)
