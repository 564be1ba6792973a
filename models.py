from __future__ import annotations

from typing import List, Literal, Optional, Tuple
from pydantic import (
    BaseModel,
    Field,
    ConfigDict,
    field_validator,
    model_validator,
    conint,
)
from pydantic.alias_generators import to_camel

UNSPECIFIED_DURATION = "unspecified"
DEFAULT_TRIP_DAYS = 7

# -----------------------------
# Trip intent (extraction result)
# -----------------------------

class _CamelModel(BaseModel):
    """Immutable record serialized with camelCase keys (durationDays, returnTo, ...)."""
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

class Destination(_CamelModel):
    name: str = Field(min_length=1)
    duration_days: conint(ge=1)
    duration_text: str = Field(
        default=UNSPECIFIED_DURATION,
        description="Phrase the day count came from, or 'unspecified' when defaulted.",
    )
    order: conint(ge=1)

class TripIntent(_CamelModel):
    origin: str = Field(default="", description="Empty when the request names no departure city.")
    destinations: Tuple[Destination, ...] = ()
    return_to: str = ""
    total_duration_days: conint(ge=1) = DEFAULT_TRIP_DAYS

    @model_validator(mode="after")
    def _orders_contiguous(self) -> "TripIntent":
        orders = [d.order for d in self.destinations]
        if orders != list(range(1, len(orders) + 1)):
            raise ValueError(f"destination order must run 1..{len(orders)}, got {orders}")
        return self

    @property
    def destination_names(self) -> List[str]:
        return [d.name for d in self.destinations]

    @property
    def is_low_confidence(self) -> bool:
        return (
            not self.origin
            or not self.destinations
            or any(d.duration_text == UNSPECIFIED_DURATION for d in self.destinations)
        )

# -----------------------------
# Requests
# -----------------------------

class TripRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    text: str = Field(description="Free-text trip request, e.g. '3 days in London from Paris'.")

class TripPromptResponse(_CamelModel):
    trip_intent: TripIntent
    prompt: str

# -----------------------------
# Itinerary draft (LLM output)
# -----------------------------

class Activity(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str
    time_of_day: Optional[Literal["morning", "afternoon", "evening"]] = None
    place: Optional[str] = None
    description: Optional[str] = None

class DayPlan(BaseModel):
    model_config = ConfigDict(extra="forbid")

    day_index: conint(ge=1)
    city: str = ""
    summary: Optional[str] = None
    activities: List[Activity] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)

    @field_validator("activities", "notes", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return [] if v is None else v

class ItineraryPayload(BaseModel):
    """Shape the model is asked to return."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    daily_plan: List[DayPlan] = Field(default_factory=list)

class Meta(BaseModel):
    model_config = ConfigDict(extra="forbid")
    schema_version: str = "1.0.0"
    generated_at_iso: Optional[str] = None
    generator: str = "trip_intent@phase1"
    model: Optional[str] = None

class ItineraryDraft(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str
    total_days: conint(ge=1)
    trip: TripIntent
    daily_plan: List[DayPlan] = Field(default_factory=list)
    meta: Meta = Field(default_factory=Meta)

    @field_validator("daily_plan", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return [] if v is None else v

    @model_validator(mode="after")
    def _days_match_total(self) -> "ItineraryDraft":
        if len(self.daily_plan) != self.total_days:
            raise ValueError(f"daily_plan has {len(self.daily_plan)} days, expected {self.total_days}.")
        return self
