"""
Unit tests for services/trip_intent_service.py

Covers the assembled TripIntent: the reference scenarios, the invariants
every result must hold, and the JSON shape.
"""
import pytest

import services.trip_intent_service as tis
from services.trip_intent_service import assemble, day_schedule


SAMPLE_REQUESTS = [
    "3 days in London",
    "Plan 3 weeks in Japan from Los Angeles. Visit Tokyo, Kyoto, and Osaka.",
    "2 weeks across London, Paris, Rome, and Barcelona",
    "weekend in Paris",
    "I like travelling",
    "a week in Paris and 3 days in Rome, then fly back to Boston.",
    "10 days exploring Europe from Chicago",
    "2 days visiting Oslo, Bergen, and Tromso",
    "",
    "Visit Paris, paris, PARIS",
]


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_single_city(self):
        trip = assemble("3 days in London")
        assert [(d.name, d.duration_days, d.order) for d in trip.destinations] == [("London", 3, 1)]
        assert trip.total_duration_days == 3

    def test_plan_visit_with_known_origin(self):
        trip = assemble("Plan 3 weeks in Japan from Los Angeles. Visit Tokyo, Kyoto, and Osaka.")
        assert trip.origin == "Los Angeles"
        assert trip.return_to == "Los Angeles"
        assert trip.destination_names == ["Tokyo", "Kyoto", "Osaka"]
        assert [d.duration_days for d in trip.destinations] == [7, 7, 7]
        assert trip.total_duration_days == 21

    def test_across_remainder(self):
        trip = assemble("2 weeks across London, Paris, Rome, and Barcelona")
        assert [d.duration_days for d in trip.destinations] == [4, 4, 3, 3]
        assert trip.total_duration_days == 14

    def test_weekend(self):
        trip = assemble("weekend in Paris")
        assert [(d.name, d.duration_days) for d in trip.destinations] == [("Paris", 2)]

    def test_nothing_recognizable(self):
        trip = assemble("I like travelling")
        assert trip.destinations == ()
        assert trip.total_duration_days == 7
        assert trip.origin == ""
        assert trip.is_low_confidence

    def test_explicit_return_city(self):
        trip = assemble("From Denver, a week in Paris and 3 days in Rome, then fly back to Boston.")
        assert trip.origin == "Denver"
        assert trip.return_to == "Boston"
        assert trip.destination_names == ["Paris", "Rome"]
        assert trip.total_duration_days == 10

    def test_return_city_followed_by_date(self):
        trip = assemble("Rome for 4 days, then fly back to Boston on May 5.")
        assert trip.return_to == "Boston"
        assert trip.destination_names == ["Rome"]
        assert trip.total_duration_days == 4


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------

class TestInvariants:
    @pytest.mark.parametrize("text", SAMPLE_REQUESTS)
    def test_total_at_least_one(self, text):
        assert assemble(text).total_duration_days >= 1

    @pytest.mark.parametrize("text", SAMPLE_REQUESTS)
    def test_orders_are_contiguous(self, text):
        trip = assemble(text)
        assert [d.order for d in trip.destinations] == list(range(1, len(trip.destinations) + 1))

    @pytest.mark.parametrize("text", SAMPLE_REQUESTS)
    def test_idempotent(self, text):
        assert assemble(text) == assemble(text)

    @pytest.mark.parametrize("text", SAMPLE_REQUESTS)
    def test_sum_matches_total(self, text):
        trip = assemble(text)
        if trip.destinations:
            assert sum(d.duration_days for d in trip.destinations) == trip.total_duration_days

    @pytest.mark.parametrize("text", SAMPLE_REQUESTS)
    def test_names_unique_ignoring_case(self, text):
        names = [d.name.lower() for d in assemble(text).destinations]
        assert len(names) == len(set(names))


class TestInputHandling:
    def test_none_input(self):
        trip = assemble(None)
        assert trip.destinations == ()
        assert trip.total_duration_days == 7

    def test_long_input_is_truncated(self, monkeypatch):
        monkeypatch.setattr(tis.settings, "MAX_INPUT_CHARS", 20)
        trip = assemble("3 days in London" + " filler" * 50 + " and 4 days in Paris")
        assert trip.destination_names == ["London"]

    def test_result_is_immutable(self):
        trip = assemble("3 days in London")
        with pytest.raises(Exception):
            trip.origin = "Paris"


# ---------------------------------------------------------------------------
# Serialization and schedule
# ---------------------------------------------------------------------------

class TestSerialization:
    def test_camel_case_json(self):
        data = assemble("3 days in London from Madrid").model_dump(mode="json", by_alias=True)
        assert data == {
            "origin": "Madrid",
            "destinations": [
                {"name": "London", "durationDays": 3, "durationText": "3 days", "order": 1},
            ],
            "returnTo": "Madrid",
            "totalDurationDays": 3,
        }


class TestDaySchedule:
    def test_cities_repeat_per_day(self, japan_trip):
        assert day_schedule(japan_trip) == ["Tokyo", "Tokyo", "Kyoto"]

    def test_empty_trip(self, empty_trip):
        assert day_schedule(empty_trip) == []
