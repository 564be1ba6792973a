"""
Unit tests for services/duration_parser.py
"""
import logging

import pytest

from services.duration_parser import normalize_duration


class TestWeekend:
    @pytest.mark.parametrize("phrase", ["weekend", "a weekend", "the weekend", "  Weekend "])
    def test_weekend_is_two_days(self, phrase):
        assert normalize_duration(phrase) == 2


class TestWeeks:
    @pytest.mark.parametrize("phrase,expected", [
        ("a week", 7),
        ("one week", 7),
        ("two weeks", 14),
        ("three weeks", 21),
        ("four weeks", 28),
        ("3 weeks", 21),
        ("2-week", 14),
    ])
    def test_counted_weeks(self, phrase, expected):
        assert normalize_duration(phrase) == expected

    def test_week_without_count_defaults_to_one_week(self):
        assert normalize_duration("weeks") == 7


class TestDaysAndNights:
    def test_days(self):
        assert normalize_duration("10 days") == 10

    def test_single_day(self):
        assert normalize_duration("1 day") == 1

    def test_hyphenated_day(self):
        assert normalize_duration("10-day") == 10

    def test_nights_count_as_days(self):
        assert normalize_duration("5 nights") == 5


class TestMonthAndFallback:
    def test_month(self):
        assert normalize_duration("a month") == 30

    def test_unparseable_falls_back_to_five_and_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="parser"):
            assert normalize_duration("a while") == 5
        assert any("fallback" in r.getMessage() for r in caplog.records)

    def test_empty_and_none(self):
        assert normalize_duration("") == 5
        assert normalize_duration(None) == 5
