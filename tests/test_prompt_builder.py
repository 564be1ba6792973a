"""
Unit tests for services/prompt_builder.py
"""
from services.prompt_builder import build_structured_prompt


class TestBuildStructuredPrompt:
    def test_header_and_sections(self, japan_trip):
        prompt = build_structured_prompt(japan_trip, "Tokyo and Kyoto from LA")
        lines = prompt.splitlines()
        assert lines[0] == "Generate a 3-day travel itinerary with the following structure:"
        assert "DEPARTURE: From Los Angeles" in lines
        assert "RETURN: To Los Angeles" in lines
        assert "TOTAL TRIP LENGTH: 3 days" in lines
        assert "ORIGINAL REQUEST: Tokyo and Kyoto from LA" in lines

    def test_destinations_in_order_with_travel_days_between(self, japan_trip):
        lines = build_structured_prompt(japan_trip, "").splitlines()
        tokyo = lines.index("1. Tokyo: 2 days")
        kyoto = lines.index("2. Kyoto: 1 days")
        assert tokyo < kyoto
        assert lines[tokyo + 1] == "   [Travel day between cities]"
        assert lines.count("   [Travel day between cities]") == 1

    def test_all_destinations_required(self, japan_trip):
        prompt = build_structured_prompt(japan_trip, "")
        assert prompt.splitlines()[-1].startswith("IMPORTANT: You MUST include ALL 2 destinations")

    def test_empty_trip(self, empty_trip):
        prompt = build_structured_prompt(empty_trip, "somewhere warm")
        assert "DEPARTURE" not in prompt
        assert "RETURN" not in prompt
        assert "IMPORTANT" not in prompt
        assert "(none identified; infer them from the original request)" in prompt
        assert "TOTAL TRIP LENGTH: 7 days" in prompt
