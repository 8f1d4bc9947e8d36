"""
Tests for the response parser: JSON extraction and normalization of model output.

Run with: pytest tests/test_response_parser.py -v
"""
import json
import sys

import pytest

from call_analysis.models.analysis import ParseFailure, ParseSuccess
from call_analysis.models.taxonomy import TaxonomyEntry
from call_analysis.services.response_parser import DEFAULT_SUMMARY, NO_JSON_ERROR, ResponseParser
from call_analysis.taxonomy import Taxonomy

SCORE_KEYS = [
    "discovery_score",
    "pitch_score",
    "close_attempt_score",
    "objection_handling_score",
    "overall_call_score",
    "script_adherence_score",
    "prospect_fit_score",
]

FULL_RESPONSE = {
    "call_outcome": "Lost",
    "scores": {
        "discovery_score": 7,
        "pitch_score": 6.5,
        "close_attempt_score": 4,
        "objection_handling_score": 5,
        "overall_call_score": 6,
        "script_adherence_score": None,
        "prospect_fit_score": 8,
    },
    "summary": "Prospect liked the program but could not justify the price.",
    "objections": [
        {
            "objection_type": "financial",
            "objection_text": "That's more than I can spend right now.",
            "closer_response": "Offered the payment plan.",
            "was_overcome": False,
            "timestamp_approximate": "00:31:10",
        }
    ],
    "coaching_notes": "Anchor value before revealing the price.",
    "disqualification_reason": None,
}


@pytest.fixture
def parser(taxonomy) -> ResponseParser:
    return ResponseParser(taxonomy)


def _data(result):
    assert isinstance(result, ParseSuccess), f"Expected success, got {result}"
    return result.data


class TestParse:
    """End-to-end parse() behaviour."""

    def test_key_form_outcome_and_clamped_score(self, parser: ResponseParser):
        raw = '{"call_outcome":"closed_won","scores":{"discovery_score":15},"objections":[]}'
        data = _data(parser.parse(raw))

        assert data.call_outcome == "Closed - Won"
        assert data.scores["discovery_score"] == 10.0
        for key in SCORE_KEYS[1:]:
            assert data.scores[key] is None, f"{key} should be None"
        assert data.objections == []

    def test_no_json_in_response(self, parser: ResponseParser):
        result = parser.parse("Sorry, I can't help.")

        assert isinstance(result, ParseFailure)
        assert result.success is False
        assert "Could not extract" in result.error
        assert result.raw_response == "Sorry, I can't help."

    @pytest.mark.parametrize("raw", [None, "", 42, {"call_outcome": "Lost"}])
    def test_non_text_input_fails_without_raising(self, parser: ResponseParser, raw):
        result = parser.parse(raw)

        assert isinstance(result, ParseFailure)
        assert result.error == NO_JSON_ERROR

    def test_invalid_json(self, parser: ResponseParser):
        result = parser.parse('{"call_outcome": "Lost", }')

        assert isinstance(result, ParseFailure)
        assert result.error.startswith("JSON parse error")

    def test_fenced_and_bare_json_parse_identically(self, parser: ResponseParser):
        bare = json.dumps(FULL_RESPONSE)
        fenced = f"```json\n{bare}\n```"

        assert _data(parser.parse(fenced)) == _data(parser.parse(bare))

    def test_fence_without_language_tag(self, parser: ResponseParser):
        bare = json.dumps(FULL_RESPONSE)

        assert _data(parser.parse(f"```\n{bare}\n```")) == _data(parser.parse(bare))

    def test_preamble_and_postamble_are_ignored(self, parser: ResponseParser):
        bare = json.dumps(FULL_RESPONSE)
        raw = f"Here is my analysis of the call:\n\n{bare}\n\nLet me know if you need more detail."

        assert _data(parser.parse(raw)) == _data(parser.parse(bare))

    def test_normalizing_normalized_output_is_a_no_op(self, parser: ResponseParser):
        first = _data(parser.parse(json.dumps(FULL_RESPONSE)))
        second = _data(parser.parse(first.model_dump_json()))

        assert second == first

    def test_full_response(self, parser: ResponseParser):
        data = _data(parser.parse(json.dumps(FULL_RESPONSE)))

        assert data.call_outcome == "Lost"
        assert data.scores["pitch_score"] == 6.5
        assert data.scores["script_adherence_score"] is None
        assert data.summary == FULL_RESPONSE["summary"]
        assert data.coaching_notes == "Anchor value before revealing the price."
        assert data.disqualification_reason is None
        assert len(data.objections) == 1
        assert data.objections[0].objection_type == "financial"
        assert data.objections[0].timestamp_approximate == "00:31:10"

    def test_empty_object_gets_defaults(self, parser: ResponseParser):
        data = _data(parser.parse("{}"))

        assert data.call_outcome == "Follow Up"
        assert data.summary == DEFAULT_SUMMARY
        assert data.objections == []
        assert data.coaching_notes is None
        assert set(data.scores) == set(SCORE_KEYS)
        assert all(v is None for v in data.scores.values())


class TestOutcomeNormalization:
    """call_outcome always lands in the configured label set."""

    @pytest.mark.parametrize("raw,expected", [
        ("Closed - Won", "Closed - Won"),
        ("closed - won", "Closed - Won"),
        ("closed_won", "Closed - Won"),
        ("Follow-up", "Follow Up"),
        ("not pitched", "Not Pitched"),
        ("  Deposit  ", "Deposit"),
        ("The prospect was Disqualified", "Disqualified"),
        ("won", "Closed - Won"),
    ])
    def test_recognized_outcomes(self, parser: ResponseParser, raw, expected):
        assert parser.normalize_outcome(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "banana", 7, ["Lost"], {"label": "Lost"}])
    def test_unrecognized_outcomes_default(self, parser: ResponseParser, raw):
        assert parser.normalize_outcome(raw) == "Follow Up"

    def test_any_string_maps_into_label_set(self, parser: ResponseParser, taxonomy):
        labels = set(taxonomy.outcome_labels)
        for raw in ["", "x", "LOST!!", "deposit paid", "???", "closed", "Closed-Won", "\n\t"]:
            assert parser.normalize_outcome(raw) in labels, f"{raw!r} escaped the label set"

    def test_fuzzy_match_takes_first_configured_entry(self):
        outcomes = (
            TaxonomyEntry(key="deal", label="Deal", description="A deal"),
            TaxonomyEntry(key="big_deal", label="Big Deal", description="A big deal"),
        )
        raw = "a big deal today"

        forward = ResponseParser(Taxonomy(outcomes=outcomes, default_outcome_key="deal"))
        reverse = ResponseParser(Taxonomy(outcomes=outcomes[::-1], default_outcome_key="deal"))

        assert forward.normalize_outcome(raw) == "Deal"
        assert reverse.normalize_outcome(raw) == "Big Deal"


class TestScoreNormalization:
    """Scores are clamped to the scale and rounded to one decimal."""

    def test_clamping_and_rounding(self, parser: ResponseParser):
        scores = parser.normalize_scores({
            "discovery_score": 15,
            "pitch_score": -3,
            "close_attempt_score": 7.25,
            "objection_handling_score": "8.5",
            "overall_call_score": 6.04,
            "script_adherence_score": 10,
            "prospect_fit_score": 1,
        })

        assert scores == {
            "discovery_score": 10.0,
            "pitch_score": 1.0,
            "close_attempt_score": 7.3,
            "objection_handling_score": 8.5,
            "overall_call_score": 6.0,
            "script_adherence_score": 10.0,
            "prospect_fit_score": 1.0,
        }

    @pytest.mark.parametrize("value", [None, "", "abc", True, False, [7], {"v": 7}])
    def test_unusable_values_are_none(self, parser: ResponseParser, value):
        scores = parser.normalize_scores({"discovery_score": value})

        assert scores["discovery_score"] is None

    def test_non_finite_values_are_none(self, parser: ResponseParser):
        data = _data(parser.parse('{"scores": {"pitch_score": NaN, "close_attempt_score": Infinity}}'))

        assert data.scores["pitch_score"] is None
        assert data.scores["close_attempt_score"] is None

    def test_integer_too_large_for_float_is_none(self, parser: ResponseParser):
        raw = '{"call_outcome":"Lost","scores":{"discovery_score":1' + "0" * 400 + "}}"

        data = _data(parser.parse(raw))

        assert data.call_outcome == "Lost"
        assert data.scores["discovery_score"] is None

    @pytest.mark.skipif(
        not getattr(sys, "get_int_max_str_digits", lambda: 0)(),
        reason="interpreter has no integer string conversion limit",
    )
    def test_integer_over_digit_limit_is_a_parse_failure(self, parser: ResponseParser):
        raw = '{"scores":{"discovery_score":1' + "0" * 5000 + "}}"

        result = parser.parse(raw)

        assert isinstance(result, ParseFailure)
        assert result.error.startswith("JSON parse error")
        assert result.raw_response == raw

    def test_unknown_score_keys_are_dropped(self, parser: ResponseParser):
        scores = parser.normalize_scores({"charisma_score": 9, "pitch_score": 5})

        assert "charisma_score" not in scores
        assert scores["pitch_score"] == 5.0

    @pytest.mark.parametrize("scores", [None, [], "7", 7])
    def test_non_object_scores(self, parser: ResponseParser, scores):
        normalized = parser.normalize_scores(scores)

        assert list(normalized) == SCORE_KEYS
        assert all(v is None for v in normalized.values())

    def test_every_number_lands_in_scale(self, parser: ResponseParser):
        for value in [-1e9, -1, 0, 0.04, 1, 5.55, 9.96, 10, 10.01, 1e9]:
            score = parser.normalize_scores({"pitch_score": value})["pitch_score"]
            assert 1.0 <= score <= 10.0, f"{value} normalized to {score}"
            assert round(score, 1) == score


class TestObjectionNormalization:
    """Objection types always land in the configured key set."""

    @pytest.mark.parametrize("raw,expected", [
        ("financial", "financial"),
        ("Think About It", "think_about"),
        ("think-about", "think_about"),
        ("Spouse/Partner", "spouse"),
        ("Financial Objection", "financial"),
        ("TIMING", "timing"),
        ("partner", "spouse"),
    ])
    def test_recognized_types(self, parser: ResponseParser, raw, expected):
        assert parser.normalize_objection_type(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "xyz", 3])
    def test_unrecognized_types_fall_back_to_other(self, parser: ResponseParser, raw):
        assert parser.normalize_objection_type(raw) == "other"

    def test_think_about_it_objection(self, parser: ResponseParser):
        raw = json.dumps({
            "call_outcome": "Follow Up",
            "objections": [{"objection_type": "Think About It", "timestamp_approximate": "00:25:00"}],
        })
        objection = _data(parser.parse(raw)).objections[0]

        assert objection.objection_type == "think_about"
        assert objection.timestamp_approximate == "00:25:00"
        assert objection.objection_text == ""
        assert objection.closer_response == ""
        assert objection.was_overcome is False

    def test_non_object_entries_are_skipped(self, parser: ResponseParser):
        objections = parser.normalize_objections(["financial", None, {"objection_type": "trust"}, 5])

        assert [o.objection_type for o in objections] == ["trust"]

    def test_non_list_objections(self, parser: ResponseParser):
        assert parser.normalize_objections({"objection_type": "trust"}) == []
        assert parser.normalize_objections(None) == []

    def test_blank_timestamp_becomes_none(self, parser: ResponseParser):
        objections = parser.normalize_objections([{"objection_type": "value", "timestamp_approximate": "  "}])

        assert objections[0].timestamp_approximate is None

    @pytest.mark.parametrize("value,expected", [
        (True, True),
        ("yes", True),
        (1, True),
        (False, False),
        (None, False),
        (0, False),
        ([], False),
        ({}, False),
    ])
    def test_was_overcome_uses_truthiness(self, parser: ResponseParser, value, expected):
        objections = parser.normalize_objections([{"objection_type": "value", "was_overcome": value}])

        assert objections[0].was_overcome is expected
