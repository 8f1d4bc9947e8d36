"""
Response parser: validation and normalization of the model's analysis.

The model sometimes returns slightly wrong values ("Financial Objection"
instead of "financial", a score of 11, JSON wrapped in a markdown fence).
This module:

1. Extracts the JSON object from the raw text (fences, preamble, postamble)
2. Parses it
3. Matches call_outcome against the configured outcomes
4. Matches every objection_type against the configured objection types
5. Clamps scores to the rubric scale
6. Fills defaults for missing fields

parse() never raises. Anything unusable comes back as a ParseFailure.
"""
import json
import logging
import math
import re
from typing import Any, Optional

from call_analysis.models.analysis import (
    NormalizedAnalysis,
    NormalizedObjection,
    ParseFailure,
    ParseResult,
    ParseSuccess,
)
from call_analysis.services.matching import (
    OBJECTION_TYPE_MATCHERS,
    OUTCOME_MATCHERS,
    match_entry,
)
from call_analysis.taxonomy import Taxonomy, default_taxonomy

logger = logging.getLogger(__name__)

NO_JSON_ERROR = "Could not extract valid JSON from AI response"
NOT_OBJECT_ERROR = "AI response is not a JSON object"
DEFAULT_SUMMARY = "No summary provided"

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def _normalize_string(value: Any, default: Optional[str]) -> Optional[str]:
    """Trimmed string, or the default for non-strings and blank strings."""
    if not isinstance(value, str):
        return default
    trimmed = value.strip()
    return trimmed if trimmed else default


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # int too large for a float
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _round_one_decimal(value: float) -> float:
    # Half-up, so 7.25 -> 7.3 rather than banker's rounding
    return math.floor(value * 10 + 0.5) / 10


class ResponseParser:
    """Turns raw model text into a NormalizedAnalysis for one taxonomy."""

    def __init__(self, taxonomy: Optional[Taxonomy] = None):
        self.taxonomy = taxonomy or default_taxonomy()

    def parse(self, raw_response: Any) -> ParseResult:
        """Parse and validate a model response.

        Args:
            raw_response: Raw text returned by the model

        Returns:
            ParseSuccess with the normalized data, or ParseFailure with an error
            message and the raw response
        """
        raw_text = raw_response if isinstance(raw_response, str) else None

        json_text = self.extract_json(raw_response)
        if json_text is None:
            return ParseFailure(error=NO_JSON_ERROR, raw_response=raw_text)

        try:
            parsed = json.loads(json_text)
        except (ValueError, RecursionError) as e:
            # ValueError covers JSONDecodeError and the int digit limit
            return ParseFailure(error=f"JSON parse error: {e}", raw_response=raw_text)

        if not isinstance(parsed, dict):
            return ParseFailure(error=NOT_OBJECT_ERROR, raw_response=raw_text)

        return ParseSuccess(data=self.normalize(parsed))

    @staticmethod
    def extract_json(raw: Any) -> Optional[str]:
        """Pull the JSON object text out of a model response.

        Handles markdown code fences, surrounding whitespace, and text before
        or after the object. Returns None when no object can be located.
        """
        if not isinstance(raw, str) or not raw:
            return None

        text = raw.strip()

        fence_match = _FENCE.search(text)
        if fence_match:
            text = fence_match.group(1).strip()

        if text.startswith("{"):
            return text

        first_brace = text.find("{")
        last_brace = text.rfind("}")
        if first_brace != -1 and last_brace > first_brace:
            return text[first_brace:last_brace + 1]

        return None

    def normalize(self, parsed: dict) -> NormalizedAnalysis:
        """Normalize every field of a parsed response independently."""
        return NormalizedAnalysis(
            call_outcome=self.normalize_outcome(parsed.get("call_outcome")),
            scores=self.normalize_scores(parsed.get("scores")),
            summary=_normalize_string(parsed.get("summary"), DEFAULT_SUMMARY),
            objections=self.normalize_objections(parsed.get("objections")),
            coaching_notes=_normalize_string(parsed.get("coaching_notes"), None),
            disqualification_reason=_normalize_string(parsed.get("disqualification_reason"), None),
        )

    def normalize_outcome(self, outcome: Any) -> str:
        """Match an outcome to a configured label, falling back to the default outcome."""
        match = match_entry(outcome, self.taxonomy.outcomes, OUTCOME_MATCHERS)
        if match:
            return match.label

        default_label = self.taxonomy.default_outcome.label
        logger.warning(f"Unknown AI outcome {outcome!r}, defaulting to {default_label}")
        return default_label

    def normalize_scores(self, scores: Any) -> dict[str, Optional[float]]:
        """Clamp every configured score to the scale.

        Missing or unusable scores are None; scores are never made up.
        """
        scale_min = self.taxonomy.score_min
        scale_max = self.taxonomy.score_max
        if not isinstance(scores, dict):
            scores = {}

        normalized: dict[str, Optional[float]] = {}
        for key in self.taxonomy.score_keys:
            value = _to_number(scores.get(key))
            if value is None:
                normalized[key] = None
                continue
            clamped = min(scale_max, max(scale_min, value))
            normalized[key] = _round_one_decimal(clamped)
        return normalized

    def normalize_objections(self, objections: Any) -> list[NormalizedObjection]:
        if not isinstance(objections, list):
            return []

        return [
            NormalizedObjection(
                objection_type=self.normalize_objection_type(o.get("objection_type")),
                objection_text=_normalize_string(o.get("objection_text"), ""),
                closer_response=_normalize_string(o.get("closer_response"), ""),
                was_overcome=bool(o.get("was_overcome")),
                timestamp_approximate=_normalize_string(o.get("timestamp_approximate"), None),
            )
            for o in objections
            if isinstance(o, dict)
        ]

    def normalize_objection_type(self, objection_type: Any) -> str:
        """Match an objection type to a configured key, falling back to the catch-all type."""
        match = match_entry(objection_type, self.taxonomy.objection_types, OBJECTION_TYPE_MATCHERS)
        if match:
            return match.key

        fallback = self.taxonomy.fallback_objection_key
        logger.warning(f"Unknown objection type {objection_type!r}, defaulting to {fallback}")
        return fallback
