"""
Call outcome, objection type, and scoring taxonomy.

The same Taxonomy instance drives both the prompt (what the model is told it
may answer) and the response parser (what is accepted), so the two can never
drift apart. To add or remove an outcome or objection type, edit the lists
below; prompt text and validation change together.
"""
from typing import Optional

from call_analysis.exceptions import TaxonomyError
from call_analysis.models.enums import CallOutcome, ObjectionCategory
from call_analysis.models.taxonomy import (
    ScoringLevel,
    ScoringRubric,
    ScoringScale,
    TaxonomyEntry,
)


# =============================================================================
# Default Data
# =============================================================================

CALL_OUTCOMES = (
    TaxonomyEntry(key=CallOutcome.CLOSED_WON.value, label="Closed - Won",
                  description="Prospect fully committed and purchased"),
    TaxonomyEntry(key=CallOutcome.DEPOSIT.value, label="Deposit",
                  description="Prospect made a partial payment with intent to pay remainder"),
    TaxonomyEntry(key=CallOutcome.FOLLOW_UP.value, label="Follow Up",
                  description="Prospect interested but did not commit, another call expected"),
    TaxonomyEntry(key=CallOutcome.LOST.value, label="Lost",
                  description="Prospect clearly declined or expressed no interest"),
    TaxonomyEntry(key=CallOutcome.DISQUALIFIED.value, label="Disqualified",
                  description="Prospect does not meet criteria for the offer"),
    TaxonomyEntry(key=CallOutcome.NOT_PITCHED.value, label="Not Pitched",
                  description="Closer spoke with prospect but chose not to pitch: prospect wasn't ready, "
                              "didn't qualify emotionally, or closer felt it wasn't the right time"),
)

OBJECTION_TYPES = (
    TaxonomyEntry(key=ObjectionCategory.FINANCIAL.value, label="Financial",
                  description="Price too high, can't afford, budget concerns, payment plan needed"),
    TaxonomyEntry(key=ObjectionCategory.SPOUSE.value, label="Spouse/Partner",
                  description="Need to talk to spouse, partner not on board, family decision"),
    TaxonomyEntry(key=ObjectionCategory.THINK_ABOUT.value, label="Think About It",
                  description="Need time to decide, want to think it over, not ready to commit today"),
    TaxonomyEntry(key=ObjectionCategory.TIMING.value, label="Timing",
                  description="Not the right time, too busy, want to wait, bad season"),
    TaxonomyEntry(key=ObjectionCategory.TRUST.value, label="Trust/Credibility",
                  description="Skeptical of results, seems too good to be true, want proof"),
    TaxonomyEntry(key=ObjectionCategory.ALREADY_TRIED.value, label="Already Tried",
                  description="Tried similar before and it didn't work, burned before"),
    TaxonomyEntry(key=ObjectionCategory.DIY.value, label="DIY",
                  description="Can do it myself, don't need help, have the skills already"),
    TaxonomyEntry(key=ObjectionCategory.NOT_READY.value, label="Not Ready",
                  description="Not at the right stage, need more preparation first"),
    TaxonomyEntry(key=ObjectionCategory.COMPETITOR.value, label="Competitor",
                  description="Considering other options, already working with someone, comparing"),
    TaxonomyEntry(key=ObjectionCategory.AUTHORITY.value, label="Authority",
                  description="Not the decision maker, need approval from boss/board/partner"),
    TaxonomyEntry(key=ObjectionCategory.VALUE.value, label="Value",
                  description="Don't see the value, not sure it's worth it, ROI unclear"),
    TaxonomyEntry(key=ObjectionCategory.COMMITMENT.value, label="Commitment",
                  description="Scared of long-term commitment, want flexibility, contract concerns"),
    TaxonomyEntry(key=ObjectionCategory.OTHER.value, label="Other",
                  description="Anything not fitting the above categories"),
)

SCORING_RUBRIC = ScoringRubric(
    scale=ScoringScale(min=1.0, max=10.0),
    levels=(
        ScoringLevel(range="1-3", label="Poor",
                     description="Major issues, fundamental problems, clearly unprepared or ineffective"),
        ScoringLevel(range="4-5", label="Below Average",
                     description="Notable gaps but some effort shown, needs significant improvement"),
        ScoringLevel(range="6-7", label="Average",
                     description="Competent but room for improvement, gets the job done"),
        ScoringLevel(range="8-9", label="Good",
                     description="Strong performance with only minor areas to improve"),
        ScoringLevel(range="10", label="Exceptional",
                     description="Textbook execution, masterful handling"),
    ),
    score_types=(
        TaxonomyEntry(key="discovery_score", label="Discovery",
                      description="How well the closer uncovered goals, pains, and situation"),
        TaxonomyEntry(key="pitch_score", label="Pitch",
                      description="How effectively the closer presented the offer"),
        TaxonomyEntry(key="close_attempt_score", label="Close Attempt",
                      description="How well the closer asked for the sale"),
        TaxonomyEntry(key="objection_handling_score", label="Objection Handling",
                      description="How well objections were addressed and overcome"),
        TaxonomyEntry(key="overall_call_score", label="Overall",
                      description="Holistic call quality considering all factors"),
        TaxonomyEntry(key="script_adherence_score", label="Script Adherence",
                      description="How closely the closer followed the script template"),
        TaxonomyEntry(key="prospect_fit_score", label="Prospect Fit",
                      description="How good a fit this prospect is for the offer"),
    ),
)


# =============================================================================
# Taxonomy
# =============================================================================

def _check_unique(entries: tuple[TaxonomyEntry, ...], name: str) -> None:
    seen: set[str] = set()
    for entry in entries:
        if entry.key in seen:
            raise TaxonomyError(f"Duplicate {name} key: {entry.key}")
        seen.add(entry.key)


class Taxonomy:
    """Immutable bundle of outcomes, objection types and rubric, with lookup tables.

    Build it once at startup and hand it to the ResponseParser, PromptBuilder
    and CallProcessor. Tests can build one from alternate fixtures.
    """

    def __init__(
        self,
        outcomes: tuple[TaxonomyEntry, ...] = CALL_OUTCOMES,
        objection_types: tuple[TaxonomyEntry, ...] = OBJECTION_TYPES,
        rubric: ScoringRubric = SCORING_RUBRIC,
        default_outcome_key: str = CallOutcome.FOLLOW_UP.value,
        fallback_objection_key: str = ObjectionCategory.OTHER.value,
    ):
        self.outcomes = tuple(outcomes)
        self.objection_types = tuple(objection_types)
        self.rubric = rubric

        _check_unique(self.outcomes, "outcome")
        _check_unique(self.objection_types, "objection type")
        _check_unique(self.rubric.score_types, "score type")
        if self.rubric.scale.min > self.rubric.scale.max:
            raise TaxonomyError(
                f"Scoring scale min {self.rubric.scale.min} is above max {self.rubric.scale.max}"
            )

        self._outcomes_by_key = {o.key: o for o in self.outcomes}
        self._objections_by_key = {o.key: o for o in self.objection_types}

        if default_outcome_key not in self._outcomes_by_key:
            raise TaxonomyError(f"Default outcome '{default_outcome_key}' is not a configured outcome")
        if fallback_objection_key not in self._objections_by_key:
            raise TaxonomyError(
                f"Fallback objection type '{fallback_objection_key}' is not a configured objection type"
            )

        self.default_outcome = self._outcomes_by_key[default_outcome_key]
        self.fallback_objection_key = fallback_objection_key

    @property
    def outcome_labels(self) -> list[str]:
        return [o.label for o in self.outcomes]

    @property
    def objection_keys(self) -> list[str]:
        return [o.key for o in self.objection_types]

    @property
    def score_keys(self) -> list[str]:
        return [s.key for s in self.rubric.score_types]

    @property
    def score_min(self) -> float:
        return self.rubric.scale.min

    @property
    def score_max(self) -> float:
        return self.rubric.scale.max

    def outcome_by_key(self, key: str) -> Optional[TaxonomyEntry]:
        return self._outcomes_by_key.get(key)

    def objection_type_by_key(self, key: str) -> Optional[TaxonomyEntry]:
        return self._objections_by_key.get(key)


_default_taxonomy: Optional[Taxonomy] = None


def default_taxonomy() -> Taxonomy:
    """Taxonomy built from the default data above (created on first use)."""
    global _default_taxonomy
    if _default_taxonomy is None:
        _default_taxonomy = Taxonomy()
    return _default_taxonomy
