"""
Taxonomy models: outcomes, objection types, and the scoring rubric.
"""
from pydantic import BaseModel, ConfigDict


class TaxonomyEntry(BaseModel):
    """One entry of a closed taxonomy list (outcome, objection type, or score type)."""
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    description: str


class ScoringScale(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float = 1.0
    max: float = 10.0


class ScoringLevel(BaseModel):
    """A band of the scale with its human description (e.g. '6-7: Average')."""
    model_config = ConfigDict(frozen=True)

    range: str
    label: str
    description: str


class ScoringRubric(BaseModel):
    model_config = ConfigDict(frozen=True)

    scale: ScoringScale = ScoringScale()
    levels: tuple[ScoringLevel, ...]
    score_types: tuple[TaxonomyEntry, ...]
