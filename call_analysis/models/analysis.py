"""
Analysis models: the normalized AI result and the parser's tagged result.
"""
from typing import Literal, Optional, Union
from pydantic import BaseModel, Field


class NormalizedObjection(BaseModel):
    """An objection after type matching and defaults."""
    objection_type: str = "other"
    objection_text: str = ""
    closer_response: str = ""
    was_overcome: bool = False
    timestamp_approximate: Optional[str] = None


class NormalizedAnalysis(BaseModel):
    """Schema-conformant analysis of one call.

    call_outcome is always a configured outcome label and scores holds every
    configured score key (None when the model gave no usable value).
    """
    call_outcome: str
    scores: dict[str, Optional[float]] = Field(default_factory=dict)
    summary: str = "No summary provided"
    objections: list[NormalizedObjection] = Field(default_factory=list)
    coaching_notes: Optional[str] = None
    disqualification_reason: Optional[str] = None


class ParseSuccess(BaseModel):
    success: Literal[True] = True
    data: NormalizedAnalysis


class ParseFailure(BaseModel):
    success: Literal[False] = False
    error: str
    raw_response: Optional[str] = None


ParseResult = Union[ParseSuccess, ParseFailure]
