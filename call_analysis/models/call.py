"""
Call models: prompt metadata, persisted objection rows, and processing results.
"""
from datetime import datetime
from typing import Any, Literal, Mapping, Optional, Union
from pydantic import BaseModel, Field


class CallMetadata(BaseModel):
    """Call fields shown to the model above the transcript."""
    call_id: Optional[str] = None
    call_type: Optional[str] = None
    closer_name: Optional[str] = None
    prospect_name: Optional[str] = None
    prospect_email: Optional[str] = None
    duration_minutes: Optional[float] = None

    @classmethod
    def from_call(cls, call: Mapping[str, Any]) -> "CallMetadata":
        """Build metadata from a call row (asyncpg.Record or dict)."""
        call_id = call.get("call_id")
        return cls(
            call_id=str(call_id) if call_id is not None else None,
            call_type=call.get("call_type"),
            closer_name=call.get("closer"),
            prospect_name=call.get("prospect_name"),
            prospect_email=call.get("prospect_email"),
            duration_minutes=call.get("duration_minutes"),
        )


class ObjectionRecord(BaseModel):
    """One stored objection row, derived from a NormalizedObjection."""
    objection_id: str
    call_id: str
    client_id: str
    closer_id: Optional[str] = None
    objection_type: str
    objection_text: str = ""
    resolved: bool = False
    resolution_text: Optional[str] = None
    resolution_method: Optional[str] = None
    timestamp_seconds: Optional[int] = None
    timestamp_minutes: Optional[float] = None
    created_at: datetime
    last_modified: datetime


class ProcessingSuccess(BaseModel):
    success: Literal[True] = True
    outcome: str
    scores: dict[str, Optional[float]] = Field(default_factory=dict)
    summary: str
    coaching_notes: Optional[str] = None
    objection_count: int = 0
    cost_usd: float = 0.0
    processing_time_ms: int


class ProcessingFailure(BaseModel):
    success: Literal[False] = False
    error: str
    processing_time_ms: int


ProcessingResult = Union[ProcessingSuccess, ProcessingFailure]
