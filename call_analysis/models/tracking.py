"""
Cost tracking and audit log models.
"""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field


class CostRecord(BaseModel):
    """AI cost of one processing attempt."""
    cost_id: str
    timestamp: datetime
    client_id: str
    call_id: str
    model: str
    input_tokens: int
    output_tokens: int
    input_cost_usd: float
    output_cost_usd: float
    total_cost_usd: float
    processing_time_ms: Optional[int] = None


class CostSummary(BaseModel):
    """Aggregated spend for a period, optionally scoped to one client."""
    period: str
    total_calls_processed: int = 0
    total_cost_usd: float = 0.0
    avg_cost_per_call_usd: float = 0.0
    by_client: list[dict[str, Any]] = Field(default_factory=list)


class AuditEntry(BaseModel):
    """Append-only audit log row."""
    audit_id: str
    timestamp: datetime
    client_id: Optional[str] = None
    entity_type: str
    entity_id: str
    action: str
    field_changed: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    trigger_source: str
    trigger_detail: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
