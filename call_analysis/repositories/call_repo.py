"""
Call repository - handles call record reads and updates.
"""
import asyncpg
from typing import Any, Optional

# Columns the pipeline is allowed to write; column names are interpolated into SQL
UPDATABLE_COLUMNS = frozenset({
    "attendance",
    "call_outcome",
    "processing_status",
    "processing_error",
    "ai_summary",
    "ai_feedback",
    "lost_reason",
    "transcript_text",
    "discovery_score",
    "pitch_score",
    "close_attempt_score",
    "objection_handling_score",
    "overall_call_score",
    "script_adherence_score",
    "prospect_fit_score",
})

CALL_COLUMNS = """
    call_id, client_id, closer_id, closer, prospect_name, prospect_email,
    call_type, duration_minutes, attendance, call_outcome,
    processing_status, processing_error, ai_summary, ai_feedback, lost_reason,
    discovery_score, pitch_score, close_attempt_score, objection_handling_score,
    overall_call_score, script_adherence_score, prospect_fit_score,
    transcript_text, created, last_modified
"""


class CallRepository:
    """Repository for call database operations. Every query is scoped by client_id."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def find_by_id(self, call_id: str, client_id: str) -> Optional[asyncpg.Record]:
        """Get a single call by ID within a client."""
        return await self.pool.fetchrow(
            f"""
            SELECT {CALL_COLUMNS}
            FROM sales.calls
            WHERE call_id = $1 AND client_id = $2
            """,
            call_id, client_id
        )

    async def update(self, call_id: str, client_id: str, fields: dict[str, Any]) -> None:
        """Update fields on a call and bump last_modified.

        Raises:
            ValueError: If a field is not an updatable call column
        """
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unknown call columns: {', '.join(sorted(unknown))}")

        set_parts = []
        params: list[Any] = []
        param_idx = 1
        for column, value in fields.items():
            set_parts.append(f"{column} = ${param_idx}")
            params.append(value)
            param_idx += 1
        set_parts.append("last_modified = NOW()")

        params.extend([call_id, client_id])
        await self.pool.execute(
            f"""
            UPDATE sales.calls
            SET {', '.join(set_parts)}
            WHERE call_id = ${param_idx} AND client_id = ${param_idx + 1}
            """,
            *params
        )

    async def find_errored(self, client_id: str) -> list[asyncpg.Record]:
        """Calls whose AI processing failed, most recently modified first."""
        return await self.pool.fetch(
            f"""
            SELECT {CALL_COLUMNS}
            FROM sales.calls
            WHERE client_id = $1 AND processing_status = 'error'
            ORDER BY last_modified DESC
            """,
            client_id
        )
