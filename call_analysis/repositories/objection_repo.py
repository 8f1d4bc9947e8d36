"""
Objection repository - stores the objections extracted from each call.

One call has many objection rows. Reprocessing a call deletes its rows
before inserting the new ones.
"""
import asyncpg


class ObjectionRepository:
    """Repository for objection database operations."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def find_by_call_id(self, call_id: str, client_id: str) -> list[asyncpg.Record]:
        """All objections for a call, in transcript order."""
        return await self.pool.fetch(
            """
            SELECT objection_id, call_id, client_id, closer_id, objection_type,
                   objection_text, resolved, resolution_text, resolution_method,
                   timestamp_seconds, timestamp_minutes, created_at, last_modified
            FROM sales.objections
            WHERE call_id = $1 AND client_id = $2
            ORDER BY timestamp_seconds ASC NULLS LAST, created_at ASC
            """,
            call_id, client_id
        )

    async def create_many(self, records: list) -> None:
        """Insert a batch of ObjectionRecord rows."""
        if not records:
            return
        await self.pool.executemany(
            """
            INSERT INTO sales.objections
            (objection_id, call_id, client_id, closer_id, objection_type, objection_text,
             resolved, resolution_text, resolution_method, timestamp_seconds, timestamp_minutes,
             created_at, last_modified)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13)
            """,
            [
                (
                    r.objection_id,
                    r.call_id,
                    r.client_id,
                    r.closer_id,
                    r.objection_type,
                    r.objection_text,
                    r.resolved,
                    r.resolution_text,
                    r.resolution_method,
                    r.timestamp_seconds,
                    r.timestamp_minutes,
                    r.created_at,
                    r.last_modified,
                )
                for r in records
            ]
        )

    async def delete_by_call_id(self, call_id: str, client_id: str) -> int:
        """Delete all objections for a call. Returns count deleted."""
        result = await self.pool.execute(
            "DELETE FROM sales.objections WHERE call_id = $1 AND client_id = $2",
            call_id, client_id
        )
        # Result format: "DELETE N"
        return int(result.split()[-1])
