"""
Cost repository - one row per AI processing attempt.
"""
import asyncpg
from datetime import datetime
from typing import Optional

from call_analysis.models.tracking import CostRecord


class CostRepository:
    """Repository for AI cost tracking rows."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create(self, record: CostRecord) -> None:
        await self.pool.execute(
            """
            INSERT INTO sales.cost_tracking
            (cost_id, timestamp, client_id, call_id, model, input_tokens, output_tokens,
             input_cost_usd, output_cost_usd, total_cost_usd, processing_time_ms)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
            """,
            record.cost_id,
            record.timestamp,
            record.client_id,
            record.call_id,
            record.model,
            record.input_tokens,
            record.output_tokens,
            record.input_cost_usd,
            record.output_cost_usd,
            record.total_cost_usd,
            record.processing_time_ms,
        )

    async def get_totals(self, since: datetime, client_id: Optional[str] = None) -> Optional[asyncpg.Record]:
        """Count, total and average cost since a moment, optionally for one client."""
        conditions = ["timestamp >= $1"]
        params: list = [since]
        if client_id:
            conditions.append("client_id = $2")
            params.append(client_id)

        return await self.pool.fetchrow(
            f"""
            SELECT COUNT(*) AS total_calls_processed,
                   COALESCE(ROUND(SUM(total_cost_usd)::numeric, 2), 0)::float AS total_cost_usd,
                   COALESCE(ROUND(AVG(total_cost_usd)::numeric, 4), 0)::float AS avg_cost_per_call_usd
            FROM sales.cost_tracking
            WHERE {' AND '.join(conditions)}
            """,
            *params
        )

    async def get_by_client(self, since: datetime, client_id: Optional[str] = None) -> list[asyncpg.Record]:
        """Spend per client since a moment, highest first."""
        conditions = ["ct.timestamp >= $1"]
        params: list = [since]
        if client_id:
            conditions.append("ct.client_id = $2")
            params.append(client_id)

        return await self.pool.fetch(
            f"""
            SELECT ct.client_id, cl.company_name,
                   COUNT(*) AS calls,
                   ROUND(SUM(ct.total_cost_usd)::numeric, 2)::float AS cost_usd
            FROM sales.cost_tracking ct
            LEFT JOIN sales.clients cl ON ct.client_id = cl.client_id
            WHERE {' AND '.join(conditions)}
            GROUP BY ct.client_id, cl.company_name
            ORDER BY cost_usd DESC
            """,
            *params
        )
