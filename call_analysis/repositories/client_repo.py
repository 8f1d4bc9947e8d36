"""
Client repository - reads the tenant record with its prompt customization fields.
"""
import asyncpg
from typing import Optional


class ClientRepository:
    """Repository for client (tenant) database operations."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def find_by_id(self, client_id: str) -> Optional[asyncpg.Record]:
        """Get a client with the fields used to build its prompt section."""
        return await self.pool.fetchrow(
            """
            SELECT client_id, company_name, status,
                   offer_name, offer_price, offer_description,
                   script_template, disqualification_criteria, common_objections,
                   ai_prompt_overall, ai_prompt_discovery, ai_prompt_pitch,
                   ai_prompt_close, ai_prompt_objections, ai_context_notes
            FROM sales.clients
            WHERE client_id = $1
            """,
            client_id
        )
