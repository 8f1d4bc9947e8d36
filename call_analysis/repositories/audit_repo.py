"""
Audit log repository - append-only history of changes to calls and other entities.
"""
import asyncpg
import json

from call_analysis.models.tracking import AuditEntry


class AuditRepository:
    """Repository for audit log entries. Entries are never updated or deleted."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create(self, entry: AuditEntry) -> None:
        await self.pool.execute(
            """
            INSERT INTO sales.audit_log
            (audit_id, timestamp, client_id, entity_type, entity_id, action,
             field_changed, old_value, new_value, trigger_source, trigger_detail, metadata)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
            """,
            entry.audit_id,
            entry.timestamp,
            entry.client_id,
            entry.entity_type,
            entry.entity_id,
            entry.action,
            entry.field_changed,
            entry.old_value,
            entry.new_value,
            entry.trigger_source,
            entry.trigger_detail,
            json.dumps(entry.metadata) if entry.metadata is not None else None,
        )

    async def find_by_entity(self, entity_type: str, entity_id: str) -> list[asyncpg.Record]:
        """Audit trail for one entity, oldest first."""
        return await self.pool.fetch(
            """
            SELECT audit_id, timestamp, client_id, entity_type, entity_id, action,
                   field_changed, old_value, new_value, trigger_source, trigger_detail, metadata
            FROM sales.audit_log
            WHERE entity_type = $1 AND entity_id = $2
            ORDER BY timestamp ASC
            """,
            entity_type, entity_id
        )

