"""
Audit logger - records every meaningful event to the audit log.

Writes are best-effort: a failing insert is logged and swallowed so that
auditing can never break the flow that triggered it.
"""
import logging
from typing import Any, Optional

from call_analysis.models.tracking import AuditEntry
from call_analysis.repositories.audit_repo import AuditRepository
from call_analysis.utils import generate_id, utc_now

logger = logging.getLogger(__name__)


def _stringify(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


class AuditLogger:
    """Service for writing and reading audit entries."""

    def __init__(self, repo: AuditRepository):
        self.repo = repo

    async def log(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        trigger_source: str,
        client_id: Optional[str] = None,
        field_changed: Optional[str] = None,
        old_value: Any = None,
        new_value: Any = None,
        trigger_detail: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Write an audit entry.

        Args:
            entity_type: 'call', 'closer', 'client', 'objection', ...
            entity_id: ID of the entity that changed
            action: 'created', 'updated', 'state_change', 'ai_processed', 'error'
            trigger_source: 'ai_processing', 'ai_outcome', 'transcript_webhook', 'admin', ...
            client_id: Client scope (None for system-level events)
            field_changed: Which field changed
            old_value: Previous value (stored as text)
            new_value: New value (stored as text)
            trigger_detail: Extra context such as the model name
            metadata: Any additional JSON-serializable context
        """
        entry = AuditEntry(
            audit_id=generate_id(),
            timestamp=utc_now(),
            client_id=client_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            field_changed=field_changed,
            old_value=_stringify(old_value),
            new_value=_stringify(new_value),
            trigger_source=trigger_source,
            trigger_detail=trigger_detail,
            metadata=metadata,
        )

        try:
            await self.repo.create(entry)
        except Exception as e:
            logger.error(
                f"Failed to write audit log entry ({entity_type} {entity_id} {action}): {e}"
            )

    async def get_trail(self, entity_type: str, entity_id: str) -> list:
        """Chronological audit entries for one entity."""
        return await self.repo.find_by_entity(entity_type, entity_id)
