"""
Call state manager - validates and applies attendance state transitions.

A transition is valid only when it is listed in STATE_TRANSITIONS for the
call's current state with the given trigger. Invalid transitions are logged
and audited as errors, and reported back as False so the caller can decide
how to continue.
"""
import logging
from typing import Any, Optional

from call_analysis.models.enums import AuditAction
from call_analysis.repositories.call_repo import CallRepository
from call_analysis.services.audit_logger import AuditLogger

logger = logging.getLogger(__name__)

# Key None is a brand-new call with no attendance yet
STATE_TRANSITIONS: dict[Optional[str], list[tuple[str, str]]] = {
    None: [
        ("Canceled", "calendar_cancelled_or_deleted_or_declined"),
        ("Rescheduled", "calendar_moved_and_not_yet_held"),
        ("Show", "transcript_received_valid"),
        ("Ghosted - No Show", "transcript_received_empty_or_one_speaker"),
        ("Waiting for Outcome", "appointment_time_passed"),
        ("No Recording", "system_recording_failure"),
        ("Overbooked", "closer_double_booked"),
    ],
    "Scheduled": [
        ("Canceled", "calendar_cancelled_or_deleted_or_declined"),
        ("Rescheduled", "calendar_moved_and_not_yet_held"),
        ("Show", "transcript_received_valid"),
        ("Ghosted - No Show", "transcript_received_empty_or_one_speaker"),
        ("Ghosted - No Show", "transcript_timeout"),
        ("Waiting for Outcome", "appointment_time_passed"),
        ("No Recording", "system_recording_failure"),
        ("Overbooked", "closer_double_booked"),
    ],
    "Waiting for Outcome": [
        ("Canceled", "calendar_cancelled_or_deleted_or_declined"),
        ("Show", "transcript_received_valid"),
        ("Ghosted - No Show", "transcript_timeout"),
        ("Ghosted - No Show", "transcript_received_empty_or_one_speaker"),
        ("No Recording", "system_recording_failure"),
        ("Overbooked", "closer_double_booked"),
    ],
    "No Recording": [
        ("Show", "transcript_received_valid"),
        ("Ghosted - No Show", "transcript_received_empty"),
    ],
    "Ghosted - No Show": [
        ("Show", "transcript_reprocessed"),
        ("Overbooked", "closer_double_booked"),
    ],
    "Show": [
        ("Closed - Won", "ai_outcome"),
        ("Deposit", "ai_outcome"),
        ("Follow Up", "ai_outcome"),
        ("Lost", "ai_outcome"),
        ("Disqualified", "ai_outcome"),
        ("Not Pitched", "ai_outcome"),
    ],
    "Follow Up": [
        ("Closed - Won", "payment_received"),
    ],
    "Lost": [
        ("Closed - Won", "payment_received"),
        ("Follow Up", "new_call_scheduled"),
    ],
    "Not Pitched": [
        ("Follow Up", "new_call_scheduled"),
        ("Closed - Won", "payment_received"),
    ],
    "Rescheduled": [
        ("Canceled", "calendar_cancelled_or_deleted_or_declined"),
    ],
    "Canceled": [],
    "Closed - Won": [],
    "Deposit": [
        ("Closed - Won", "payment_received_full"),
    ],
    "Overbooked": [
        ("Show", "transcript_received_valid"),
        ("Canceled", "calendar_cancelled_or_deleted_or_declined"),
    ],
}


def is_valid_transition(current_state: Optional[str], new_state: str, trigger: str) -> bool:
    valid = STATE_TRANSITIONS.get(current_state)
    if valid is None:
        return False
    return (new_state, trigger) in valid


class CallStateManager:
    """Applies attendance transitions to call records."""

    def __init__(self, call_repo: CallRepository, audit_logger: AuditLogger):
        self.call_repo = call_repo
        self.audit_logger = audit_logger

    async def transition_state(
        self,
        call_id: str,
        client_id: str,
        new_state: str,
        trigger: str,
        additional_updates: Optional[dict[str, Any]] = None,
    ) -> bool:
        """
        Move a call to a new attendance state, together with extra field updates.

        Args:
            call_id: Call to transition
            client_id: Client scope
            new_state: Target attendance state
            trigger: What caused the transition (e.g. 'ai_outcome')
            additional_updates: Fields written in the same update

        Returns:
            True if the transition was valid and applied, False otherwise
        """
        call = await self.call_repo.find_by_id(call_id, client_id)
        if not call:
            logger.error(f"Cannot transition call {call_id}: not found for client {client_id}")
            return False

        current_state = call["attendance"]

        if not is_valid_transition(current_state, new_state, trigger):
            logger.error(
                f"Invalid state transition for call {call_id}: "
                f"{current_state!r} -> {new_state!r} (trigger={trigger})"
            )
            await self.audit_logger.log(
                client_id=client_id,
                entity_type="call",
                entity_id=call_id,
                action=AuditAction.ERROR.value,
                field_changed="attendance",
                old_value=current_state,
                new_value=new_state,
                trigger_source=trigger,
                metadata={"error": "Invalid state transition"},
            )
            return False

        updates = {"attendance": new_state, **(additional_updates or {})}
        await self.call_repo.update(call_id, client_id, updates)

        await self.audit_logger.log(
            client_id=client_id,
            entity_type="call",
            entity_id=call_id,
            action=AuditAction.STATE_CHANGE.value,
            field_changed="attendance",
            old_value=current_state,
            new_value=new_state,
            trigger_source=trigger,
        )

        logger.info(f"Call {call_id} transitioned: {current_state!r} -> {new_state!r} ({trigger})")
        return True
