"""
Enums for the call analysis backend.
"""
from enum import Enum


class ProcessingStatus(str, Enum):
    """AI processing status stored on a call record."""
    PENDING = "pending"
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


class CallOutcome(str, Enum):
    """Default call outcome keys."""
    CLOSED_WON = "closed_won"
    DEPOSIT = "deposit"
    FOLLOW_UP = "follow_up"
    LOST = "lost"
    DISQUALIFIED = "disqualified"
    NOT_PITCHED = "not_pitched"


class ObjectionCategory(str, Enum):
    """Default objection type keys."""
    FINANCIAL = "financial"
    SPOUSE = "spouse"
    THINK_ABOUT = "think_about"
    TIMING = "timing"
    TRUST = "trust"
    ALREADY_TRIED = "already_tried"
    DIY = "diy"
    NOT_READY = "not_ready"
    COMPETITOR = "competitor"
    AUTHORITY = "authority"
    VALUE = "value"
    COMMITMENT = "commitment"
    OTHER = "other"


class AuditAction(str, Enum):
    """Actions recorded in the audit log."""
    CREATED = "created"
    UPDATED = "updated"
    STATE_CHANGE = "state_change"
    AI_PROCESSED = "ai_processed"
    ERROR = "error"


class TriggerSource(str, Enum):
    """What caused an audited change."""
    AI_PROCESSING = "ai_processing"
    AI_OUTCOME = "ai_outcome"
    TRANSCRIPT_WEBHOOK = "transcript_webhook"
    CALENDAR_WEBHOOK = "calendar_webhook"
    PAYMENT_WEBHOOK = "payment_webhook"
    TIMEOUT = "timeout"
    ADMIN = "admin"
    SYSTEM = "system"
