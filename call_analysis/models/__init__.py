"""
Call analysis models.

This module re-exports all model classes for convenient importing.
"""

# Enums
from .enums import (
    ProcessingStatus,
    CallOutcome,
    ObjectionCategory,
    AuditAction,
    TriggerSource,
)

# Taxonomy models
from .taxonomy import (
    TaxonomyEntry,
    ScoringScale,
    ScoringLevel,
    ScoringRubric,
)

# Analysis models
from .analysis import (
    NormalizedObjection,
    NormalizedAnalysis,
    ParseSuccess,
    ParseFailure,
    ParseResult,
)

# Call models
from .call import (
    CallMetadata,
    ObjectionRecord,
    ProcessingSuccess,
    ProcessingFailure,
    ProcessingResult,
)

# Tracking models
from .tracking import (
    CostRecord,
    CostSummary,
    AuditEntry,
)

__all__ = [
    # Enums
    "ProcessingStatus",
    "CallOutcome",
    "ObjectionCategory",
    "AuditAction",
    "TriggerSource",
    # Taxonomy
    "TaxonomyEntry",
    "ScoringScale",
    "ScoringLevel",
    "ScoringRubric",
    # Analysis
    "NormalizedObjection",
    "NormalizedAnalysis",
    "ParseSuccess",
    "ParseFailure",
    "ParseResult",
    # Call
    "CallMetadata",
    "ObjectionRecord",
    "ProcessingSuccess",
    "ProcessingFailure",
    "ProcessingResult",
    # Tracking
    "CostRecord",
    "CostSummary",
    "AuditEntry",
]
