"""
Custom exception classes.

The call processor catches these (and any other exception) at its top level
and turns them into a failure result, so none of them cross the public
process_call / parse boundaries.
"""
from typing import Any, Dict, Optional


class CallAnalysisException(Exception):
    """Base exception for all call analysis errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(CallAnalysisException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, resource_id: str, details: Optional[Dict[str, Any]] = None):
        message = f"{resource} not found: {resource_id}"
        super().__init__(message, details)
        self.resource = resource
        self.resource_id = resource_id


class ResponseParseError(CallAnalysisException):
    """Raised when the model response could not be turned into an analysis."""

    def __init__(self, error: str, raw_response: Optional[str] = None):
        super().__init__(f"AI response parsing failed: {error}")
        self.error = error
        self.raw_response = raw_response


class LLMError(CallAnalysisException):
    """Raised when the LLM client cannot be used (e.g. missing API key)."""


class TaxonomyError(CallAnalysisException):
    """Raised when a taxonomy is internally inconsistent."""
