"""
Service layer: prompt building, response parsing, and call processing.
"""
from .response_parser import ResponseParser
from .prompt_builder import BuiltPrompt, PromptBuilder
from .llm_client import GeminiClient, LLMResponse
from .audit_logger import AuditLogger
from .cost_tracker import CostTracker
from .call_state_manager import CallStateManager, STATE_TRANSITIONS, is_valid_transition
from .call_processor import CallProcessor, build_call_processor, build_objection_records

__all__ = [
    "ResponseParser",
    "BuiltPrompt",
    "PromptBuilder",
    "GeminiClient",
    "LLMResponse",
    "AuditLogger",
    "CostTracker",
    "CallStateManager",
    "STATE_TRANSITIONS",
    "is_valid_transition",
    "CallProcessor",
    "build_call_processor",
    "build_objection_records",
]
