"""
Configuration module for the call analysis backend.
Centralizes environment variables, logging setup, and AI settings.
"""
import os
import logging
from dataclasses import dataclass
from dotenv import load_dotenv

# Load .env file for local development
load_dotenv()

# ============================================================================
# Database Configuration
# ============================================================================

# Checked when the pool is created, so parser/prompt code can run without a database
DATABASE_URL = os.environ.get("DATABASE_URL")

# ============================================================================
# AI Configuration
# ============================================================================

GOOGLE_API_KEY = os.environ.get("GOOGLE_API_KEY", "")
AI_MODEL = os.environ.get("AI_MODEL", "gemini-2.5-pro")
AI_MAX_TOKENS = int(os.environ.get("AI_MAX_TOKENS", "8000"))
AI_TEMPERATURE = float(os.environ.get("AI_TEMPERATURE", "0.1"))

# USD per million tokens, used by the cost tracker
AI_INPUT_COST_PER_MILLION = float(os.environ.get("AI_INPUT_COST_PER_MILLION", "1.25"))
AI_OUTPUT_COST_PER_MILLION = float(os.environ.get("AI_OUTPUT_COST_PER_MILLION", "10.0"))

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AISettings:
    """Model and pricing settings passed into the processor and cost tracker."""
    model: str = AI_MODEL
    max_tokens: int = AI_MAX_TOKENS
    temperature: float = AI_TEMPERATURE
    input_cost_per_million: float = AI_INPUT_COST_PER_MILLION
    output_cost_per_million: float = AI_OUTPUT_COST_PER_MILLION

    @classmethod
    def from_env(cls) -> "AISettings":
        return cls(
            model=os.environ.get("AI_MODEL", AI_MODEL),
            max_tokens=int(os.environ.get("AI_MAX_TOKENS", str(AI_MAX_TOKENS))),
            temperature=float(os.environ.get("AI_TEMPERATURE", str(AI_TEMPERATURE))),
            input_cost_per_million=float(
                os.environ.get("AI_INPUT_COST_PER_MILLION", str(AI_INPUT_COST_PER_MILLION))
            ),
            output_cost_per_million=float(
                os.environ.get("AI_OUTPUT_COST_PER_MILLION", str(AI_OUTPUT_COST_PER_MILLION))
            ),
        )
