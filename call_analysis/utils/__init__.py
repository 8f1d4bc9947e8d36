"""
Utility modules for shared functionality.
"""
from .ids import generate_id
from .timestamps import parse_transcript_timestamp, utc_now

__all__ = [
    "generate_id",
    "parse_transcript_timestamp",
    "utc_now",
]
