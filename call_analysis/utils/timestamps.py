"""
Helpers for the approximate transcript timestamps the model reports.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def parse_transcript_timestamp(value: Optional[str]) -> tuple[Optional[int], Optional[float]]:
    """
    Convert "H:MM:SS" or "MM:SS" into (seconds, minutes).

    Minutes are rounded to 2 decimals. Anything else, including a part that
    is not a number, gives (None, None).

    Example:
        >>> parse_transcript_timestamp("00:25:00")
        (1500, 25.0)
    """
    if not value:
        return None, None

    try:
        parts = [int(part) for part in value.strip().split(":")]
    except ValueError:
        return None, None

    if len(parts) == 3:
        hours, minutes, seconds = parts
        total = hours * 3600 + minutes * 60 + seconds
    elif len(parts) == 2:
        minutes, seconds = parts
        total = minutes * 60 + seconds
    else:
        return None, None

    return total, round(total / 60, 2)
