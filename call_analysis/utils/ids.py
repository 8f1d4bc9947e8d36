"""
Identifier generation for stored entities (objections, cost rows, audit rows).
"""
import uuid


def generate_id() -> str:
    """Generate a new UUID v4 string."""
    return str(uuid.uuid4())
