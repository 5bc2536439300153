from __future__ import annotations

from datetime import datetime
from typing import TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain model representing a stored Todo row.

    Fields:
    - id: Unique integer identifier assigned by the store, never reused
    - subject: Non-empty short text (trimmed on input via schemas)
    - description: Detailed description, empty string when not given
    - created_at: Creation timestamp, set once
    - updated_at: Last update timestamp, equal to created_at until the first update
    """

    id: int
    subject: str
    description: str
    created_at: datetime
    updated_at: datetime
