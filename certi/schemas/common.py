"""
Shared Schema Types
"""

import json
from enum import Enum
from typing import Any


class ActivityType(str, Enum):
    """Kind of activity a certificate or template belongs to"""
    COURSE = "course"
    EVENT = "event"
    OTHER = "other"


def parse_json_list(value: Any) -> Any:
    """JSON columns come back as text from asyncpg and SQLite"""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return []
    return value if value is not None else []
