"""Shared validation utilities"""

import re
from typing import Optional

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def validate_time_string(value: Optional[str]) -> Optional[str]:
    """
    Validate a wall-clock time in 24h HH:MM format.

    Raises:
        ValueError: If the value is not HH:MM
    """
    if value is None:
        return value

    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value
