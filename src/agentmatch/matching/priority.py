"""Priority codec - symbolic task priority to a numeric scale and back."""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Any, Final


class Priority(StrEnum):
    """Symbolic task priority levels."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_VALUES: Final[dict[str, int]] = {
    Priority.HIGH.value: 100,
    Priority.MEDIUM.value: 50,
    Priority.LOW.value: 10,
}

# Unrecognized priorities land between low and medium
UNKNOWN_PRIORITY_VALUE: Final[int] = 25


def priority_to_numeric(priority: str | None) -> int:
    """Convert a symbolic priority to its numeric value.

    Args:
        priority: "high", "medium" or "low" (case-insensitive). Anything else,
            including None, is unrecognized.

    Returns:
        100, 50 or 10 for the known levels, 25 otherwise.
    """
    if not isinstance(priority, str):
        return UNKNOWN_PRIORITY_VALUE
    return PRIORITY_VALUES.get(priority.strip().lower(), UNKNOWN_PRIORITY_VALUE)


def numeric_to_priority(value: Any) -> Priority:
    """Convert a numeric priority back to a symbolic level.

    The thresholds are not the exact inverse of ``priority_to_numeric``:
    the unknown-priority value 25 decodes to ``low``.

    Args:
        value: Numeric priority. Non-numbers and NaN decode to ``low``.

    Returns:
        ``high`` for >= 100, ``medium`` for >= 50, ``low`` otherwise.
    """
    if not isinstance(value, (int, float)) or isinstance(value, bool) or math.isnan(value):
        return Priority.LOW
    if value >= 100:
        return Priority.HIGH
    if value >= 50:
        return Priority.MEDIUM
    return Priority.LOW
