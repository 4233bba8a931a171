"""Pure parsing helpers for command-line field values.

Every function in this module is a **pure** transformation — no I/O,
no side effects, fully deterministic, and trivially unit-testable.
Parsers return ``None`` for unusable input; turning that into a
user-facing error message is the orchestrator's job.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone

RECURRENCE_FREQUENCIES: tuple[str, ...] = ("daily", "weekly", "monthly", "yearly")

PRIORITY_NONE: int = 0
PRIORITY_MIN: int = 0
PRIORITY_MAX: int = 9


# ---------------------------------------------------------------------------
# ISO-8601 date-times
# ---------------------------------------------------------------------------

# Internet date-time: full date, full time, mandatory zone designator.
_ISO8601_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:Z|[+-]\d{2}:\d{2})$",
)


def parse_iso8601(text: str) -> datetime | None:
    """Parse ``2026-02-15T14:00:00Z`` or ``2026-02-15T14:00:00+08:00``.

    Date-only strings, human-readable dates, slash-separated dates and
    date-times without a zone designator are rejected.
    """
    candidate = text.strip()
    if not _ISO8601_PATTERN.match(candidate):
        return None
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        # Pattern matched but the calendar values are out of range.
        return None


def format_iso8601(value: datetime) -> str:
    """Render *value* in UTC with a ``Z`` suffix, second precision.

    Naive values are taken to already be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# ---------------------------------------------------------------------------
# Alarms, travel time, recurrence
# ---------------------------------------------------------------------------

def parse_alarms(text: str | None) -> list[float] | None:
    """Convert a comma-separated minute list into relative offsets in seconds.

    * ``"10"`` and ``"-10"`` both mean ten minutes *before* start (-600).
    * ``"+10"`` means ten minutes *after* start (+600).
    * Unparseable components are skipped; ``""`` yields ``[]``.
    * ``None`` (option not given) yields ``None``.
    """
    if text is None:
        return None

    offsets: list[float] = []
    for component in text.split(","):
        token = component.strip()
        if token.startswith("+"):
            minutes = _to_float(token[1:])
            if minutes is not None:
                offsets.append(minutes * 60)
            continue
        minutes = _to_float(token)
        if minutes is None:
            continue
        offsets.append(minutes * 60 if minutes < 0 else -minutes * 60)
    return offsets


def _to_float(token: str) -> float | None:
    try:
        value = float(token)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def travel_time_seconds(text: str) -> int | None:
    """Whole minutes → seconds; ``None`` for anything else."""
    try:
        minutes = int(text)
    except ValueError:
        return None
    if minutes < 0:
        return None
    return minutes * 60


def recurrence_interval(text: str | None) -> int:
    """Repeat interval, falling back to ``1`` when absent or invalid."""
    if text is None:
        return 1
    try:
        interval = int(text)
    except ValueError:
        return 1
    return interval if interval >= 1 else 1


# ---------------------------------------------------------------------------
# Reminder fields
# ---------------------------------------------------------------------------

def parse_priority(text: str | None) -> int | None:
    """Priority 0-9 (0 none, 1 high, 5 medium, 9 low), else ``None``."""
    if text is None:
        return None
    try:
        value = int(text)
    except ValueError:
        return None
    if not PRIORITY_MIN <= value <= PRIORITY_MAX:
        return None
    return value


def parse_bool(text: str) -> bool | None:
    """``true``/``false`` (any case) → ``bool``; anything else → ``None``."""
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None
