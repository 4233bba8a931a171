"""Domain models for ekctl.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access.  They carry zero I/O, zero dependencies on
external packages, and must remain pure across the entire lifecycle.
Conversion to JSON payloads lives in :mod:`ekctl.core.payloads`.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Union

JSONValue = Union[
    str,
    int,
    float,
    bool,
    None,
    list["JSONValue"],
    dict[str, "JSONValue"],
]
"""Closed set of values an envelope payload may carry."""

REGISTRY_SCHEMA_VERSION: int = 1


# ---------------------------------------------------------------------------
# Alias registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AliasEntry:
    """A single ``name → id`` mapping."""

    name: str
    """User-chosen, case-sensitive alias name."""

    id: str
    """Opaque backend identifier of a calendar or reminder list."""


@dataclass(frozen=True, slots=True)
class RegistryDocument:
    """The persisted alias registry: every alias plus a schema version."""

    aliases: Mapping[str, str] = field(default_factory=dict)
    version: int = REGISTRY_SCHEMA_VERSION

    @classmethod
    def empty(cls) -> RegistryDocument:
        return cls()


class RegistryState(enum.Enum):
    """Diagnostic view of the persisted registry."""

    ABSENT = "absent"
    PRESENT = "present"
    UNREADABLE = "unreadable"


# ---------------------------------------------------------------------------
# Store access
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AccessResult:
    """Outcome of the one-shot Calendar/Reminders permission request."""

    events_granted: bool
    reminders_granted: bool
    error: str | None = None
    """Backend error text, if the request itself failed."""

    @property
    def denied(self) -> bool:
        """Both entity types refused."""
        return not self.events_granted and not self.reminders_granted


# ---------------------------------------------------------------------------
# Store records
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CalendarInfo:
    """An event calendar or a reminder list."""

    id: str
    title: str
    kind: str
    """``"event"`` for calendars, ``"reminder"`` for reminder lists."""

    source: str
    color: str
    """``#RRGGBB`` hex string."""

    allows_modifications: bool


@dataclass(frozen=True, slots=True)
class Event:
    """A single calendar event as reported by the store."""

    id: str
    title: str
    calendar_id: str
    calendar_title: str
    start: datetime | None
    end: datetime | None
    all_day: bool = False
    location: str | None = None
    notes: str | None = None
    url: str | None = None
    has_alarms: bool = False
    has_recurrence_rules: bool = False


@dataclass(frozen=True, slots=True)
class Reminder:
    """A single reminder as reported by the store."""

    id: str
    title: str
    list_id: str
    list_title: str
    completed: bool = False
    priority: int = 0
    """0 = none, 1 = high, 5 = medium, 9 = low."""

    due: datetime | None = None
    completion_date: datetime | None = None
    notes: str | None = None
    url: str | None = None


# ---------------------------------------------------------------------------
# Write requests
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Recurrence:
    """A simple repeating rule handed to the backend verbatim."""

    frequency: str
    """One of ``daily``, ``weekly``, ``monthly``, ``yearly``."""

    interval: int = 1


@dataclass(frozen=True, slots=True)
class EventFields:
    """Fields for creating or updating an event.

    ``None`` means "leave unchanged" on update and "not set" on create.
    """

    title: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    location: str | None = None
    notes: str | None = None
    all_day: bool | None = None
    alarm_offsets: tuple[float, ...] | None = None
    """Seconds relative to start; negative values fire before."""

    travel_time: int | None = None
    """Travel time in seconds."""

    recurrence: Recurrence | None = None


@dataclass(frozen=True, slots=True)
class ReminderFields:
    """Fields for creating or updating a reminder (partial on update)."""

    title: str | None = None
    due: datetime | None = None
    priority: int | None = None
    notes: str | None = None
    completed: bool | None = None
