"""Shared pytest fixtures and configuration for the ekctl test suite.

Guidelines
----------
* No macOS, EventKit or PyObjC in any test.
* EventKit must be faked at the infra boundary (``sys.modules``).
* Core tests must be pure — the store is the in-memory fake below.
* Tests must not depend on OS state: ``EKCTL_CONFIG_DIR`` always points
  into ``tmp_path``.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from ekctl.core.alias_registry import AliasRegistry
from ekctl.core.models import (
    AccessResult,
    CalendarInfo,
    Event,
    EventFields,
    Reminder,
    ReminderFields,
)
from ekctl.core.orchestrator import CommandOrchestrator
from ekctl.exceptions import NotFoundError, ValidationError
from ekctl.infra.document_store import MemoryDocumentStore


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# In-memory calendar store
# ---------------------------------------------------------------------------

class FakeCalendarStore:
    """Dict-backed :class:`~ekctl.core.protocols.CalendarStore`.

    Records every call in :attr:`calls` so tests can assert which
    backend operations ran (and which never did).
    """

    def __init__(
        self,
        *,
        events_granted: bool = True,
        reminders_granted: bool = True,
        access_error: str | None = None,
    ) -> None:
        self.access = AccessResult(events_granted, reminders_granted, access_error)
        self.calendars: dict[str, CalendarInfo] = {}
        self.events: dict[str, Event] = {}
        self.reminders: dict[str, Reminder] = {}
        self.calls: list[tuple[Any, ...]] = []
        self._ids = itertools.count(1)

    # -- seeding --------------------------------------------------------

    def add_calendar(
        self,
        calendar_id: str,
        title: str,
        *,
        kind: str = "event",
        allows_modifications: bool = True,
    ) -> CalendarInfo:
        calendar = CalendarInfo(
            id=calendar_id,
            title=title,
            kind=kind,
            source="iCloud",
            color="#1BADF8",
            allows_modifications=allows_modifications,
        )
        self.calendars[calendar_id] = calendar
        return calendar

    def seed_event(self, calendar_id: str, title: str, start: datetime, end: datetime) -> Event:
        calendar = self.calendars[calendar_id]
        event = Event(
            id=f"EV-{next(self._ids)}",
            title=title,
            calendar_id=calendar.id,
            calendar_title=calendar.title,
            start=start,
            end=end,
        )
        self.events[event.id] = event
        return event

    def seed_reminder(self, list_id: str, title: str, *, completed: bool = False) -> Reminder:
        calendar = self.calendars[list_id]
        reminder = Reminder(
            id=f"RM-{next(self._ids)}",
            title=title,
            list_id=calendar.id,
            list_title=calendar.title,
            completed=completed,
        )
        self.reminders[reminder.id] = reminder
        return reminder

    # -- protocol -------------------------------------------------------

    def request_access(self) -> AccessResult:
        self.calls.append(("request_access",))
        return self.access

    def list_calendars(self) -> list[CalendarInfo]:
        self.calls.append(("list_calendars",))
        return list(self.calendars.values())

    def _calendar(self, calendar_id: str, kind: str) -> CalendarInfo:
        if calendar_id not in self.calendars:
            raise NotFoundError(kind, calendar_id)
        return self.calendars[calendar_id]

    def _writable(self, calendar_id: str, kind: str) -> CalendarInfo:
        calendar = self._calendar(calendar_id, kind)
        if not calendar.allows_modifications:
            raise ValidationError(f"{kind} '{calendar.title}' does not allow modifications.")
        return calendar

    def list_events(self, calendar_id: str, start: datetime, end: datetime) -> list[Event]:
        self.calls.append(("list_events", calendar_id, start, end))
        self._calendar(calendar_id, "Calendar")
        return [
            e
            for e in self.events.values()
            if e.calendar_id == calendar_id and e.start < end and e.end > start
        ]

    def list_reminders(self, list_id: str, completed: bool | None = None) -> list[Reminder]:
        self.calls.append(("list_reminders", list_id, completed))
        self._calendar(list_id, "Reminder list")
        return [
            r
            for r in self.reminders.values()
            if r.list_id == list_id and (completed is None or r.completed == completed)
        ]

    def _event(self, event_id: str) -> Event:
        if event_id not in self.events:
            raise NotFoundError("Event", event_id)
        return self.events[event_id]

    def _reminder(self, reminder_id: str) -> Reminder:
        if reminder_id not in self.reminders:
            raise NotFoundError("Reminder", reminder_id)
        return self.reminders[reminder_id]

    def get_event(self, event_id: str) -> Event:
        self.calls.append(("get_event", event_id))
        return self._event(event_id)

    def get_reminder(self, reminder_id: str) -> Reminder:
        self.calls.append(("get_reminder", reminder_id))
        return self._reminder(reminder_id)

    def create_event(self, calendar_id: str, fields: EventFields) -> Event:
        self.calls.append(("create_event", calendar_id, fields))
        calendar = self._writable(calendar_id, "Calendar")
        event = Event(
            id=f"EV-{next(self._ids)}",
            title=fields.title or "",
            calendar_id=calendar.id,
            calendar_title=calendar.title,
            start=fields.start,
            end=fields.end,
            all_day=bool(fields.all_day),
            location=fields.location,
            notes=fields.notes,
            has_alarms=bool(fields.alarm_offsets),
            has_recurrence_rules=fields.recurrence is not None,
        )
        self.events[event.id] = event
        return event

    def create_reminder(self, list_id: str, fields: ReminderFields) -> Reminder:
        self.calls.append(("create_reminder", list_id, fields))
        calendar = self._writable(list_id, "Reminder list")
        reminder = Reminder(
            id=f"RM-{next(self._ids)}",
            title=fields.title or "",
            list_id=calendar.id,
            list_title=calendar.title,
            priority=fields.priority or 0,
            due=fields.due,
            notes=fields.notes,
        )
        self.reminders[reminder.id] = reminder
        return reminder

    def update_event(self, event_id: str, fields: EventFields) -> Event:
        self.calls.append(("update_event", event_id, fields))
        event = self._event(event_id)
        changes = {
            name: value
            for name, value in (
                ("title", fields.title),
                ("start", fields.start),
                ("end", fields.end),
                ("location", fields.location),
                ("notes", fields.notes),
                ("all_day", fields.all_day),
            )
            if value is not None
        }
        if fields.alarm_offsets is not None:
            changes["has_alarms"] = bool(fields.alarm_offsets)
        updated = dataclasses.replace(event, **changes)
        self.events[event_id] = updated
        return updated

    def update_reminder(self, reminder_id: str, fields: ReminderFields) -> Reminder:
        self.calls.append(("update_reminder", reminder_id, fields))
        reminder = self._reminder(reminder_id)
        changes = {
            name: value
            for name, value in (
                ("title", fields.title),
                ("due", fields.due),
                ("priority", fields.priority),
                ("notes", fields.notes),
                ("completed", fields.completed),
            )
            if value is not None
        }
        if fields.completed:
            changes["completion_date"] = utc(2026, 2, 1, 12, 0, 0)
        elif fields.completed is False:
            changes["completion_date"] = None
        updated = dataclasses.replace(reminder, **changes)
        self.reminders[reminder_id] = updated
        return updated

    def complete_reminder(self, reminder_id: str) -> Reminder:
        self.calls.append(("complete_reminder", reminder_id))
        updated = dataclasses.replace(
            self._reminder(reminder_id),
            completed=True,
            completion_date=utc(2026, 2, 1, 12, 0, 0),
        )
        self.reminders[reminder_id] = updated
        return updated

    def delete_event(self, event_id: str) -> Event:
        self.calls.append(("delete_event", event_id))
        event = self._event(event_id)
        del self.events[event_id]
        return event

    def delete_reminder(self, reminder_id: str) -> Reminder:
        self.calls.append(("delete_reminder", reminder_id))
        reminder = self._reminder(reminder_id)
        del self.reminders[reminder_id]
        return reminder

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Point every ``EKCTL_*`` setting at test-owned state."""
    monkeypatch.setenv("EKCTL_CONFIG_DIR", str(tmp_path / "ekctl-config"))
    monkeypatch.delenv("EKCTL_ACCESS_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("EKCTL_LOG_LEVEL", raising=False)
    yield
    logger = logging.getLogger("ekctl")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def document_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def registry(document_store: MemoryDocumentStore) -> AliasRegistry:
    return AliasRegistry(document_store)


@pytest.fixture
def store() -> FakeCalendarStore:
    fake = FakeCalendarStore()
    fake.add_calendar("CAL-1", "Work")
    fake.add_calendar("CAL-RO", "Holidays", allows_modifications=False)
    fake.add_calendar("LIST-1", "Groceries", kind="reminder")
    return fake


@pytest.fixture
def orchestrator(registry: AliasRegistry, store: FakeCalendarStore) -> CommandOrchestrator:
    return CommandOrchestrator(registry, lambda: store)


@pytest.fixture
def make_orchestrator(
    registry: AliasRegistry,
) -> Callable[..., tuple[CommandOrchestrator, FakeCalendarStore]]:
    """Factory for an orchestrator over a store with custom access answers."""

    def _make(**access: Any) -> tuple[CommandOrchestrator, FakeCalendarStore]:
        fake = FakeCalendarStore(**access)
        fake.add_calendar("CAL-1", "Work")
        return CommandOrchestrator(registry, lambda: fake), fake

    return _make
