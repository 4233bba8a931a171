"""EventKit backed implementation of :class:`~ekctl.core.protocols.CalendarStore`.

This module is the **only** place in the codebase that imports the
PyObjC ``EventKit``, ``Foundation`` and ``AppKit`` bindings.  All
Objective-C failures are caught here and re-raised as typed
:class:`~ekctl.exceptions.EkctlError` subclasses — nothing raw escapes
the infrastructure boundary.

EventKit answers permission requests and reminder fetches through
completion handlers on a background queue.  :class:`_OneShot` turns each
of those into a blocking call, so the rest of ekctl stays synchronous.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from types import ModuleType
from typing import Any

from ekctl.core.models import (
    AccessResult,
    CalendarInfo,
    Event,
    EventFields,
    Reminder,
    ReminderFields,
)
from ekctl.exceptions import (
    EnvironmentError,
    NotFoundError,
    StoreError,
    ValidationError,
)

log = logging.getLogger(__name__)

_DEFAULT_COLOR: str = "#000000"


def _load_bindings() -> tuple[ModuleType, ModuleType, ModuleType]:
    """Import the PyObjC frameworks or raise ``EnvironmentError``."""
    try:
        import AppKit
        import EventKit
        import Foundation
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "EventKit bindings are not installed. "
            "Install with: pip install pyobjc-framework-EventKit",
            hint="ekctl needs macOS to reach Calendar and Reminders.",
        ) from exc
    return EventKit, Foundation, AppKit


def hex_string(components: Any) -> str:
    """Format RGB(A) float components (0.0-1.0) as ``#RRGGBB``.

    Fewer than three components yields black.
    """
    if components is None or len(components) < 3:
        return _DEFAULT_COLOR
    red, green, blue = (int(float(c) * 255) for c in components[:3])
    return f"#{red:02X}{green:02X}{blue:02X}"


def _describe(error: Any) -> str | None:
    """Human text for an ``NSError`` (or ``None``)."""
    if error is None:
        return None
    describe = getattr(error, "localizedDescription", None)
    return str(describe()) if callable(describe) else str(error)


class _OneShot:
    """Blocks until a completion handler delivers its single result."""

    def __init__(self) -> None:
        self._done = threading.Event()
        self._value: Any = None

    def deliver(self, value: Any) -> None:
        self._value = value
        self._done.set()

    def wait(self, timeout: float) -> Any:
        if not self._done.wait(timeout):
            raise TimeoutError(f"no answer within {timeout:g}s")
        return self._value


class EventKitStore:
    """Concrete :class:`CalendarStore` backed by macOS EventKit.

    Usage::

        store = EventKitStore(access_timeout=30.0)
        access = store.request_access()
        calendars = store.list_calendars()

    This class satisfies the :class:`~ekctl.core.protocols.CalendarStore`
    protocol structurally — no explicit inheritance required.

    Raises
    ------
    EnvironmentError
        At construction, when the PyObjC bindings are missing.
    """

    def __init__(self, *, access_timeout: float = 30.0) -> None:
        self._ek, self._foundation, self._appkit = _load_bindings()
        self._timeout: float = access_timeout
        self._store: Any = self._ek.EKEventStore.alloc().init()

    # ------------------------------------------------------------------
    # Permission gate
    # ------------------------------------------------------------------

    def request_access(self) -> AccessResult:
        events_granted, events_error = self._request_entity_access(
            self._ek.EKEntityTypeEvent,
            "requestFullAccessToEventsWithCompletion_",
        )
        reminders_granted, reminders_error = self._request_entity_access(
            self._ek.EKEntityTypeReminder,
            "requestFullAccessToRemindersWithCompletion_",
        )

        error: str | None = None
        if events_error:
            error = f"Calendar access error: {events_error}"
        elif reminders_error:
            error = f"Reminders access error: {reminders_error}"

        return AccessResult(
            events_granted=events_granted,
            reminders_granted=reminders_granted,
            error=error,
        )

    def _request_entity_access(
        self,
        entity_type: Any,
        full_access_selector: str,
    ) -> tuple[bool, str | None]:
        waiter = _OneShot()

        def handler(granted: Any, error: Any) -> None:
            waiter.deliver((bool(granted), _describe(error)))

        # macOS 14+ requires the "full access" variants.
        request_full = getattr(self._store, full_access_selector, None)
        if request_full is not None:
            request_full(handler)
        else:
            self._store.requestAccessToEntityType_completion_(entity_type, handler)

        try:
            return waiter.wait(self._timeout)
        except TimeoutError as exc:
            log.debug("Permission request timed out: %s", exc)
            return False, f"Timed out waiting for the permission prompt ({exc})."

    # ------------------------------------------------------------------
    # Calendars
    # ------------------------------------------------------------------

    def list_calendars(self) -> list[CalendarInfo]:
        result: list[CalendarInfo] = []
        for kind, entity_type in (
            ("event", self._ek.EKEntityTypeEvent),
            ("reminder", self._ek.EKEntityTypeReminder),
        ):
            for calendar in self._store.calendarsForEntityType_(entity_type) or []:
                result.append(self._calendar_info(calendar, kind))
        return result

    def _calendar_info(self, calendar: Any, kind: str) -> CalendarInfo:
        source = calendar.source()
        return CalendarInfo(
            id=str(calendar.calendarIdentifier()),
            title=str(calendar.title() or ""),
            kind=kind,
            source=str(source.title()) if source is not None else "Unknown",
            color=self._color_of(calendar),
            allows_modifications=bool(calendar.allowsContentModifications()),
        )

    def _color_of(self, calendar: Any) -> str:
        color = calendar.color()
        if color is None:
            return _DEFAULT_COLOR
        rgb = color.colorUsingColorSpace_(self._appkit.NSColorSpace.sRGBColorSpace())
        if rgb is None:
            return _DEFAULT_COLOR
        return hex_string((rgb.redComponent(), rgb.greenComponent(), rgb.blueComponent()))

    def _calendar(self, calendar_id: str, kind: str) -> Any:
        calendar = self._store.calendarWithIdentifier_(calendar_id)
        if calendar is None:
            raise NotFoundError(kind, calendar_id)
        return calendar

    def _writable_calendar(self, calendar_id: str, kind: str) -> Any:
        calendar = self._calendar(calendar_id, kind)
        if not calendar.allowsContentModifications():
            raise ValidationError(f"{kind} '{calendar.title()}' does not allow modifications.")
        return calendar

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def list_events(self, calendar_id: str, start: datetime, end: datetime) -> list[Event]:
        calendar = self._calendar(calendar_id, "Calendar")
        predicate = self._store.predicateForEventsWithStartDate_endDate_calendars_(
            self._nsdate(start),
            self._nsdate(end),
            [calendar],
        )
        return [self._event(e) for e in self._store.eventsMatchingPredicate_(predicate) or []]

    def get_event(self, event_id: str) -> Event:
        return self._event(self._ek_event(event_id))

    def _ek_event(self, event_id: str) -> Any:
        event = self._store.eventWithIdentifier_(event_id)
        if event is None:
            raise NotFoundError("Event", event_id)
        return event

    def create_event(self, calendar_id: str, fields: EventFields) -> Event:
        calendar = self._writable_calendar(calendar_id, "Calendar")
        event = self._ek.EKEvent.eventWithEventStore_(self._store)
        event.setCalendar_(calendar)
        self._apply_event_fields(event, fields)
        self._save_event(event, "create")
        return self._event(event)

    def update_event(self, event_id: str, fields: EventFields) -> Event:
        event = self._ek_event(event_id)
        self._apply_event_fields(event, fields)
        self._save_event(event, "update")
        return self._event(event)

    def delete_event(self, event_id: str) -> Event:
        event = self._ek_event(event_id)
        snapshot = self._event(event)
        ok, error = self._store.removeEvent_span_error_(event, self._ek.EKSpanThisEvent, None)
        if not ok:
            raise StoreError(f"Failed to delete event: {_describe(error)}")
        return snapshot

    def _save_event(self, event: Any, verb: str) -> None:
        ok, error = self._store.saveEvent_span_error_(event, self._ek.EKSpanThisEvent, None)
        if not ok:
            raise StoreError(f"Failed to {verb} event: {_describe(error)}")

    def _apply_event_fields(self, event: Any, fields: EventFields) -> None:
        if fields.title is not None:
            event.setTitle_(fields.title)
        if fields.start is not None:
            event.setStartDate_(self._nsdate(fields.start))
        if fields.end is not None:
            event.setEndDate_(self._nsdate(fields.end))
        if fields.location is not None:
            event.setLocation_(fields.location)
        if fields.notes is not None:
            event.setNotes_(fields.notes)
        if fields.all_day is not None:
            event.setAllDay_(fields.all_day)
        if fields.alarm_offsets is not None:
            event.setAlarms_(
                [self._ek.EKAlarm.alarmWithRelativeOffset_(o) for o in fields.alarm_offsets],
            )
        if fields.travel_time is not None:
            try:
                # Not part of the public EKEvent API; only reachable via KVC.
                event.setValue_forKey_(fields.travel_time, "travelTime")
            except Exception as exc:
                raise StoreError(f"Travel time is not supported here: {exc}") from exc
        if fields.recurrence is not None:
            frequency = {
                "daily": self._ek.EKRecurrenceFrequencyDaily,
                "weekly": self._ek.EKRecurrenceFrequencyWeekly,
                "monthly": self._ek.EKRecurrenceFrequencyMonthly,
                "yearly": self._ek.EKRecurrenceFrequencyYearly,
            }[fields.recurrence.frequency]
            rule = self._ek.EKRecurrenceRule.alloc().initRecurrenceWithFrequency_interval_end_(
                frequency,
                fields.recurrence.interval,
                None,
            )
            event.setRecurrenceRules_([rule])

    def _event(self, event: Any) -> Event:
        calendar = event.calendar()
        url = event.URL()
        return Event(
            id=str(event.eventIdentifier() or ""),
            title=str(event.title() or ""),
            calendar_id=str(calendar.calendarIdentifier()) if calendar is not None else "",
            calendar_title=str(calendar.title() or "") if calendar is not None else "",
            start=self._datetime(event.startDate()),
            end=self._datetime(event.endDate()),
            all_day=bool(event.isAllDay()),
            location=_optional_text(event.location()),
            notes=_optional_text(event.notes()),
            url=str(url.absoluteString()) if url is not None else None,
            has_alarms=bool(event.hasAlarms()),
            has_recurrence_rules=bool(event.hasRecurrenceRules()),
        )

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    def list_reminders(self, list_id: str, completed: bool | None = None) -> list[Reminder]:
        calendar = self._calendar(list_id, "Reminder list")
        predicate = self._store.predicateForRemindersInCalendars_([calendar])

        waiter = _OneShot()
        self._store.fetchRemindersMatchingPredicate_completion_(
            predicate,
            lambda fetched: waiter.deliver(list(fetched or [])),
        )
        try:
            fetched: list[Any] = waiter.wait(self._timeout)
        except TimeoutError as exc:
            raise StoreError(f"Failed to fetch reminders: {exc}") from exc

        reminders = [self._reminder(r) for r in fetched]
        if completed is not None:
            reminders = [r for r in reminders if r.completed == completed]
        return reminders

    def get_reminder(self, reminder_id: str) -> Reminder:
        return self._reminder(self._ek_reminder(reminder_id))

    def _ek_reminder(self, reminder_id: str) -> Any:
        item = self._store.calendarItemWithIdentifier_(reminder_id)
        if item is None or not item.isKindOfClass_(self._ek.EKReminder):
            raise NotFoundError("Reminder", reminder_id)
        return item

    def create_reminder(self, list_id: str, fields: ReminderFields) -> Reminder:
        calendar = self._writable_calendar(list_id, "Reminder list")
        reminder = self._ek.EKReminder.reminderWithEventStore_(self._store)
        reminder.setCalendar_(calendar)
        self._apply_reminder_fields(reminder, fields)
        self._save_reminder(reminder, "create")
        return self._reminder(reminder)

    def update_reminder(self, reminder_id: str, fields: ReminderFields) -> Reminder:
        reminder = self._ek_reminder(reminder_id)
        self._apply_reminder_fields(reminder, fields)
        self._save_reminder(reminder, "update")
        return self._reminder(reminder)

    def complete_reminder(self, reminder_id: str) -> Reminder:
        reminder = self._ek_reminder(reminder_id)
        self._apply_reminder_fields(reminder, ReminderFields(completed=True))
        self._save_reminder(reminder, "complete")
        return self._reminder(reminder)

    def delete_reminder(self, reminder_id: str) -> Reminder:
        reminder = self._ek_reminder(reminder_id)
        snapshot = self._reminder(reminder)
        ok, error = self._store.removeReminder_commit_error_(reminder, True, None)
        if not ok:
            raise StoreError(f"Failed to delete reminder: {_describe(error)}")
        return snapshot

    def _save_reminder(self, reminder: Any, verb: str) -> None:
        ok, error = self._store.saveReminder_commit_error_(reminder, True, None)
        if not ok:
            raise StoreError(f"Failed to {verb} reminder: {_describe(error)}")

    def _apply_reminder_fields(self, reminder: Any, fields: ReminderFields) -> None:
        if fields.title is not None:
            reminder.setTitle_(fields.title)
        if fields.priority is not None:
            reminder.setPriority_(fields.priority)
        if fields.notes is not None:
            reminder.setNotes_(fields.notes)
        if fields.due is not None:
            reminder.setDueDateComponents_(self._date_components(fields.due))
        if fields.completed is not None:
            reminder.setCompleted_(fields.completed)
            if fields.completed:
                reminder.setCompletionDate_(self._foundation.NSDate.date())

    def _reminder(self, reminder: Any) -> Reminder:
        calendar = reminder.calendar()
        components = reminder.dueDateComponents()
        due = None
        if components is not None:
            due = self._datetime(
                self._foundation.NSCalendar.currentCalendar().dateFromComponents_(components),
            )
        url = reminder.URL()
        return Reminder(
            id=str(reminder.calendarItemIdentifier()),
            title=str(reminder.title() or ""),
            list_id=str(calendar.calendarIdentifier()) if calendar is not None else "",
            list_title=str(calendar.title() or "") if calendar is not None else "",
            completed=bool(reminder.isCompleted()),
            priority=int(reminder.priority()),
            due=due,
            completion_date=self._datetime(reminder.completionDate()),
            notes=_optional_text(reminder.notes()),
            url=str(url.absoluteString()) if url is not None else None,
        )

    # ------------------------------------------------------------------
    # Foundation conversions
    # ------------------------------------------------------------------

    def _nsdate(self, value: datetime) -> Any:
        return self._foundation.NSDate.dateWithTimeIntervalSince1970_(value.timestamp())

    @staticmethod
    def _datetime(value: Any) -> datetime | None:
        if value is None:
            return None
        return datetime.fromtimestamp(float(value.timeIntervalSince1970()), tz=timezone.utc)

    def _date_components(self, value: datetime) -> Any:
        foundation = self._foundation
        units = (
            foundation.NSCalendarUnitYear
            | foundation.NSCalendarUnitMonth
            | foundation.NSCalendarUnitDay
            | foundation.NSCalendarUnitHour
            | foundation.NSCalendarUnitMinute
            | foundation.NSCalendarUnitSecond
        )
        return foundation.NSCalendar.currentCalendar().components_fromDate_(
            units,
            self._nsdate(value),
        )


def _optional_text(value: Any) -> str | None:
    return str(value) if value else None
