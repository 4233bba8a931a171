"""Store record → JSON payload conversion.

Output keys follow the camelCase names scripts already depend on
(``allDay``, ``startDate``, ``deletedEventID`` ...).  Optional text
fields are always present and ``null`` when empty; ``url`` and
``completionDate`` appear only when set.
"""

from __future__ import annotations

from ekctl.core.models import CalendarInfo, Event, JSONValue, Reminder
from ekctl.core.parsing import format_iso8601


def _text_or_none(value: str | None) -> str | None:
    return value if value else None


def calendar_payload(calendar: CalendarInfo) -> dict[str, JSONValue]:
    return {
        "id": calendar.id,
        "title": calendar.title,
        "type": calendar.kind,
        "source": calendar.source,
        "color": calendar.color,
        "allowsModifications": calendar.allows_modifications,
    }


def event_payload(event: Event) -> dict[str, JSONValue]:
    data: dict[str, JSONValue] = {
        "id": event.id,
        "title": event.title,
        "calendar": {"id": event.calendar_id, "title": event.calendar_title},
        "allDay": event.all_day,
        "location": _text_or_none(event.location),
        "notes": _text_or_none(event.notes),
        "hasAlarms": event.has_alarms,
        "hasRecurrenceRules": event.has_recurrence_rules,
    }
    if event.start is not None:
        data["startDate"] = format_iso8601(event.start)
    if event.end is not None:
        data["endDate"] = format_iso8601(event.end)
    if event.url:
        data["url"] = event.url
    return data


def reminder_payload(reminder: Reminder) -> dict[str, JSONValue]:
    data: dict[str, JSONValue] = {
        "id": reminder.id,
        "title": reminder.title,
        "list": {"id": reminder.list_id, "title": reminder.list_title},
        "completed": reminder.completed,
        "priority": reminder.priority,
        "dueDate": format_iso8601(reminder.due) if reminder.due is not None else None,
        "notes": _text_or_none(reminder.notes),
    }
    if reminder.completion_date is not None:
        data["completionDate"] = format_iso8601(reminder.completion_date)
    if reminder.url:
        data["url"] = reminder.url
    return data
