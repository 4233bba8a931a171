"""Command orchestrator — one request in, one envelope out.

For every action the orchestrator:

1. validates and converts the raw parameters (fail fast, before any
   backend call, including the permission request);
2. for calendar/reminder actions, opens the store and requests access
   exactly once;
3. resolves ``calendar`` / ``list`` parameters through the alias
   registry (event and reminder ids are never resolved, and identifiers
   in output are never rewritten back to aliases);
4. calls the store and wraps the result in a :class:`ResultEnvelope`.

Every :class:`~ekctl.exceptions.EkctlError` raised along the way is
converted into an error envelope; nothing escapes :meth:`execute`.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ekctl.core.alias_registry import AliasRegistry
from ekctl.core.envelope import ResultEnvelope
from ekctl.core.models import EventFields, JSONValue, Recurrence, ReminderFields
from ekctl.core.parsing import (
    PRIORITY_NONE,
    RECURRENCE_FREQUENCIES,
    parse_alarms,
    parse_bool,
    parse_iso8601,
    parse_priority,
    recurrence_interval,
    travel_time_seconds,
)
from ekctl.core.payloads import calendar_payload, event_payload, reminder_payload
from ekctl.core.protocols import CalendarStore
from ekctl.exceptions import (
    EkctlError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
    append_permission_guidance,
)

log = logging.getLogger(__name__)

Payload = dict[str, JSONValue]

PERMISSION_DENIED_MESSAGE: str = (
    "Permission denied for both Calendar and Reminders. "
    "Please grant access in System Settings > Privacy & Security."
)


@dataclass(frozen=True, slots=True)
class CommandRequest:
    """A validated-by-argparse action name plus its raw parameters."""

    action: str
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CommandOutcome:
    """The envelope to print and, on failure, the error behind it."""

    envelope: ResultEnvelope
    error: EkctlError | None = None


# ---------------------------------------------------------------------------
# Parameter helpers
# ---------------------------------------------------------------------------

def _require(params: Mapping[str, Any], key: str) -> str:
    value = params.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"Missing required option: --{key.replace('_', '-')}")
    return str(value)


def _optional_str(params: Mapping[str, Any], key: str) -> str | None:
    value = params.get(key)
    return None if value is None else str(value)


def _date(params: Mapping[str, Any], key: str, *, example: str | None = None) -> datetime:
    parsed = parse_iso8601(_require(params, key))
    if parsed is None:
        suffix = f" (e.g., {example})" if example else ""
        raise ValidationError(f"Invalid --{key} date format. Use ISO8601{suffix}.")
    return parsed


def _optional_date(params: Mapping[str, Any], key: str) -> datetime | None:
    if params.get(key) is None:
        return None
    return _date(params, key)


def _priority(params: Mapping[str, Any]) -> int | None:
    raw = params.get("priority")
    if raw is None:
        return None
    value = parse_priority(str(raw))
    if value is None:
        raise ValidationError(
            "Invalid --priority value. Use 0-9 (0=none, 1=high, 5=medium, 9=low).",
        )
    return value


def _completed(params: Mapping[str, Any]) -> bool | None:
    raw = params.get("completed")
    if raw is None or isinstance(raw, bool):
        return raw
    value = parse_bool(str(raw))
    if value is None:
        raise ValidationError("Invalid --completed value. Use true or false.")
    return value


def _event_fields(params: Mapping[str, Any], *, creating: bool) -> EventFields:
    """Build :class:`EventFields` from raw options, validating each one."""
    if creating:
        start: datetime | None = _date(params, "start")
        end: datetime | None = _date(params, "end")
        if start is not None and end is not None and end < start:
            raise ValidationError("--end must not be before --start.")
    else:
        start = _optional_date(params, "start")
        end = _optional_date(params, "end")

    travel_time: int | None = None
    raw_travel = params.get("travel_time")
    if raw_travel is not None:
        travel_time = travel_time_seconds(str(raw_travel))
        if travel_time is None:
            raise ValidationError("Invalid --travel-time value. Use whole minutes.")

    alarms = parse_alarms(_optional_str(params, "alarms"))

    recurrence: Recurrence | None = None
    frequency = _optional_str(params, "recurrence")
    raw_interval = _optional_str(params, "recurrence_interval")
    if frequency is not None:
        if frequency not in RECURRENCE_FREQUENCIES:
            raise ValidationError(
                f"Invalid --recurrence value. Use one of: {', '.join(RECURRENCE_FREQUENCIES)}.",
            )
        recurrence = Recurrence(frequency=frequency, interval=recurrence_interval(raw_interval))
    elif raw_interval is not None:
        raise ValidationError("--recurrence-interval requires --recurrence.")

    all_day = params.get("all_day")
    return EventFields(
        title=_require(params, "title") if creating else _optional_str(params, "title"),
        start=start,
        end=end,
        location=_optional_str(params, "location"),
        notes=_optional_str(params, "notes"),
        all_day=bool(all_day) if creating else all_day,
        alarm_offsets=tuple(alarms) if alarms is not None else None,
        travel_time=travel_time,
        recurrence=recurrence,
    )


def _reminder_fields(params: Mapping[str, Any], *, creating: bool) -> ReminderFields:
    priority = _priority(params)
    return ReminderFields(
        title=_require(params, "title") if creating else _optional_str(params, "title"),
        due=_optional_date(params, "due"),
        priority=PRIORITY_NONE if creating and priority is None else priority,
        notes=_optional_str(params, "notes"),
        completed=None if creating else _completed(params),
    )


def _ensure_changes(fields: EventFields | ReminderFields) -> None:
    if all(getattr(fields, f.name) is None for f in dataclasses.fields(fields)):
        raise ValidationError("Nothing to update. Pass at least one field option.")


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class CommandOrchestrator:
    """Dispatches :class:`CommandRequest` objects to store and registry.

    Parameters
    ----------
    registry:
        The alias registry used for input-side resolution and the
        ``alias-*`` actions.
    store_factory:
        Zero-argument callable returning a :class:`CalendarStore`.  It is
        only invoked for actions that need the backend, so alias
        commands work on machines without EventKit.
    """

    def __init__(
        self,
        registry: AliasRegistry,
        store_factory: Callable[[], CalendarStore],
    ) -> None:
        self._registry: AliasRegistry = registry
        self._store_factory: Callable[[], CalendarStore] = store_factory
        self._handlers: dict[str, Callable[[Mapping[str, Any]], Payload]] = {
            "list-calendars": self._list_calendars,
            "list-events": self._list_events,
            "list-reminders": self._list_reminders,
            "show-event": self._show_event,
            "show-reminder": self._show_reminder,
            "add-event": self._add_event,
            "add-reminder": self._add_reminder,
            "update-event": self._update_event,
            "update-reminder": self._update_reminder,
            "complete-reminder": self._complete_reminder,
            "delete-event": self._delete_event,
            "delete-reminder": self._delete_reminder,
            "alias-set": self._alias_set,
            "alias-remove": self._alias_remove,
            "alias-list": self._alias_list,
        }

    @property
    def actions(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def execute(self, request: CommandRequest) -> CommandOutcome:
        """Run *request* and return exactly one envelope."""
        handler = self._handlers.get(request.action)
        try:
            if handler is None:
                raise ValidationError(f"Unknown command: {request.action}")
            payload = handler(request.params)
        except EkctlError as exc:
            log.debug("%s failed: %s: %s", request.action, type(exc).__name__, exc)
            if exc.hint:
                log.info("Hint: %s", exc.hint)
            return CommandOutcome(ResultEnvelope.error(str(exc)), exc)
        return CommandOutcome(ResultEnvelope.success(payload))

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    def _connect(self) -> CalendarStore:
        """Create the store and pass the one-shot permission gate."""
        store = self._store_factory()
        access = store.request_access()
        if access.error:
            raise PermissionDeniedError(access.error, hint=append_permission_guidance(None))
        if access.denied:
            raise PermissionDeniedError(PERMISSION_DENIED_MESSAGE)
        log.debug(
            "Access granted (events=%s, reminders=%s)",
            access.events_granted,
            access.reminders_granted,
        )
        return store

    # ------------------------------------------------------------------
    # Calendars and events
    # ------------------------------------------------------------------

    def _list_calendars(self, params: Mapping[str, Any]) -> Payload:
        store = self._connect()
        return {"calendars": [calendar_payload(c) for c in store.list_calendars()]}

    def _list_events(self, params: Mapping[str, Any]) -> Payload:
        calendar = _require(params, "calendar")
        start = _date(params, "from", example="2026-02-01T00:00:00Z")
        end = _date(params, "to", example="2026-02-07T23:59:59Z")
        store = self._connect()
        events = store.list_events(self._registry.resolve_alias(calendar), start, end)
        return {"events": [event_payload(e) for e in events], "count": len(events)}

    def _show_event(self, params: Mapping[str, Any]) -> Payload:
        event_id = _require(params, "event_id")
        store = self._connect()
        return {"event": event_payload(store.get_event(event_id))}

    def _add_event(self, params: Mapping[str, Any]) -> Payload:
        calendar = _require(params, "calendar")
        fields = _event_fields(params, creating=True)
        store = self._connect()
        event = store.create_event(self._registry.resolve_alias(calendar), fields)
        return {
            "status": "success",
            "message": "Event created successfully",
            "event": event_payload(event),
        }

    def _update_event(self, params: Mapping[str, Any]) -> Payload:
        event_id = _require(params, "event_id")
        fields = _event_fields(params, creating=False)
        _ensure_changes(fields)
        store = self._connect()
        event = store.update_event(event_id, fields)
        return {
            "status": "success",
            "message": "Event updated successfully",
            "event": event_payload(event),
        }

    def _delete_event(self, params: Mapping[str, Any]) -> Payload:
        event_id = _require(params, "event_id")
        store = self._connect()
        event = store.delete_event(event_id)
        return {
            "status": "success",
            "message": f"Event '{event.title or 'Untitled'}' deleted successfully",
            "deletedEventID": event_id,
        }

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    def _list_reminders(self, params: Mapping[str, Any]) -> Payload:
        list_name = _require(params, "list")
        completed = _completed(params)
        store = self._connect()
        reminders = store.list_reminders(self._registry.resolve_alias(list_name), completed)
        return {"reminders": [reminder_payload(r) for r in reminders], "count": len(reminders)}

    def _show_reminder(self, params: Mapping[str, Any]) -> Payload:
        reminder_id = _require(params, "reminder_id")
        store = self._connect()
        return {"reminder": reminder_payload(store.get_reminder(reminder_id))}

    def _add_reminder(self, params: Mapping[str, Any]) -> Payload:
        list_name = _require(params, "list")
        fields = _reminder_fields(params, creating=True)
        store = self._connect()
        reminder = store.create_reminder(self._registry.resolve_alias(list_name), fields)
        return {
            "status": "success",
            "message": "Reminder created successfully",
            "reminder": reminder_payload(reminder),
        }

    def _update_reminder(self, params: Mapping[str, Any]) -> Payload:
        reminder_id = _require(params, "reminder_id")
        fields = _reminder_fields(params, creating=False)
        _ensure_changes(fields)
        store = self._connect()
        reminder = store.update_reminder(reminder_id, fields)
        return {
            "status": "success",
            "message": "Reminder updated successfully",
            "reminder": reminder_payload(reminder),
        }

    def _complete_reminder(self, params: Mapping[str, Any]) -> Payload:
        reminder_id = _require(params, "reminder_id")
        store = self._connect()
        reminder = store.complete_reminder(reminder_id)
        return {
            "status": "success",
            "message": f"Reminder '{reminder.title or 'Untitled'}' marked as completed",
            "reminder": reminder_payload(reminder),
        }

    def _delete_reminder(self, params: Mapping[str, Any]) -> Payload:
        reminder_id = _require(params, "reminder_id")
        store = self._connect()
        reminder = store.delete_reminder(reminder_id)
        return {
            "status": "success",
            "message": f"Reminder '{reminder.title or 'Untitled'}' deleted successfully",
            "deletedReminderID": reminder_id,
        }

    # ------------------------------------------------------------------
    # Aliases (never touch the store)
    # ------------------------------------------------------------------

    def _alias_set(self, params: Mapping[str, Any]) -> Payload:
        name = _optional_str(params, "name") or ""
        identifier = _optional_str(params, "id") or ""
        try:
            entry = self._registry.set_alias(name, identifier)
        except PersistenceError as exc:
            raise PersistenceError(f"Failed to save alias: {exc}", hint=exc.hint) from exc
        return {
            "status": "success",
            "message": f"Alias '{entry.name}' set successfully",
            "alias": {"name": entry.name, "id": entry.id},
        }

    def _alias_remove(self, params: Mapping[str, Any]) -> Payload:
        name = _require(params, "name")
        try:
            removed = self._registry.remove_alias(name)
        except PersistenceError as exc:
            raise PersistenceError(f"Failed to remove alias: {exc}", hint=exc.hint) from exc
        if not removed:
            raise ValidationError(f"Alias '{name}' not found")
        return {"status": "success", "message": f"Alias '{name}' removed successfully"}

    def _alias_list(self, params: Mapping[str, Any]) -> Payload:
        aliases = self._registry.get_aliases()
        entries: list[JSONValue] = [
            {"name": name, "id": identifier} for name, identifier in sorted(aliases.items())
        ]
        return {
            "aliases": entries,
            "count": len(entries),
            "configPath": self._registry.storage_location(),
        }
