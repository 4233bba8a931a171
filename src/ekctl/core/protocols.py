"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ekctl.core.models import (
    AccessResult,
    CalendarInfo,
    Event,
    EventFields,
    Reminder,
    ReminderFields,
)


class DocumentStore(Protocol):
    """Contract for the backing storage of the alias registry.

    A document store holds exactly one text document.  Production code
    uses a file under the user's config directory; tests use an
    in-memory store.
    """

    def read(self) -> str | None:
        """Return the stored document, or ``None`` when nothing is stored.

        Implementations may raise :class:`OSError` for unreadable
        storage; the registry treats that the same as a corrupt document.
        """
        ...  # pragma: no cover

    def write(self, text: str) -> None:
        """Replace the stored document atomically.

        Raises
        ------
        PersistenceError
            When the document cannot be written.
        """
        ...  # pragma: no cover

    def location(self) -> str:
        """Human-readable locator used in diagnostics and output."""
        ...  # pragma: no cover


class CalendarStore(Protocol):
    """Contract for calendar and reminder backends.

    Every method blocks until the backend delivers a single terminal
    result.  Implementations must map all backend-specific exceptions to
    :class:`~ekctl.exceptions.EkctlError` subclasses:

    * :class:`~ekctl.exceptions.NotFoundError` for unknown identifiers,
    * :class:`~ekctl.exceptions.ValidationError` for read-only targets,
    * :class:`~ekctl.exceptions.StoreError` for failed saves/removals.
    """

    def request_access(self) -> AccessResult:
        """Ask for Calendar and Reminders access and wait for the answer."""
        ...  # pragma: no cover

    def list_calendars(self) -> list[CalendarInfo]:
        """Return every event calendar followed by every reminder list."""
        ...  # pragma: no cover

    def list_events(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
    ) -> list[Event]:
        """Return events of *calendar_id* overlapping ``[start, end]``."""
        ...  # pragma: no cover

    def list_reminders(
        self,
        list_id: str,
        completed: bool | None = None,
    ) -> list[Reminder]:
        """Return reminders of *list_id*, optionally filtered by completion."""
        ...  # pragma: no cover

    def get_event(self, event_id: str) -> Event:
        ...  # pragma: no cover

    def get_reminder(self, reminder_id: str) -> Reminder:
        ...  # pragma: no cover

    def create_event(self, calendar_id: str, fields: EventFields) -> Event:
        ...  # pragma: no cover

    def create_reminder(self, list_id: str, fields: ReminderFields) -> Reminder:
        ...  # pragma: no cover

    def update_event(self, event_id: str, fields: EventFields) -> Event:
        """Apply only the non-``None`` *fields* to an existing event."""
        ...  # pragma: no cover

    def update_reminder(self, reminder_id: str, fields: ReminderFields) -> Reminder:
        """Apply only the non-``None`` *fields* to an existing reminder."""
        ...  # pragma: no cover

    def complete_reminder(self, reminder_id: str) -> Reminder:
        """Mark a reminder completed, stamping its completion date."""
        ...  # pragma: no cover

    def delete_event(self, event_id: str) -> Event:
        """Remove an event and return it as it was before removal."""
        ...  # pragma: no cover

    def delete_reminder(self, reminder_id: str) -> Reminder:
        """Remove a reminder and return it as it was before removal."""
        ...  # pragma: no cover
