"""Core / service layer — pure business logic and data transformations.

Rules
-----
* No ``print()`` calls.
* No direct filesystem, network or EventKit access (only via protocols).
* No imports from ``cli`` or ``infra``.
* All functions must be fully typed and deterministic.
"""

from ekctl.core.alias_registry import AliasRegistry
from ekctl.core.envelope import ResultEnvelope
from ekctl.core.models import (
    AccessResult,
    AliasEntry,
    CalendarInfo,
    Event,
    EventFields,
    Recurrence,
    RegistryDocument,
    RegistryState,
    Reminder,
    ReminderFields,
)
from ekctl.core.orchestrator import CommandOrchestrator, CommandOutcome, CommandRequest
from ekctl.core.protocols import CalendarStore, DocumentStore

__all__: list[str] = [
    "AccessResult",
    "AliasEntry",
    "AliasRegistry",
    "CalendarInfo",
    "CalendarStore",
    "CommandOrchestrator",
    "CommandOutcome",
    "CommandRequest",
    "DocumentStore",
    "Event",
    "EventFields",
    "Recurrence",
    "RegistryDocument",
    "RegistryState",
    "Reminder",
    "ReminderFields",
    "ResultEnvelope",
]
