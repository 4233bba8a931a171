"""Custom exception hierarchy for ekctl.

All exceptions that cross layer boundaries must inherit from
:class:`EkctlError`.  Raw third-party exceptions (PyObjC, ``OSError``,
``json``) must NEVER propagate beyond the infrastructure layer — they
must be caught and re-raised as a typed subclass defined here.

The command orchestrator converts every :class:`EkctlError` into a JSON
error envelope, so ``str(exc)`` is exactly what the user reads in the
``error`` field.

Hierarchy
---------
EkctlError
├── ValidationError
├── NotFoundError
├── PermissionDeniedError
├── PersistenceError
├── SerializationError
├── StoreError
└── EnvironmentError
"""

from __future__ import annotations


class EkctlError(Exception):
    """Base exception for all ekctl errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the command boundary can render it as a JSON
    error envelope without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance, logged alongside the error."""


# --- Local input -----------------------------------------------------------

class ValidationError(EkctlError):
    """Raised when user input is malformed, before any backend call."""


# --- Backend lookups -------------------------------------------------------

class NotFoundError(EkctlError):
    """Raised when an identifier does not name an existing backend entity.

    The message is derived from *kind* and *identifier* so that scripts
    can rely on it, e.g. ``"Calendar not found with ID: X"``.
    """

    def __init__(
        self,
        kind: str,
        identifier: str,
        *,
        hint: str | None = None,
    ) -> None:
        super().__init__(f"{kind} not found with ID: {identifier}", hint=hint)
        self.kind: str = kind
        self.identifier: str = identifier


class PermissionDeniedError(EkctlError):
    """Raised when access to Calendar/Reminders is denied or fails."""


class StoreError(EkctlError):
    """Raised when the backend rejects a save or remove operation."""


# --- Local state -----------------------------------------------------------

class PersistenceError(EkctlError):
    """Raised when the alias registry cannot be written to storage."""


class SerializationError(EkctlError):
    """Raised when a payload cannot be rendered as JSON."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(EkctlError):
    """Raised when a required runtime dependency is not available."""


def append_permission_guidance(hint: str | None) -> str:
    """Append System Settings guidance to an existing hint text.

    The guidance is appended only once and keeps the existing hint
    content verbatim.
    """
    marker = "Grant access in System Settings > Privacy & Security"
    if hint is None:
        return f"{marker} > Calendars / Reminders."
    if marker in hint:
        return hint
    return "\n".join((hint, f"{marker} > Calendars / Reminders."))
