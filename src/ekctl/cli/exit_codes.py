"""Exit-code constants used by the CLI layer.

Centralised here so that every exit path uses a well-known, tested
value rather than magic integers scattered across the codebase.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Clean exit — a success envelope was written to stdout."""

GENERAL_ERROR: int = 1
"""A known EkctlError was converted into an error envelope."""

UNEXPECTED_ERROR: int = 2
"""An unhandled exception escaped all known error boundaries."""

PERMISSION_DENIED: int = 3
"""Calendar/Reminders access was denied or could not be requested."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""
