"""Infrastructure layer — external system integration.

This layer wraps all interaction with EventKit (through PyObjC) and the
filesystem.  Every raw third-party or OS exception must be caught here
and re-raised as an :class:`~ekctl.exceptions.EkctlError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from ekctl.infra.document_store import FileDocumentStore, MemoryDocumentStore
from ekctl.infra.eventkit_store import EventKitStore

__all__: list[str] = [
    "EventKitStore",
    "FileDocumentStore",
    "MemoryDocumentStore",
]
