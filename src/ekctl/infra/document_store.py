"""Backing stores for the alias registry.

:class:`FileDocumentStore` is the production store: one JSON file,
rewritten atomically (temporary sibling file + :func:`os.replace`) so a
reader never sees a half-written document.  :class:`MemoryDocumentStore`
keeps the document in memory for tests and embedding.

Rules
-----
* No JSON knowledge — stores move opaque text.
* Write failures are re-raised as
  :class:`~ekctl.exceptions.PersistenceError`; read failures surface
  as :class:`OSError` for the registry's best-effort load to absorb.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path

from ekctl.exceptions import PersistenceError


class FileDocumentStore:
    """Concrete :class:`~ekctl.core.protocols.DocumentStore` backed by a file."""

    def __init__(self, path: Path) -> None:
        self._path: Path = path

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> str | None:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return None
        # Undecodable bytes become U+FFFD and then fail JSON parsing.
        return raw.decode("utf-8", errors="replace")

    def write(self, text: str) -> None:
        parent = self._path.parent
        tmp_name: str | None = None
        try:
            data = text.encode("utf-8")
            parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, self._path)
        except (OSError, UnicodeError) as exc:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            reason = getattr(exc, "strerror", None) or exc
            raise PersistenceError(
                f"Could not write {self._path}: {reason}",
                hint=f"Check that {parent} exists and is writable.",
            ) from exc

    def location(self) -> str:
        return str(self._path)


class MemoryDocumentStore:
    """Concrete :class:`~ekctl.core.protocols.DocumentStore` held in memory."""

    def __init__(self, text: str | None = None, *, name: str = "<memory>") -> None:
        self.text: str | None = text
        self._name: str = name

    def read(self) -> str | None:
        return self.text

    def write(self, text: str) -> None:
        self.text = text

    def location(self) -> str:
        return self._name
