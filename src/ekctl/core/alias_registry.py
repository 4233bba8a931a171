"""Alias registry — persisted ``name → id`` mapping over opaque identifiers.

The registry holds no state of its own between calls: every operation
loads the whole document from its :class:`DocumentStore`, and every
mutation rewrites the whole document.  Concurrent ``ekctl`` processes
writing the same store may therefore lose updates (last writer wins);
there is no cross-process locking.

Best-effort load
----------------
A missing store, an unreadable store, and a malformed document all load
as the empty registry, so a corrupt config file never stops calendar
commands from working.  The only place the distinction is visible is
:meth:`AliasRegistry.inspect`.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ekctl.core.models import (
    REGISTRY_SCHEMA_VERSION,
    AliasEntry,
    RegistryDocument,
    RegistryState,
)
from ekctl.core.protocols import DocumentStore
from ekctl.exceptions import ValidationError

log = logging.getLogger(__name__)


class _Unparseable(Exception):
    """Internal marker: the stored text is not a valid registry document."""


def _parse_document(text: str) -> RegistryDocument:
    """Convert stored text into a :class:`RegistryDocument`.

    Both ``aliases`` (a mapping of strings to strings) and an integer
    ``version`` are required.
    """
    try:
        raw: Any = json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise _Unparseable(f"invalid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise _Unparseable("top-level value is not an object")

    aliases = raw.get("aliases")
    version = raw.get("version")
    if not isinstance(aliases, dict):
        raise _Unparseable("'aliases' is missing or not an object")
    if isinstance(version, bool) or not isinstance(version, int):
        raise _Unparseable("'version' is missing or not an integer")
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in aliases.items()):
        raise _Unparseable("'aliases' must map strings to strings")

    return RegistryDocument(aliases=dict(aliases), version=version)


def _render_document(document: RegistryDocument) -> str:
    payload = {"aliases": dict(document.aliases), "version": document.version}
    return json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False) + "\n"


def _validate_entry(name: str, identifier: str) -> AliasEntry:
    if not name or not name.strip():
        raise ValidationError("Alias name must not be empty.")
    if not identifier or not identifier.strip():
        raise ValidationError(f"Alias '{name}' needs a non-empty calendar or list ID.")
    for value in (name, identifier):
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise ValidationError(
                f"Alias values must be valid UTF-8 text: {value!r}",
            ) from None
    return AliasEntry(name=name, id=identifier)


class AliasRegistry:
    """CRUD and resolution over the persisted alias document.

    Parameters
    ----------
    store:
        Any object satisfying the :class:`DocumentStore` protocol.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store: DocumentStore = store

    # ------------------------------------------------------------------
    # Loading (best-effort policy)
    # ------------------------------------------------------------------

    def _read_state(self) -> tuple[RegistryState, RegistryDocument]:
        try:
            text = self._store.read()
        except OSError as exc:
            log.debug("Alias registry at %s is unreadable: %s", self.storage_location(), exc)
            return RegistryState.UNREADABLE, RegistryDocument.empty()

        if text is None:
            return RegistryState.ABSENT, RegistryDocument.empty()

        try:
            return RegistryState.PRESENT, _parse_document(text)
        except _Unparseable as exc:
            log.debug("Ignoring malformed alias registry at %s: %s", self.storage_location(), exc)
            return RegistryState.UNREADABLE, RegistryDocument.empty()

    def load(self) -> RegistryDocument:
        """Load the registry; never raises, degrades to empty."""
        _, document = self._read_state()
        return document

    def inspect(self) -> RegistryState:
        """Report whether the store is absent, present, or unreadable."""
        state, _ = self._read_state()
        return state

    def _save(self, aliases: dict[str, str]) -> None:
        document = RegistryDocument(aliases=aliases, version=REGISTRY_SCHEMA_VERSION)
        self._store.write(_render_document(document))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set_alias(self, name: str, identifier: str) -> AliasEntry:
        """Create or overwrite *name* and persist the full registry.

        Raises
        ------
        ValidationError
            If *name* or *identifier* is blank.
        PersistenceError
            If the store cannot be written.
        """
        entry = _validate_entry(name, identifier)
        aliases = dict(self.load().aliases)
        aliases[entry.name] = entry.id
        self._save(aliases)
        log.debug("Alias %r -> %r saved to %s", entry.name, entry.id, self.storage_location())
        return entry

    def remove_alias(self, name: str) -> bool:
        """Remove *name*; return ``False`` (and write nothing) if absent."""
        aliases = dict(self.load().aliases)
        if name not in aliases:
            return False
        del aliases[name]
        self._save(aliases)
        log.debug("Alias %r removed from %s", name, self.storage_location())
        return True

    def get_aliases(self) -> dict[str, str]:
        """Return every alias, freshly loaded from the store."""
        return dict(self.load().aliases)

    def resolve_alias(self, name_or_id: str) -> str:
        """Return the id behind *name_or_id*, or the input itself."""
        resolved = self.load().aliases.get(name_or_id, name_or_id)
        if resolved != name_or_id:
            log.debug("Resolved alias %r to %r", name_or_id, resolved)
        return resolved

    def storage_location(self) -> str:
        return self._store.location()
