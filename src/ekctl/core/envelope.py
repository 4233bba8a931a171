"""The JSON result envelope every command returns.

An envelope is a value object: built once per command, never mutated,
serialized exactly once.  Its shape is the scripting contract of the
whole tool:

* success — the command payload plus ``"status": "success"``;
* error — exactly ``{"status": "error", "error": <message>}``.

Keys are emitted sorted so that output is diff-stable.  Serialization
never raises; an unencodable payload degrades to an error envelope.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from ekctl.exceptions import SerializationError

STATUS_SUCCESS: str = "success"
STATUS_ERROR: str = "error"


def _dumps(data: Mapping[str, Any]) -> str:
    """Render *data* as sorted, indented, strict JSON.

    Raises
    ------
    SerializationError
        When *data* holds a value JSON cannot represent.
    """
    try:
        return json.dumps(
            dict(data),
            sort_keys=True,
            indent=2,
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError, RecursionError) as exc:
        raise SerializationError(f"JSON serialization failed: {exc}") from exc


class ResultEnvelope:
    """Immutable result object; construct via :meth:`success` or :meth:`error`."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data: Mapping[str, Any] = MappingProxyType(dict(data))

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def success(cls, payload: Mapping[str, Any] | None = None) -> ResultEnvelope:
        """Wrap a deep copy of *payload*, adding ``status`` only when absent.

        A caller-supplied ``status`` wins, even when it is not
        ``"success"``.
        """
        data = copy.deepcopy(dict(payload or {}))
        data.setdefault("status", STATUS_SUCCESS)
        return cls(data)

    @classmethod
    def error(cls, message: str) -> ResultEnvelope:
        """Build the fixed two-key error shape."""
        return cls({"status": STATUS_ERROR, "error": message})

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def status(self) -> Any:
        return self._data.get("status")

    @property
    def is_error(self) -> bool:
        return self._data.get("status") == STATUS_ERROR

    def serialize(self) -> str:
        """Return deterministic JSON text for this envelope."""
        try:
            return _dumps(self._data)
        except SerializationError as exc:
            return _dumps({"status": STATUS_ERROR, "error": str(exc)})

    def rendered(self) -> ResultEnvelope:
        """Return the envelope :meth:`serialize` will actually emit.

        That is ``self`` when the payload is encodable, otherwise the
        serialization-failure error envelope.
        """
        try:
            _dumps(self._data)
        except SerializationError as exc:
            return ResultEnvelope.error(str(exc))
        return self

    def as_mapping(self) -> dict[str, Any]:
        """Re-parse :meth:`serialize` output into a plain ``dict``."""
        return json.loads(self.serialize())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResultEnvelope):
            return NotImplemented
        return dict(self._data) == dict(other._data)

    def __hash__(self) -> int:
        return hash(self.serialize())

    def __repr__(self) -> str:
        return f"ResultEnvelope({dict(self._data)!r})"
