"""Single source of truth for the ekctl version string."""

from __future__ import annotations

__version__: str = "1.1.0"
