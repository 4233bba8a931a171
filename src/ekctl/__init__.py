"""ekctl — macOS Calendar and Reminders from the command line.

Every command prints exactly one JSON document, and calendars or
reminder lists can be addressed by user-defined aliases.
"""

from ekctl.version import __version__

__all__: list[str] = ["__version__"]
