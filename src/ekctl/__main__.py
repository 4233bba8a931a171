"""Allow ``python -m ekctl`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m ekctl`` behaves identically to the ``ekctl`` console
script.
"""

from __future__ import annotations

from ekctl.cli.app import cli

if __name__ == "__main__":
    cli()
