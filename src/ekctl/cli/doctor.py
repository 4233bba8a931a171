"""``ekctl doctor`` — environment diagnostics command.

Gathers system information and renders a Rich table (on stderr)
summarising whether the runtime environment satisfies ekctl's
requirements, then hands a JSON envelope back to the CLI for stdout.

This module lives in the CLI layer — it may import from ``infra``
and ``core``, and it renders via Rich.  No business logic resides
here; it purely collects and displays diagnostic data.
"""

from __future__ import annotations

import platform
import sys

from ekctl.cli.console import console
from ekctl.config import Settings
from ekctl.core.alias_registry import AliasRegistry
from ekctl.core.envelope import ResultEnvelope
from ekctl.core.models import RegistryState
from ekctl.infra.document_store import FileDocumentStore
from ekctl.version import __version__

Check = tuple[str, str, str]


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _ekctl_version_check() -> Check:
    """Return (label, value, status) for the ekctl version row."""
    return "ekctl", __version__, "[green]OK[/green]"


def _python_version_check() -> Check:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    status = "[green]OK[/green]" if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _eventkit_check() -> Check:
    """Return (label, value, status) for the PyObjC EventKit row."""
    try:
        import EventKit  # noqa: F401
    except ImportError:
        return "EventKit", "NOT INSTALLED", "[red]FAIL[/red]"
    return "EventKit", "pyobjc", "[green]OK[/green]"


def _os_check() -> Check:
    """Return (label, value, status) for the OS row."""
    system_raw = platform.system()
    system_display = {
        "Windows": "Windows",
        "Linux": "Linux",
        "Darwin": "macOS",
    }.get(system_raw, system_raw)
    value = f"{system_display} {platform.release()} ({platform.machine()})"
    if system_raw != "Darwin":
        return "OS", value, "[red]FAIL (macOS required)[/red]"
    return "OS", value, "[green]OK[/green]"


def _registry_check(settings: Settings) -> Check:
    """Return (label, value, status) for the alias registry row."""
    path = settings.registry_path
    state = AliasRegistry(FileDocumentStore(path)).inspect()
    if state is RegistryState.UNREADABLE:
        return "Aliases", f"{path} (unreadable)", "[yellow]WARN[/yellow]"
    if state is RegistryState.ABSENT:
        return "Aliases", f"{path} (not created yet)", "[green]OK[/green]"
    return "Aliases", str(path), "[green]OK[/green]"


def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    if "FAIL" in status:
        return "FAIL"
    if "WARN" in status:
        return "WARN"
    if "OK" in status:
        return "OK"
    return status


def collect_checks(settings: Settings) -> list[Check]:
    return [
        _ekctl_version_check(),
        _python_version_check(),
        _eventkit_check(),
        _os_check(),
        _registry_check(settings),
    ]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _print_plain_doctor_table(checks: list[Check]) -> None:
    """Render doctor output without Rich."""
    print("\nekctl doctor", file=sys.stderr)
    print("=" * 72, file=sys.stderr)
    print(f"{'Component':<12} {'Value':<48} {'Status':<8}", file=sys.stderr)
    print("-" * 72, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<12} {value:<48} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


def _render(checks: list[Check]) -> bool:
    """Render *checks*; return whether Rich was used."""
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        _print_plain_doctor_table(checks)
        return False

    table = Table(
        title="ekctl doctor",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Component", style="bold", min_width=12)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)

    for label, value, status in checks:
        table.add_row(label, value, status)

    console.print()
    console.print(table)
    console.print()
    return True


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(settings: Settings) -> ResultEnvelope:
    """Execute all diagnostic checks, render them, and build the envelope.

    Returns
    -------
    ResultEnvelope
        A success envelope carrying the ``checks`` list when no check
        FAILs, otherwise an error envelope naming the failed components.
    """
    checks = collect_checks(settings)
    rich_available = _render(checks)

    failed = [label for label, _, status in checks if "FAIL" in status]
    if failed:
        if rich_available:
            console.print("[bold red]Some checks failed.[/bold red]")
        else:
            print("Some checks failed.", file=sys.stderr)
        return ResultEnvelope.error(f"Doctor checks failed: {', '.join(failed)}")

    if rich_available:
        console.print("[bold green]All checks passed.[/bold green]")
    else:
        print("All checks passed.", file=sys.stderr)
    return ResultEnvelope.success(
        {
            "checks": [
                {"component": label, "value": value, "status": _status_plain(status)}
                for label, value, status in checks
            ],
        },
    )
