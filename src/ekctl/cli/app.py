"""CLI application entry point and command routing for ekctl.

This module is the **sole error boundary** for the entire application.
Every invocation writes exactly one JSON envelope to stdout: the
orchestrator's outcome, an argument error, or — from :func:`cli` — an
envelope for ``KeyboardInterrupt`` and any unexpected ``Exception``.

Architecture notes
------------------
* No business logic lives here — all work is delegated to the core
  orchestrator and the infrastructure layer.
* stdout carries the envelope only; diagnostics and logs go to stderr.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import functools
import logging
import sys
from collections.abc import Mapping
from typing import Any, NoReturn

from ekctl.cli import exit_codes
from ekctl.cli.console import configure_logging
from ekctl.config import Settings, load_settings
from ekctl.core.envelope import ResultEnvelope
from ekctl.core.orchestrator import CommandOrchestrator, CommandRequest
from ekctl.exceptions import EkctlError, PermissionDeniedError, ValidationError
from ekctl.version import __version__

log = logging.getLogger(__name__)

# argparse bookkeeping that is not a command parameter.
_NON_PARAMS: frozenset[str] = frozenset({"action", "verbose", "command", "target"})


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

class _ArgumentParser(argparse.ArgumentParser):
    """Parser whose usage errors become ``ValidationError`` envelopes."""

    def error(self, message: str) -> NoReturn:
        raise ValidationError(message)


def _add_event_options(parser: argparse.ArgumentParser, *, creating: bool) -> None:
    parser.add_argument("--title", required=creating)
    parser.add_argument("--start", required=creating, help="ISO8601, e.g. 2026-02-01T09:00:00Z")
    parser.add_argument("--end", required=creating, help="ISO8601, e.g. 2026-02-01T10:00:00Z")
    parser.add_argument("--location")
    parser.add_argument("--notes")
    if creating:
        parser.add_argument("--all-day", action="store_true", default=False)
    else:
        parser.add_argument("--all-day", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument(
        "--alarms",
        help="Comma-separated minutes; '10' or '-10' before start, '+10' after.",
    )
    parser.add_argument("--travel-time", metavar="MINUTES")
    parser.add_argument("--recurrence", help="daily, weekly, monthly or yearly.")
    parser.add_argument("--recurrence-interval", metavar="N")


def _add_reminder_options(parser: argparse.ArgumentParser, *, creating: bool) -> None:
    parser.add_argument("--title", required=creating)
    parser.add_argument("--due", help="ISO8601, e.g. 2026-02-01T09:00:00Z")
    parser.add_argument("--priority", help="0=none, 1=high, 5=medium, 9=low.")
    parser.add_argument("--notes")
    if not creating:
        parser.add_argument("--completed", metavar="true|false")


def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    Without a sub-command ekctl lists calendars, like ``ekctl list
    calendars``.
    """
    parser = _ArgumentParser(
        prog="ekctl",
        description="Manage macOS Calendar events and Reminders from the command line.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output to stderr.",
    )
    parser.set_defaults(action="list-calendars")
    commands = parser.add_subparsers(dest="command")

    # list
    list_cmd = commands.add_parser("list", help="List calendars, events or reminders.")
    list_targets = list_cmd.add_subparsers(dest="target", required=True)
    list_targets.add_parser("calendars").set_defaults(action="list-calendars")
    events = list_targets.add_parser("events")
    events.add_argument("--calendar", required=True, help="Calendar ID or alias.")
    events.add_argument("--from", required=True, help="ISO8601, e.g. 2026-02-01T00:00:00Z")
    events.add_argument("--to", required=True, help="ISO8601, e.g. 2026-02-07T23:59:59Z")
    events.set_defaults(action="list-events")
    reminders = list_targets.add_parser("reminders")
    reminders.add_argument("--list", required=True, help="Reminder list ID or alias.")
    reminders.add_argument("--completed", metavar="true|false")
    reminders.set_defaults(action="list-reminders")

    # show / delete share a single positional ID
    for verb in ("show", "delete"):
        verb_cmd = commands.add_parser(verb, help=f"{verb.capitalize()} an event or reminder.")
        verb_targets = verb_cmd.add_subparsers(dest="target", required=True)
        verb_event = verb_targets.add_parser("event")
        verb_event.add_argument("event_id", metavar="ID")
        verb_event.set_defaults(action=f"{verb}-event")
        verb_reminder = verb_targets.add_parser("reminder")
        verb_reminder.add_argument("reminder_id", metavar="ID")
        verb_reminder.set_defaults(action=f"{verb}-reminder")

    # add
    add_cmd = commands.add_parser("add", help="Create an event or reminder.")
    add_targets = add_cmd.add_subparsers(dest="target", required=True)
    add_event = add_targets.add_parser("event")
    add_event.add_argument("--calendar", required=True, help="Calendar ID or alias.")
    _add_event_options(add_event, creating=True)
    add_event.set_defaults(action="add-event")
    add_reminder = add_targets.add_parser("reminder")
    add_reminder.add_argument("--list", required=True, help="Reminder list ID or alias.")
    _add_reminder_options(add_reminder, creating=True)
    add_reminder.set_defaults(action="add-reminder")

    # update
    update_cmd = commands.add_parser("update", help="Change fields of an event or reminder.")
    update_targets = update_cmd.add_subparsers(dest="target", required=True)
    update_event = update_targets.add_parser("event")
    update_event.add_argument("event_id", metavar="ID")
    _add_event_options(update_event, creating=False)
    update_event.set_defaults(action="update-event")
    update_reminder = update_targets.add_parser("reminder")
    update_reminder.add_argument("reminder_id", metavar="ID")
    _add_reminder_options(update_reminder, creating=False)
    update_reminder.set_defaults(action="update-reminder")

    # complete
    complete_cmd = commands.add_parser("complete", help="Mark a reminder as completed.")
    complete_targets = complete_cmd.add_subparsers(dest="target", required=True)
    complete_reminder = complete_targets.add_parser("reminder")
    complete_reminder.add_argument("reminder_id", metavar="ID")
    complete_reminder.set_defaults(action="complete-reminder")

    # alias
    alias_cmd = commands.add_parser("alias", help="Manage calendar and list aliases.")
    alias_targets = alias_cmd.add_subparsers(dest="target", required=True)
    alias_set = alias_targets.add_parser("set")
    alias_set.add_argument("name", metavar="NAME")
    alias_set.add_argument("id", metavar="ID")
    alias_set.set_defaults(action="alias-set")
    alias_remove = alias_targets.add_parser("remove")
    alias_remove.add_argument("name", metavar="NAME")
    alias_remove.set_defaults(action="alias-remove")
    alias_targets.add_parser("list").set_defaults(action="alias-list")

    # doctor
    commands.add_parser("doctor", help="Run environment diagnostics.").set_defaults(
        action="doctor",
    )
    return parser


def _params(args: argparse.Namespace) -> dict[str, Any]:
    """Command parameters from *args*; options left unset are omitted."""
    return {
        key: value
        for key, value in vars(args).items()
        if key not in _NON_PARAMS and value is not None
    }


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def exit_code_for(error: BaseException | None) -> int:
    """Map the error behind an envelope to a process exit code."""
    if isinstance(error, PermissionDeniedError):
        return exit_codes.PERMISSION_DENIED
    return exit_codes.GENERAL_ERROR


def _emit(envelope: ResultEnvelope, error: BaseException | None = None) -> int:
    """Write *envelope* to stdout once and return the matching exit code."""
    rendered = envelope.rendered()
    sys.stdout.write(rendered.serialize() + "\n")
    sys.stdout.flush()
    if error is None and not rendered.is_error:
        return exit_codes.SUCCESS
    return exit_code_for(error)


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _build_orchestrator(settings: Settings) -> CommandOrchestrator:
    """Wire the production registry and EventKit store."""
    from ekctl.core.alias_registry import AliasRegistry
    from ekctl.infra.document_store import FileDocumentStore
    from ekctl.infra.eventkit_store import EventKitStore

    registry = AliasRegistry(FileDocumentStore(settings.registry_path))
    store_factory = functools.partial(
        EventKitStore,
        access_timeout=settings.access_timeout_seconds,
    )
    return CommandOrchestrator(registry, store_factory)


def _handle_doctor(settings: Settings) -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from ekctl.cli.doctor import run_doctor

    return _emit(run_doctor(settings))


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(
    argv: list[str] | None = None,
    *,
    orchestrator: CommandOrchestrator | None = None,
) -> int:
    """Run the ekctl CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.
    orchestrator:
        Pre-wired orchestrator, for tests and embedding.  When ``None``
        the production registry and EventKit store are used.

    Returns
    -------
    int
        OS process exit code.
    """
    try:
        args = _build_parser().parse_args(argv)
        settings = load_settings()
    except ValidationError as exc:
        return _emit(ResultEnvelope.error(str(exc)), exc)

    configure_logging("DEBUG" if args.verbose else settings.log_level)
    log.debug("Dispatching %s", args.action)

    if args.action == "doctor":
        return _handle_doctor(settings)

    if orchestrator is None:
        orchestrator = _build_orchestrator(settings)
    params: Mapping[str, Any] = _params(args)
    outcome = orchestrator.execute(CommandRequest(args.action, params))
    return _emit(outcome.envelope, outcome.error)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage: every failure is
    reported as exactly one JSON error envelope.
    """
    try:
        code = main()
        sys.exit(code)
    except EkctlError as exc:
        sys.exit(_emit(ResultEnvelope.error(str(exc)), exc))
    except KeyboardInterrupt:
        _emit(ResultEnvelope.error("Aborted by user."))
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        log.debug("Unhandled exception", exc_info=True)
        _emit(ResultEnvelope.error(f"Unexpected error: {type(exc).__name__}: {exc}"))
        sys.exit(exit_codes.UNEXPECTED_ERROR)
