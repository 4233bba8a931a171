"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``, the JSON
envelope itself) remain functional even when Rich is not installed.

Everything rendered here goes to **stderr**; stdout is reserved for the
JSON envelope.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from ekctl.exceptions import EnvironmentError

_HANDLER_NAME: str = "ekctl-cli"


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise EnvironmentError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console() -> Any:
	"""Create a Rich console instance targeting stderr."""
	console_class = _load_rich_console_class()
	return console_class(stderr=True)


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain stderr print."""
		try:
			rich_console = get_rich_console()
		except EnvironmentError:
			print(*objects, file=sys.stderr)
			return
		rich_console.print(*objects)


console = _ConsoleProxy()


def _build_log_handler() -> logging.Handler:
	"""RichHandler on stderr when available, else a plain stream handler."""
	try:
		from rich.logging import RichHandler

		return RichHandler(console=get_rich_console(), show_path=False, show_time=False)
	except (ModuleNotFoundError, EnvironmentError):
		handler = logging.StreamHandler(sys.stderr)
		handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
		return handler


def configure_logging(level: str | int) -> logging.Logger:
	"""Install the single stderr handler on the ``ekctl`` logger.

	Safe to call repeatedly: a handler installed by an earlier call is
	replaced, never duplicated.
	"""
	logger = logging.getLogger("ekctl")
	for existing in list(logger.handlers):
		if existing.get_name() == _HANDLER_NAME:
			logger.removeHandler(existing)

	handler = _build_log_handler()
	handler.set_name(_HANDLER_NAME)
	logger.addHandler(handler)
	logger.setLevel(level)
	return logger
