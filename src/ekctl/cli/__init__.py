"""CLI layer — argument parsing, logging setup, and error boundary.

This package is the outermost layer of the application.  It may import
from ``core``, ``infra`` and ``config``, but no other layer may import
from ``cli``.  It is also the only layer that writes to stdout, and it
writes exactly one JSON envelope per invocation.
"""
