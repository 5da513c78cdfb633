"""Terminal and log-file logging for CLI runs.

The library never configures logging itself; modules only emit through
``logging.getLogger(__name__)``.  The CLI calls :func:`setup_logging`, which
wires two handlers with separate levels:

- stderr, driven by ``--verbose`` (WARNING by default, DEBUG with ``-v``)
- a rotating file at ``<output_dir>/.patternlens/patternlens.log``, driven by
  ``PATTERNLENS_LOG_LEVEL`` (INFO by default)

Numerical ``RuntimeWarning``s from numpy/scipy are routed through the
``py.warnings`` logger so they land in the log file instead of interleaving
with table output.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIRNAME = ".patternlens"
LOG_FILENAME = "patternlens.log"
LOG_LEVEL_ENV = "PATTERNLENS_LOG_LEVEL"

_ROTATE_BYTES = 2 * 1024 * 1024
_ROTATE_KEEP = 3

_TERMINAL_FORMAT = "%(levelname)s %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def _parse_log_level(level_str: str) -> int:
    """Map a level name (any case) to its constant; unknown names mean INFO."""
    numeric = getattr(logging, level_str.strip().upper(), None)
    return numeric if isinstance(numeric, int) else logging.INFO


def log_path(output_dir: Path) -> Path:
    """Where :func:`setup_logging` writes the log for *output_dir*."""
    return output_dir / LOG_DIRNAME / LOG_FILENAME


def _terminal_handler(verbose: bool) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    handler.setFormatter(logging.Formatter(_TERMINAL_FORMAT))
    return handler


def _file_handler(output_dir: Path) -> logging.Handler:
    path = log_path(output_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path, maxBytes=_ROTATE_BYTES, backupCount=_ROTATE_KEEP, encoding="utf-8",
    )
    handler.setLevel(_parse_log_level(os.environ.get(LOG_LEVEL_ENV, "INFO")))
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    *,
    output_dir: Path | None = None,
    verbose: bool = False,
) -> None:
    """Install the terminal handler and, given *output_dir*, the log file.

    Safe to call repeatedly: existing root handlers are closed and replaced.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    # Handlers do the filtering
    root.setLevel(logging.DEBUG)

    root.addHandler(_terminal_handler(verbose))
    if output_dir is not None:
        root.addHandler(_file_handler(output_dir))

    logging.captureWarnings(True)
