"""Logging setup for the command line."""

from __future__ import annotations

import logging


def level_for_verbosity(verbose: int) -> int:
    """Map the count of ``-v`` flags to a level: none is INFO, any is DEBUG."""
    return logging.DEBUG if verbose > 0 else logging.INFO


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Send report progress to stderr as ``HH:MM:SS LEVEL [module] message``.

    ``igarecon -v`` passes DEBUG, which adds per-record parse and pairing diagnostics.
    A second call is a no-op unless ``force`` is set.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
