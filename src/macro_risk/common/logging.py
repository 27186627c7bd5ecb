"""Root logger setup for CLI entry points."""

from __future__ import annotations

import logging

from rich.logging import RichHandler


def configure_logging(level: int | str = logging.WARNING) -> None:
    """Install a Rich handler on the root logger.

    Idempotent: does nothing if the root logger already has handlers.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    handler = RichHandler(show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
