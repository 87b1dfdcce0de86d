from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING", console: Console | None = None) -> None:
    """Route tapi's log records through rich on stderr."""
    log_level = getattr(logging, level.upper(), logging.WARNING)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))

    root = logging.getLogger("tapi")
    root.handlers[:] = [handler]
    root.setLevel(log_level)
    root.propagate = False
