"""Console logging through Rich."""

from __future__ import annotations

import logging

from rich.logging import RichHandler


def configure_logging(verbose: bool = True) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    handler = RichHandler(rich_tracebacks=True, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root.addHandler(handler)
    root.setLevel(logging.INFO if verbose else logging.WARNING)

    # Per-request lines from the HTTP client drown out probe output.
    for name in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(name).setLevel(logging.WARNING)
