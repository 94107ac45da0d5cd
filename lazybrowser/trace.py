"""Optional file tracing for the ``lazybrowser`` logger tree.

The TUI owns the terminal, so log records only go to a file, and only
when a trace path is given on the command line or in the environment.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

TRACE_ENV = "LAZYBROWSER_TRACE"
TRACE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def init_tracing(path: Path | str | None = None) -> logging.Handler:
    """Attach a handler to the ``lazybrowser`` logger and return it.

    ``path`` wins over ``LAZYBROWSER_TRACE``. Without either, a
    ``NullHandler`` is installed so records are dropped quietly.
    """
    root = logging.getLogger("lazybrowser")
    if path is None:
        env_path = os.environ.get(TRACE_ENV, "").strip()
        path = env_path or None

    handler: logging.Handler
    if path is None:
        handler = logging.NullHandler()
    else:
        handler = logging.FileHandler(Path(path).expanduser(), encoding="utf-8")
        handler.setFormatter(logging.Formatter(TRACE_FORMAT))
        root.setLevel(logging.DEBUG)
    root.addHandler(handler)
    root.propagate = False
    return handler
