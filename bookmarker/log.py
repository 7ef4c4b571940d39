from __future__ import annotations

import logging
import os
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, TextIO

try:
    from rich.console import Console
    from rich.logging import RichHandler
    _HAS_RICH = True
except Exception:
    Console = None  # type: ignore
    RichHandler = None  # type: ignore
    _HAS_RICH = False

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class LogConfig:
    level: str = "WARNING"
    no_color: bool = False


def setup_logging(cfg: LogConfig, stream: TextIO | None = None) -> logging.Handler:
    """Route all log records to stderr (stdout belongs to the pager)."""
    level = getattr(logging, cfg.level.upper(), logging.WARNING)
    stream = stream if stream is not None else sys.stderr

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)

    if _HAS_RICH and _wants_color(cfg, stream):
        handler: logging.Handler = RichHandler(
            console=Console(file=stream),
            rich_tracebacks=True,
            show_time=False,
            show_level=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))

    handler.setLevel(level)
    root.addHandler(handler)
    return handler


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def log_elapsed(log: logging.Logger, what: str) -> Iterator[None]:
    t0 = time.monotonic()
    try:
        yield
    finally:
        log.debug("%s took %d ms", what, int((time.monotonic() - t0) * 1000))


def _wants_color(cfg: LogConfig, stream: TextIO) -> bool:
    if cfg.no_color or os.getenv("NO_COLOR") is not None:
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())
