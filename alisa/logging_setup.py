from __future__ import annotations

import logging
import sys
from pathlib import Path

from .config import settings


class _ConsoleNoiseFilter(logging.Filter):
    """Keep alisa logs on the console; third-party libraries only at WARNING+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "alisa" or record.name.startswith("alisa."):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(
    *,
    level: int | str | None = None,
    log_dir: str | Path | None = None,
) -> None:
    """
    Configure the root logger for a process using the client.

    - console handler on stderr, so it never mixes with task output on stdout
    - optional file handler with everything at DEBUG

    Call once, before the first task is run.
    """
    level = level or settings.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    log_dir = log_dir or settings.log_dir

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_dir / "alisa.log"), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)
