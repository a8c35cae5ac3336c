"""Structured logging tagged with the id of the running solve."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

solve_id_var: ContextVar[str] = ContextVar("solve_id", default="")

# Keys passed through ``extra=`` by the engine and the flow service
EXTRA_FIELDS = ("island", "status", "net_power_mw", "line_count", "duration_ms")


def new_solve_id() -> str:
    return uuid.uuid4().hex[:8]


@contextmanager
def solve_scope(solve_id: str | None = None) -> Iterator[str]:
    """Tag every log record emitted inside the block with one solve id."""
    sid = solve_id or new_solve_id()
    token = solve_id_var.set(sid)
    try:
        yield sid
    finally:
        solve_id_var.reset(token)


class SolveIdFilter(logging.Filter):
    """Expose the current solve id as ``record.solve_id`` ("-" outside a solve)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.solve_id = solve_id_var.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the solve id and known extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        sid = solve_id_var.get()
        if sid:
            entry["solve_id"] = sid

        entry.update({
            key: getattr(record, key)
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        })

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        # Enum members and numpy scalars fall back to str
        return json.dumps(entry, default=str)


def setup_logging(json_format: bool = False, level: str | int = logging.INFO) -> None:
    """Install a single stderr handler on the root logger."""
    handler = logging.StreamHandler()
    handler.addFilter(SolveIdFilter())
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-8s [%(name)s] [%(solve_id)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)
