"""
quantgrid -- Logging helpers for optimizer runs.

Every ``optimize`` call gets a run id.  The optimizer prefixes each of
its log lines with that id, so the start, per-cell and finish lines of
one grid search can be grepped out of a dashboard log where several
requests interleave.
"""

import uuid
import logging
from typing import Any


def generate_run_id() -> str:
    """Eight hex characters identifying one grid search."""
    return uuid.uuid4().hex[:8]


def get_logger(name: str) -> logging.Logger:
    """Module logger under the ``quantgrid`` namespace.

    No handlers are attached here.  ``dashboard/app.py`` sets up output
    with ``logging.basicConfig``; library users wire their own.
    """
    return logging.getLogger(name)


def log_structured(
    logger: logging.Logger,
    level: int,
    message: str,
    run_id: str,
    **fields: Any,
) -> None:
    """Log ``message`` tagged with ``run_id`` and trailing ``key=value`` pairs.

    Fields whose value is ``None`` are left out.  The optimizer's closing
    line looks like::

        [3f9c2a1b] Optimizer finished | agents=162 best=RSI(14/30-70) best_score=0.0815
    """
    if not logger.isEnabledFor(level):
        return
    parts = [f"[{run_id}]", message]
    if fields:
        kv = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)
        if kv:
            parts.append("|")
            parts.append(kv)
    logger.log(level, " ".join(parts))
