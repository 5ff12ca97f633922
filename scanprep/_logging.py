# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Logger wiring for the command-line tools.

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers; the CLIs call :func:`configure_logging` once.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

LOGGER_NAME = "scanprep"

_log_format = "text"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """Attach a single stderr handler to the ``scanprep`` logger.

    ``level`` and ``fmt`` default to ``SCANPREP_LOG_LEVEL`` (INFO) and
    ``SCANPREP_LOG_FORMAT`` (``text``).
    """

    global _log_format

    log_level = (level or os.environ.get("SCANPREP_LOG_LEVEL") or "INFO").strip().upper()
    log_format = (fmt or os.environ.get("SCANPREP_LOG_FORMAT") or "text").strip().lower()

    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        logger.addHandler(handler)
    for handler in logger.handlers:
        if log_format == "json":
            handler.setFormatter(logging.Formatter("%(message)s"))
        else:
            handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.setLevel(getattr(logging, log_level, logging.INFO))
    logger.propagate = False
    _log_format = log_format
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    payload: Dict[str, Any],
    *,
    level: str = "info",
) -> None:
    """Log one structured record; JSON once configured with ``fmt="json"``."""

    record = {"ts": _utc_now_iso(), "event": event, **payload}
    if _log_format == "json":
        msg = json.dumps(record, ensure_ascii=False, default=str)
    else:
        details = " ".join(f"{k}={v}" for k, v in payload.items())
        msg = f"{event} {details}".strip()
    fn = getattr(logger, level, logger.info)
    fn(msg)


__all__ = ["LOGGER_NAME", "configure_logging", "log_event"]
