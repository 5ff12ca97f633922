# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Preprocessing parameter surface.

:class:`PreprocConfig` carries every knob the command-line tools expose, with
the same defaults. :meth:`PreprocConfig.from_env` lets ``SCANPREP_*``
environment variables replace those defaults; malformed values are ignored
and out-of-range ones are clamped into range.
"""
from __future__ import annotations

import math
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import BinarizationMode, EdgeParams, EdgeStrategy, ThresholdParams
from .core.sauvola import autowsize
from .core.utils import clamp


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    raw = raw.strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    raw = raw.strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


def _env_truthy(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off", ""}


def _env_strategy(name: str) -> Optional[EdgeStrategy]:
    raw = (os.environ.get(name) or "").strip().lower()
    try:
        return EdgeStrategy(raw) if raw else None
    except ValueError:
        return None


class PreprocConfig(BaseModel):
    """All parameters of a binarize + wipe run.

    ``window_size`` of ``0`` means "derive from the image width"
    (:func:`~scanprep.core.sauvola.autowsize`).
    """

    model_config = ConfigDict(frozen=True)

    k: float = Field(0.5, ge=0.0)
    window_size: int = Field(0, ge=0)
    mode: BinarizationMode = BinarizationMode.BINARY
    wipe: bool = True
    horizontal: EdgeParams = Field(default_factory=EdgeParams.horizontal)
    vertical: EdgeParams = Field(default_factory=EdgeParams.vertical)
    workers: int = Field(1, ge=1)

    def threshold_params(self, width: int, k: Optional[float] = None) -> ThresholdParams:
        window = self.window_size or autowsize(width)
        return ThresholdParams(k=self.k if k is None else k, window_size=window)

    @classmethod
    def from_env(cls, **overrides) -> "PreprocConfig":
        base = cls()
        h, v = base.horizontal, base.vertical
        values = {
            "k": max(0.0, _env_float("SCANPREP_K", base.k)),
            "window_size": max(0, _env_int("SCANPREP_WINDOW_SIZE", base.window_size)),
            "mode": (os.environ.get("SCANPREP_MODE") or base.mode.value).strip().lower(),
            "wipe": _env_truthy("SCANPREP_WIPE", base.wipe),
            "workers": max(1, _env_int("SCANPREP_WORKERS", base.workers)),
            "horizontal": EdgeParams(
                window_size=max(1, _env_int("SCANPREP_HWIPE_WINDOW", h.window_size)),
                threshold=clamp(_env_float("SCANPREP_HWIPE_THRESHOLD", h.threshold), 0.0, 1.0),
                min_content_percent=clamp(_env_int("SCANPREP_HWIPE_MIN_PERCENT", h.min_content_percent), 0, 100),
                strategy=_env_strategy("SCANPREP_HWIPE_STRATEGY"),
            ),
            "vertical": EdgeParams(
                window_size=max(1, _env_int("SCANPREP_VWIPE_WINDOW", v.window_size)),
                threshold=clamp(_env_float("SCANPREP_VWIPE_THRESHOLD", v.threshold), 0.0, 1.0),
                min_content_percent=clamp(_env_int("SCANPREP_VWIPE_MIN_PERCENT", v.min_content_percent), 0, 100),
                strategy=_env_strategy("SCANPREP_VWIPE_STRATEGY"),
            ),
        }
        if values["mode"] not in {m.value for m in BinarizationMode}:
            values["mode"] = base.mode
        values.update(overrides)
        return cls(**values)


__all__ = ["PreprocConfig"]
