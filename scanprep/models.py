# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Parameter and result models shared by the core and the pipeline.

Pydantic validates the parameter surface once, so the numerical core can
assume positive, in-range values. Window sizes are forced odd on
construction so a window is always symmetric around its pixel.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .core.utils import odd_window


class Axis(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class EdgeStrategy(str, Enum):
    """How the edge finder walks its strip window across the image."""

    MIDDLE_OUT = "middle-out"
    OUTSIDE_IN = "outside-in"


class BinarizationMode(str, Enum):
    BINARY = "binary"
    ZEROINV = "zeroinv"


DEFAULT_STRATEGY = {
    Axis.HORIZONTAL: EdgeStrategy.MIDDLE_OUT,
    Axis.VERTICAL: EdgeStrategy.OUTSIDE_IN,
}


class ThresholdParams(BaseModel):
    """Sauvola parameters for one binarization run."""

    model_config = ConfigDict(frozen=True)

    k: float = Field(0.5, ge=0.0)
    window_size: int = Field(..., ge=1)

    @field_validator("window_size")
    @classmethod
    def _force_odd(cls, value: int) -> int:
        return odd_window(value)


class EdgeParams(BaseModel):
    """Edge-finding and wipe parameters for one axis."""

    model_config = ConfigDict(frozen=True)

    window_size: int = Field(5, ge=1)
    threshold: float = Field(0.05, ge=0.0, le=1.0)
    min_content_percent: int = Field(30, ge=0, le=100)
    strategy: Optional[EdgeStrategy] = None

    @field_validator("window_size")
    @classmethod
    def _force_odd(cls, value: int) -> int:
        return odd_window(value)

    @classmethod
    def horizontal(cls, **overrides) -> "EdgeParams":
        values = {"window_size": 5, "threshold": 0.05, "min_content_percent": 30}
        values.update(overrides)
        return cls(**values)

    @classmethod
    def vertical(cls, **overrides) -> "EdgeParams":
        # window ~ line height + largest inter-line gap
        values = {"window_size": 120, "threshold": 0.005, "min_content_percent": 30}
        values.update(overrides)
        return cls(**values)

    def strategy_for(self, axis: Axis) -> EdgeStrategy:
        return self.strategy or DEFAULT_STRATEGY[axis]


class ContentBounds(BaseModel):
    """Detected content span ``[low, high)`` along one axis.

    For the vertical axis ``low``/``high`` are row indices.
    """

    axis: Axis
    strategy: EdgeStrategy
    low: int
    high: int
    extent: int = Field(..., ge=1)

    @property
    def span(self) -> int:
        return self.high - self.low

    @property
    def percent(self) -> float:
        return self.span / self.extent * 100


class PageOutcome(BaseModel):
    """Result of preprocessing one input file in a batch."""

    input_path: str
    outputs: List[str] = Field(default_factory=list)
    bounds: List[ContentBounds] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


__all__ = [
    "Axis",
    "BinarizationMode",
    "ContentBounds",
    "DEFAULT_STRATEGY",
    "EdgeParams",
    "EdgeStrategy",
    "PageOutcome",
    "ThresholdParams",
]
