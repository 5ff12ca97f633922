# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Windowed statistics over anything that can answer rectangle sums.

The binarizer and the edge finder only ever talk to an
:class:`ImageWindower`; :class:`~scanprep.core.integral.IntegralTable` is the
implementation used in practice.

Polarity is fixed: ink is ``0`` and background is ``max_value``, so
``proportion`` is the fraction of the window that is ink.
"""
from __future__ import annotations

from typing import Protocol, Tuple

import numpy as np

from .integral import Window

__all__ = [
    "ImageWindower",
    "window_moments",
    "mean",
    "variance",
    "stddev",
    "mean_stddev",
    "proportion",
    "strip_proportion",
]


class ImageWindower(Protocol):
    max_value: int

    @property
    def bounds(self) -> Window:
        ...

    def window_sum(self, x1, y1, x2, y2):
        ...

    def window_sum_squared(self, x1, y1, x2, y2):
        ...

    def window_count(self, x1, y1, x2, y2):
        ...


def window_moments(windower: ImageWindower, x1, y1, x2, y2) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(mean, population variance)`` for scalar or array rectangles.

    Empty (fully clamped) windows report zero for both.
    """

    count = np.asarray(windower.window_count(x1, y1, x2, y2), dtype=np.float64)
    total = np.asarray(windower.window_sum(x1, y1, x2, y2), dtype=np.float64)
    total_sq = np.asarray(windower.window_sum_squared(x1, y1, x2, y2), dtype=np.float64)
    safe = np.where(count > 0, count, 1.0)
    m = np.where(count > 0, total / safe, 0.0)
    var = np.where(count > 0, total_sq / safe - m * m, 0.0)
    # rounding can leave tiny negatives on flat windows
    return m, np.maximum(var, 0.0)


def mean(windower: ImageWindower, window: Window) -> float:
    count = int(windower.window_count(*window.as_tuple()))
    if count == 0:
        return 0.0
    return float(windower.window_sum(*window.as_tuple())) / count


def variance(windower: ImageWindower, window: Window) -> float:
    _, var = window_moments(windower, *window.as_tuple())
    return float(var)


def stddev(windower: ImageWindower, window: Window) -> float:
    return float(np.sqrt(variance(windower, window)))


def mean_stddev(windower: ImageWindower, window: Window) -> Tuple[float, float]:
    m, var = window_moments(windower, *window.as_tuple())
    return float(m), float(np.sqrt(var))


def proportion(windower: ImageWindower, window: Window) -> float:
    """Fraction of ink in ``window``; ``0.0`` for an empty window."""

    count = int(windower.window_count(*window.as_tuple()))
    if count == 0:
        return 0.0
    total = float(windower.window_sum(*window.as_tuple()))
    return 1.0 - (total / count) / windower.max_value


def strip_proportion(windower: ImageWindower, x: int, width: int) -> float:
    """Ink proportion of the full-height strip ``[x, x + width)``."""

    height = windower.bounds.y2
    return proportion(windower, Window.vertical_strip(x, width, height))
