# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Summed-area tables over intensity grids.

:class:`IntegralTable` holds one ``(H + 1, W + 1)`` prefix-sum table of the
samples and, unless ``squared=False``, a second one of the squared samples.
Cell ``[y, x]`` holds the sum of every sample with coordinates strictly below
``(x, y)``, so any half-open rectangle ``[x1, x2) x [y1, y2)`` is answered
with four lookups. Rectangles are clamped to the grid before the lookup;
windows near the border simply cover fewer samples.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .grid import as_grid, max_value

__all__ = ["Window", "IntegralTable"]


@dataclass(frozen=True)
class Window:
    """Half-open rectangle ``[x1, x2) x [y1, y2)`` in grid coordinates."""

    x1: int
    y1: int
    x2: int
    y2: int

    @classmethod
    def centered(cls, x: int, y: int, size: int) -> "Window":
        # Side length is ``size`` for odd sizes; the extra sample sits on the
        # top/left of the pixel.
        step = size // 2
        return cls(x - step - 1, y - step - 1, x + step, y + step)

    @classmethod
    def vertical_strip(cls, x: int, width: int, height: int) -> "Window":
        return cls(x, 0, x + width, height)

    @property
    def area(self) -> int:
        return max(0, self.x2 - self.x1) * max(0, self.y2 - self.y1)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x1, self.y1, self.x2, self.y2)


def _prefix_table(samples: np.ndarray) -> np.ndarray:
    pad = np.pad(samples, ((1, 0), (1, 0)), mode="constant")
    table = pad.cumsum(0).cumsum(1)
    table.flags.writeable = False
    return table


class IntegralTable:
    """Linear and squared prefix sums of a grid.

    The query methods accept either Python ints or numpy index arrays of a
    common shape, so a whole row of windows can be answered in one call.
    """

    def __init__(self, grid, squared: bool = True) -> None:
        grid = as_grid(grid)
        self.height, self.width = grid.shape
        self.max_value = max_value(grid)
        samples = grid.astype(np.int64)
        self.sums = _prefix_table(samples)
        self.squares: Optional[np.ndarray] = (
            _prefix_table(samples * samples) if squared else None
        )

    @property
    def has_squares(self) -> bool:
        return self.squares is not None

    @property
    def bounds(self) -> Window:
        return Window(0, 0, self.width, self.height)

    def _clamp(self, x1, y1, x2, y2):
        x1 = np.clip(x1, 0, self.width)
        x2 = np.clip(x2, 0, self.width)
        y1 = np.clip(y1, 0, self.height)
        y2 = np.clip(y2, 0, self.height)
        return x1, y1, np.maximum(x1, x2), np.maximum(y1, y2)

    @staticmethod
    def _corners(table: np.ndarray, x1, y1, x2, y2):
        return table[y2, x2] - table[y1, x2] - table[y2, x1] + table[y1, x1]

    def window_sum(self, x1, y1, x2, y2):
        return self._corners(self.sums, *self._clamp(x1, y1, x2, y2))

    def window_sum_squared(self, x1, y1, x2, y2):
        if self.squares is None:
            raise RuntimeError("IntegralTable was built without squared sums")
        return self._corners(self.squares, *self._clamp(x1, y1, x2, y2))

    def window_count(self, x1, y1, x2, y2):
        x1, y1, x2, y2 = self._clamp(x1, y1, x2, y2)
        return (x2 - x1) * (y2 - y1)

    def sum(self, window: Window) -> int:
        return int(self.window_sum(*window.as_tuple()))

    def __repr__(self) -> str:
        return (
            f"IntegralTable(width={self.width}, height={self.height}, "
            f"squared={self.has_squares})"
        )
