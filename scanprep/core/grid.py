# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Intensity grid helpers.

A grid is a plain 2-D :class:`numpy.ndarray` indexed ``[y, x]`` holding
unsigned 8-bit (or 16-bit) samples. Ink is ``0`` and background is the dtype
maximum; every statistic in :mod:`scanprep.core.windows` relies on that
polarity.
"""
from __future__ import annotations

import numpy as np

from .utils import GridError

__all__ = [
    "INK",
    "BACKGROUND",
    "as_grid",
    "max_value",
    "to_gray8",
    "sideways",
    "to_rgba",
]

INK = 0
BACKGROUND = 255

_ALLOWED_DTYPES = (np.uint8, np.uint16)


def as_grid(arr) -> np.ndarray:
    """Validate ``arr`` as a non-empty 2-D unsigned grid and return it as an array."""

    grid = np.asarray(arr)
    if grid.ndim != 2:
        raise GridError(f"grid must be 2-D, got shape {grid.shape}")
    if grid.shape[0] == 0 or grid.shape[1] == 0:
        raise GridError("grid must be non-empty")
    if grid.dtype not in _ALLOWED_DTYPES:
        if grid.dtype.kind not in "iu":
            raise GridError(f"grid samples must be integers, got {grid.dtype}")
        if grid.min() < 0 or grid.max() > np.iinfo(np.uint16).max:
            raise GridError("grid samples out of range for a 16-bit image")
        grid = grid.astype(np.uint8 if grid.max() <= 255 else np.uint16)
    return grid


def max_value(grid: np.ndarray) -> int:
    return int(np.iinfo(grid.dtype).max)


def to_gray8(grid: np.ndarray) -> np.ndarray:
    """Reduce a 16-bit grid to 8-bit; 8-bit grids are returned as-is."""

    if grid.dtype == np.uint16:
        return (grid // 257).astype(np.uint8)
    return grid


def sideways(grid: np.ndarray) -> np.ndarray:
    """Return a new grid with x and y swapped.

    Works for multi-channel arrays too; only the two spatial axes move.
    """

    return np.ascontiguousarray(np.swapaxes(grid, 0, 1))


def to_rgba(img: np.ndarray) -> np.ndarray:
    """Promote a gray, RGB or RGBA array to an ``(H, W, 4)`` uint8 array."""

    arr = np.asarray(img)
    if arr.dtype == np.uint16:
        arr = to_gray8(arr)
    elif arr.dtype != np.uint8:
        arr = arr.astype(np.uint8)
    if arr.ndim == 2:
        alpha = np.full(arr.shape, 255, dtype=np.uint8)
        return np.dstack([arr, arr, arr, alpha])
    if arr.ndim == 3 and arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2], 255, dtype=np.uint8)
        return np.dstack([arr, alpha])
    if arr.ndim == 3 and arr.shape[2] == 4:
        return arr.copy()
    raise GridError(f"expected a gray, RGB or RGBA image, got shape {arr.shape}")
