# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Sauvola adaptive binarization.

Implements the threshold from "Adaptive document image binarization"
(Sauvola & Pietikainen, 2000)::

    t = mean * (1 + k * (stddev / 128 - 1))

A pixel becomes ink (``0``) when its intensity is strictly below ``round(t)``
and background (``255``) otherwise. The statistics come from a window of
side ``window_size`` around each pixel (see :meth:`Window.centered`),
clamped at the image borders.

:func:`integral_sauvola` answers every window from an
:class:`~scanprep.core.integral.IntegralTable` and processes the image in row
bands, optionally on a thread pool. :func:`sauvola` is the direct reference
implementation; both use population variance and produce identical output.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Tuple

import numpy as np

from .grid import BACKGROUND, INK, as_grid, to_gray8, to_rgba
from .integral import IntegralTable
from .utils import DimensionMismatchError, odd_window
from .windows import ImageWindower, window_moments

__all__ = [
    "autowsize",
    "binarize",
    "integral_sauvola",
    "precalced_sauvola",
    "sauvola",
    "sauvola_threshold",
    "zero_inverse",
]

logger = logging.getLogger(__name__)

_BAND_ROWS = 256


def autowsize(width: int) -> int:
    """Default binarization window: one sixtieth of the image width, forced odd."""

    return odd_window(max(1, int(width) // 60))


def sauvola_threshold(m, var, k: float):
    """Rounded Sauvola threshold for 8-bit mean/variance (scalars or arrays)."""

    dev = np.sqrt(var)
    t = m * (1.0 + k * (dev / 128.0 - 1.0))
    # half away from zero; t is never negative for k <= 1
    return np.floor(t + 0.5)


def _classify(gray: np.ndarray, threshold: np.ndarray) -> np.ndarray:
    return np.where(gray < threshold, INK, BACKGROUND).astype(np.uint8)


def _bands(height: int, rows: int = _BAND_ROWS) -> List[Tuple[int, int]]:
    return [(y0, min(height, y0 + rows)) for y0 in range(0, height, rows)]


def _sauvola_band(
    windower: ImageWindower,
    gray: np.ndarray,
    out: np.ndarray,
    k: float,
    window_size: int,
    scale: float,
    y0: int,
    y1: int,
) -> None:
    step = window_size // 2
    width = gray.shape[1]
    xs = np.arange(width)[None, :]
    ys = np.arange(y0, y1)[:, None]
    m, var = window_moments(windower, xs - step - 1, ys - step - 1, xs + step, ys + step)
    if scale != 1.0:
        m = m / scale
        var = var / (scale * scale)
    out[y0:y1] = _classify(gray[y0:y1], sauvola_threshold(m, var, k))


def precalced_sauvola(
    table: ImageWindower,
    grid,
    k: float,
    window_size: int,
    workers: int = 1,
) -> np.ndarray:
    """Binarize ``grid`` using an already built table of the same image.

    Lets a caller build the tables once and binarize at several ``k`` values.
    Statistics from a 16-bit table are rescaled to the 8-bit range.
    """

    gray = to_gray8(as_grid(grid))
    bounds = table.bounds
    if (bounds.y2, bounds.x2) != gray.shape:
        raise DimensionMismatchError((bounds.y2, bounds.x2), gray.shape, "table and image")
    window_size = odd_window(window_size)
    scale = table.max_value / 255.0
    height = gray.shape[0]
    out = np.empty(gray.shape, dtype=np.uint8)
    bands = _bands(height)

    if workers > 1 and len(bands) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(_sauvola_band, table, gray, out, k, window_size, scale, y0, y1)
                for y0, y1 in bands
            ]
            for fut in futures:
                fut.result()
    else:
        for y0, y1 in bands:
            _sauvola_band(table, gray, out, k, window_size, scale, y0, y1)

    logger.debug(
        "sauvola k=%s window=%d size=%dx%d ink=%d",
        k,
        window_size,
        gray.shape[1],
        height,
        int(np.count_nonzero(out == INK)),
    )
    return out


def integral_sauvola(grid, k: float, window_size: int, workers: int = 1) -> np.ndarray:
    """Binarize ``grid`` with Sauvola's method using integral images."""

    gray = to_gray8(as_grid(grid))
    table = IntegralTable(gray, squared=True)
    return precalced_sauvola(table, gray, k, window_size, workers=workers)


def binarize(grid, params, workers: int = 1) -> np.ndarray:
    """Binarize with a :class:`~scanprep.models.ThresholdParams`."""

    return integral_sauvola(grid, params.k, params.window_size, workers=workers)


def sauvola(grid, k: float, window_size: int) -> np.ndarray:
    """Reference Sauvola that sums every window directly.

    Quadratic in the window size; meant for checking the integral path on
    small images.
    """

    gray = to_gray8(as_grid(grid))
    window_size = odd_window(window_size)
    step = window_size // 2
    height, width = gray.shape
    samples = gray.astype(np.int64)
    out = np.empty(gray.shape, dtype=np.uint8)

    for y in range(height):
        ya, yb = max(0, y - step - 1), min(height, y + step)
        totals = np.zeros(width, dtype=np.float64)
        squares = np.zeros(width, dtype=np.float64)
        counts = np.zeros(width, dtype=np.float64)
        for x in range(width):
            xa, xb = max(0, x - step - 1), min(width, x + step)
            win = samples[ya:yb, xa:xb]
            counts[x] = win.size
            totals[x] = win.sum()
            squares[x] = (win * win).sum()
        safe = np.where(counts > 0, counts, 1.0)
        m = np.where(counts > 0, totals / safe, 0.0)
        var = np.maximum(np.where(counts > 0, squares / safe - m * m, 0.0), 0.0)
        out[y] = _classify(gray[y], sauvola_threshold(m, var, k))

    return out


def zero_inverse(binary, original) -> np.ndarray:
    """Combine a binary mask with the original colour image.

    Background pixels of the mask come out white; ink pixels take the colour
    of ``original`` at the same location. The result is RGBA.
    """

    mask = as_grid(binary)
    rgba = to_rgba(original)
    if mask.shape != rgba.shape[:2]:
        raise DimensionMismatchError(mask.shape, rgba.shape, "bin and orig images")
    out = rgba.copy()
    out[mask == BACKGROUND] = (255, 255, 255, 255)
    return out
