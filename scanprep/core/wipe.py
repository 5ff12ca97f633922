# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Margin wiping: paint everything outside the detected content span white."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..models import Axis, ContentBounds, EdgeParams, EdgeStrategy
from .edges import find_content_bounds
from .grid import as_grid, sideways

__all__ = [
    "WipeResult",
    "apply_bounds",
    "too_narrow",
    "vwipe",
    "wipe",
    "wipe_rows",
    "wipe_sides",
    "wipe_with_bounds",
]

logger = logging.getLogger(__name__)


@dataclass
class WipeResult:
    image: np.ndarray
    bounds: ContentBounds
    applied: bool


def too_narrow(extent: int, lowedge: int, highedge: int, min_percent: int) -> bool:
    """True when ``[lowedge, highedge)`` covers less than ``min_percent`` of ``extent``."""

    return (highedge - lowedge) / extent * 100 < min_percent


def wipe_sides(img: np.ndarray, lowedge: int, highedge: int) -> np.ndarray:
    """Return a copy of ``img`` with columns outside ``[lowedge, highedge)`` set to white.

    Accepts 2-D grids and ``(H, W, C)`` colour arrays.
    """

    out = np.array(img, copy=True)
    white = np.iinfo(out.dtype).max
    out[:, : max(0, lowedge)] = white
    out[:, max(0, highedge):] = white
    return out


def wipe_rows(img: np.ndarray, top: int, bottom: int) -> np.ndarray:
    """Row counterpart of :func:`wipe_sides`, done through the transpose."""

    return sideways(wipe_sides(sideways(img), top, bottom))


def apply_bounds(img: np.ndarray, bounds: ContentBounds) -> np.ndarray:
    if bounds.axis == Axis.VERTICAL:
        return wipe_rows(img, bounds.low, bounds.high)
    return wipe_sides(img, bounds.low, bounds.high)


def wipe_with_bounds(
    grid,
    params: Optional[EdgeParams] = None,
    axis: Axis = Axis.HORIZONTAL,
) -> WipeResult:
    """Find the content span along ``axis`` and wipe outside it.

    A span narrower than ``params.min_content_percent`` is treated as an
    unreliable detection: the input is returned untouched and ``applied`` is
    False.
    """

    grid = as_grid(grid)
    if params is None:
        params = EdgeParams.vertical() if axis == Axis.VERTICAL else EdgeParams.horizontal()
    bounds = find_content_bounds(grid, params, axis)
    if too_narrow(bounds.extent, bounds.low, bounds.high, params.min_content_percent):
        logger.debug(
            "%s content %d..%d is %.1f%% of %d, below %d%%; leaving image unchanged",
            axis.value,
            bounds.low,
            bounds.high,
            bounds.percent,
            bounds.extent,
            params.min_content_percent,
        )
        return WipeResult(image=grid, bounds=bounds, applied=False)
    return WipeResult(image=apply_bounds(grid, bounds), bounds=bounds, applied=True)


def wipe(
    grid,
    wsize: int = 5,
    thresh: float = 0.05,
    min_percent: int = 30,
    strategy: Optional[EdgeStrategy] = None,
) -> np.ndarray:
    """Wipe the left and right margins of ``grid``."""

    params = EdgeParams(
        window_size=wsize, threshold=thresh, min_content_percent=min_percent, strategy=strategy
    )
    return wipe_with_bounds(grid, params, Axis.HORIZONTAL).image


def vwipe(
    grid,
    wsize: int = 120,
    thresh: float = 0.005,
    min_percent: int = 30,
    strategy: Optional[EdgeStrategy] = None,
) -> np.ndarray:
    """Wipe the top and bottom margins of ``grid``."""

    params = EdgeParams(
        window_size=wsize, threshold=thresh, min_content_percent=min_percent, strategy=strategy
    )
    return wipe_with_bounds(grid, params, Axis.VERTICAL).image
