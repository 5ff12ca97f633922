# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Content-boundary search over full-height strip windows.

Margins are assumed to hold less ink than the page content. A strip window
of ``wsize`` columns is moved across the image until its ink proportion
crosses ``thresh``; the exact column inside that window is then picked by
:func:`find_best_edge`.

Two walks are available:

* :func:`find_edges` (middle-out) starts 10% either side of the centre, so a
  blank gutter between two columns of text is not mistaken for a margin, and
  stops at the first window at or below ``thresh``.
* :func:`find_edges_outin` (outside-in) starts at the borders and stops at
  the first window above ``thresh``.

Top/bottom boundaries are found by running the same search on the
transposed image; the returned indices are then row indices.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Tuple

from ..models import Axis, ContentBounds, EdgeParams, EdgeStrategy
from .grid import as_grid, sideways
from .integral import IntegralTable
from .utils import odd_window
from .windows import ImageWindower, strip_proportion

__all__ = [
    "find_best_edge",
    "find_edges",
    "find_edges_outin",
    "find_content_bounds",
    "STRATEGIES",
]

logger = logging.getLogger(__name__)


def find_best_edge(windower: ImageWindower, x: int, w: int) -> int:
    """Return the column in ``[x, x + w)`` with the lowest ink proportion.

    When several columns tie for lowest (e.g. a run of blank columns), the
    middle one of the tied columns is returned. Columns past the right edge
    of the grid are never candidates.
    """

    stop = min(x + w, windower.bounds.x2)
    if stop - x <= 1:
        return min(x, windower.bounds.x2 - 1)
    best = None
    best_xs = []
    for col in range(x, stop):
        prop = strip_proportion(windower, col, 1)
        if best is None or prop < best:
            best = prop
            best_xs = [col]
        elif prop == best:
            best_xs.append(col)
    return best_xs[len(best_xs) // 2]


def find_edges(windower: ImageWindower, wsize: int, thresh: float) -> Tuple[int, int]:
    """Middle-out search; returns ``(lowedge, highedge)``."""

    wsize = odd_window(wsize)
    maxx = windower.bounds.x2 - 1
    lowedge, highedge = 0, maxx
    notcentre = maxx // 10

    for x in range(maxx // 2 + notcentre, maxx - wsize):
        if strip_proportion(windower, x, wsize) <= thresh:
            highedge = find_best_edge(windower, x, wsize)
            break

    for x in range(maxx // 2 - notcentre, 0, -1):
        if strip_proportion(windower, x, wsize) <= thresh:
            lowedge = find_best_edge(windower, x, wsize)
            break

    return lowedge, highedge


def find_edges_outin(windower: ImageWindower, wsize: int, thresh: float) -> Tuple[int, int]:
    """Outside-in search; returns ``(lowedge, highedge)``."""

    wsize = odd_window(wsize)
    maxx = windower.bounds.x2 - 1
    lowedge, highedge = 0, maxx

    for x in range(maxx - wsize, 0, -1):
        if strip_proportion(windower, x, wsize) > thresh:
            highedge = find_best_edge(windower, x, wsize)
            break

    for x in range(0, maxx - wsize):
        if strip_proportion(windower, x, wsize) > thresh:
            lowedge = find_best_edge(windower, x, wsize)
            break

    return lowedge, highedge


STRATEGIES: Dict[EdgeStrategy, Callable[[ImageWindower, int, float], Tuple[int, int]]] = {
    EdgeStrategy.MIDDLE_OUT: find_edges,
    EdgeStrategy.OUTSIDE_IN: find_edges_outin,
}


def find_content_bounds(grid, params: EdgeParams, axis: Axis = Axis.HORIZONTAL) -> ContentBounds:
    """Locate the content span of ``grid`` along ``axis``."""

    image = as_grid(grid)
    if axis == Axis.VERTICAL:
        image = sideways(image)
    table = IntegralTable(image, squared=False)
    strategy = params.strategy_for(axis)
    lowedge, highedge = STRATEGIES[strategy](table, params.window_size, params.threshold)
    logger.debug(
        "%s edges (%s, window=%d, thresh=%s): %d..%d of %d",
        axis.value,
        strategy.value,
        params.window_size,
        params.threshold,
        lowedge,
        highedge,
        image.shape[1],
    )
    return ContentBounds(
        axis=axis,
        strategy=strategy,
        low=lowedge,
        high=highedge,
        extent=image.shape[1],
    )
