# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

import numpy as np
import pytest

from scanprep.core.edges import (
    STRATEGIES,
    find_best_edge,
    find_content_bounds,
    find_edges,
    find_edges_outin,
)
from scanprep.core.integral import IntegralTable
from scanprep.models import Axis, EdgeParams, EdgeStrategy


def _table(grid: np.ndarray) -> IntegralTable:
    return IntegralTable(grid, squared=False)


def _with_blank_columns(width: int, blank) -> np.ndarray:
    grid = np.zeros((10, width), dtype=np.uint8)
    for x in blank:
        grid[:, x] = 255
    return grid


def test_best_edge_picks_middle_of_three_tied_columns():
    table = _table(_with_blank_columns(20, [6, 7, 8]))

    assert find_best_edge(table, 5, 5) == 7


def test_best_edge_with_even_tie_takes_upper_middle():
    table = _table(_with_blank_columns(20, [6, 7]))

    assert find_best_edge(table, 5, 5) == 7


def test_best_edge_prefers_strictly_lowest_column():
    grid = np.zeros((10, 20), dtype=np.uint8)
    grid[:5, 6] = 255
    grid[:, 9] = 255
    table = _table(grid)

    assert find_best_edge(table, 5, 5) == 9


def test_best_edge_single_column_window_returns_start():
    table = _table(np.zeros((4, 10), dtype=np.uint8))

    assert find_best_edge(table, 3, 1) == 3


def test_best_edge_ignores_columns_past_the_grid():
    # all-ink columns 15..19; 20..23 lie outside the grid
    table = _table(np.zeros((10, 20), dtype=np.uint8))

    assert find_best_edge(table, 15, 9) == 17
    assert find_best_edge(table, 19, 5) == 19


def test_middle_out_finds_square_edges(square_page):
    table = _table(square_page(200, 60, 140))

    assert find_edges(table, 5, 0.05) == (57, 142)


def test_outside_in_finds_square_edges(square_page):
    table = _table(square_page(200, 60, 140))

    assert find_edges_outin(table, 5, 0.05) == (58, 142)


def test_middle_out_on_solid_ink_keeps_full_width():
    table = _table(np.zeros((50, 100), dtype=np.uint8))

    assert find_edges(table, 5, 0.05) == (0, 99)


def test_outside_in_on_blank_page_keeps_full_width():
    table = _table(np.full((50, 100), 255, dtype=np.uint8))

    assert find_edges_outin(table, 5, 0.05) == (0, 99)


def test_middle_out_starts_off_centre_for_two_column_layouts():
    grid = np.full((100, 200), 255, dtype=np.uint8)
    grid[:, 20:95] = 0
    grid[:, 105:180] = 0
    table = _table(grid)

    low, high = find_edges(table, 5, 0.05)

    assert 15 <= low <= 20
    assert 180 <= high <= 185


def test_even_edge_window_is_forced_odd(square_page):
    table = _table(square_page(200, 60, 140))

    assert find_edges(table, 4, 0.05) == find_edges(table, 5, 0.05)
    assert find_edges_outin(table, 4, 0.05) == find_edges_outin(table, 5, 0.05)


def test_strategy_registry_is_complete():
    assert set(STRATEGIES) == set(EdgeStrategy)


def test_horizontal_bounds_default_to_middle_out(square_page):
    bounds = find_content_bounds(square_page(200, 60, 140), EdgeParams.horizontal())

    assert bounds.axis == Axis.HORIZONTAL
    assert bounds.strategy == EdgeStrategy.MIDDLE_OUT
    assert (bounds.low, bounds.high) == (57, 142)
    assert bounds.extent == 200
    assert bounds.span == 85


def test_vertical_bounds_are_row_indices():
    grid = np.full((200, 300), 255, dtype=np.uint8)
    grid[50:130, 20:180] = 0
    params = EdgeParams(window_size=5, threshold=0.05)

    bounds = find_content_bounds(grid, params, Axis.VERTICAL)

    assert bounds.strategy == EdgeStrategy.OUTSIDE_IN
    assert bounds.extent == 200
    assert (bounds.low, bounds.high) == (48, 132)


def test_vertical_strategy_can_be_overridden():
    grid = np.full((200, 300), 255, dtype=np.uint8)
    grid[50:130, 20:180] = 0
    params = EdgeParams(window_size=5, threshold=0.05, strategy=EdgeStrategy.MIDDLE_OUT)

    bounds = find_content_bounds(grid, params, Axis.VERTICAL)

    assert bounds.strategy == EdgeStrategy.MIDDLE_OUT
    assert 45 <= bounds.low <= 50
    assert 130 <= bounds.high <= 135


@pytest.mark.parametrize("size", [120, 40])
def test_edge_params_force_odd_window(size):
    assert EdgeParams(window_size=size).window_size == size + 1
