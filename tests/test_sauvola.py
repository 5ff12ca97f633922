# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

import numpy as np
import pytest

from scanprep.core.integral import IntegralTable
from scanprep.core.sauvola import (
    autowsize,
    binarize,
    integral_sauvola,
    precalced_sauvola,
    sauvola,
    zero_inverse,
)
from scanprep.core.utils import DimensionMismatchError
from scanprep.models import ThresholdParams


def _local_means(grid: np.ndarray, size: int) -> np.ndarray:
    step = size // 2
    h, w = grid.shape
    out = np.zeros(grid.shape, dtype=np.float64)
    for y in range(h):
        for x in range(w):
            patch = grid[max(0, y - step - 1):min(h, y + step), max(0, x - step - 1):min(w, x + step)]
            out[y, x] = patch.mean() if patch.size else 0.0
    return out


def test_k_zero_thresholds_at_the_local_mean(rng):
    grid = rng.integers(0, 256, size=(24, 31), dtype=np.uint8)

    out = integral_sauvola(grid, 0.0, 7)

    expected = np.where(grid < np.floor(_local_means(grid, 7) + 0.5), 0, 255)
    assert np.array_equal(out, expected)


def test_dark_pixel_in_light_field_is_ink():
    grid = np.full((15, 15), 200, dtype=np.uint8)
    grid[7, 7] = 10

    out = integral_sauvola(grid, 0.0, 5)

    assert out[7, 7] == 0
    assert np.count_nonzero(out == 0) == 1


@pytest.mark.parametrize("value", [0, 1, 127, 128, 200, 255])
@pytest.mark.parametrize("k", [0.0, 0.2, 0.5])
def test_uniform_grid_is_all_background(value, k):
    grid = np.full((33, 21), value, dtype=np.uint8)

    out = integral_sauvola(grid, k, 9)

    assert out.dtype == np.uint8
    assert np.all(out == 255)


@pytest.mark.parametrize("k, size", [(0.5, 7), (0.3, 5), (0.2, 1), (0.5, 15)])
def test_integral_and_direct_paths_agree(rng, k, size):
    grid = rng.integers(0, 256, size=(29, 37), dtype=np.uint8)
    grid[5:20, 10:14] //= 4

    assert np.array_equal(integral_sauvola(grid, k, size), sauvola(grid, k, size))


def test_output_is_bilevel(rng):
    grid = rng.integers(0, 256, size=(50, 60), dtype=np.uint8)

    out = integral_sauvola(grid, 0.5, 11)

    assert set(np.unique(out).tolist()) <= {0, 255}


def test_even_window_size_is_forced_odd(rng):
    grid = rng.integers(0, 256, size=(60, 70), dtype=np.uint8)

    assert np.array_equal(integral_sauvola(grid, 0.5, 40), integral_sauvola(grid, 0.5, 41))
    assert np.array_equal(sauvola(grid[:20, :20], 0.5, 6), sauvola(grid[:20, :20], 0.5, 7))
    assert ThresholdParams(k=0.5, window_size=40).window_size == 41


def test_binarize_uses_threshold_params(rng):
    grid = rng.integers(0, 256, size=(20, 20), dtype=np.uint8)
    params = ThresholdParams(k=0.3, window_size=8)

    assert np.array_equal(binarize(grid, params), integral_sauvola(grid, 0.3, 9))


def test_row_bands_on_threads_match_single_thread(rng):
    grid = rng.integers(0, 256, size=(600, 40), dtype=np.uint8)

    single = integral_sauvola(grid, 0.4, 13)
    threaded = integral_sauvola(grid, 0.4, 13, workers=4)

    assert np.array_equal(single, threaded)


def test_precalced_table_reused_across_k(rng):
    grid = rng.integers(0, 256, size=(30, 30), dtype=np.uint8)
    table = IntegralTable(grid)

    for k in (0.1, 0.3, 0.5):
        assert np.array_equal(precalced_sauvola(table, grid, k, 9), integral_sauvola(grid, k, 9))


def test_precalced_rejects_table_of_another_image():
    table = IntegralTable(np.zeros((10, 10), dtype=np.uint8))

    with pytest.raises(DimensionMismatchError):
        precalced_sauvola(table, np.zeros((10, 11), dtype=np.uint8), 0.5, 5)


def test_sixteen_bit_input_matches_eight_bit(rng):
    grid8 = rng.integers(0, 256, size=(25, 25), dtype=np.uint8)
    grid16 = grid8.astype(np.uint16) * 257

    assert np.array_equal(integral_sauvola(grid16, 0.5, 7), integral_sauvola(grid8, 0.5, 7))


@pytest.mark.parametrize("width, expected", [(1200, 21), (2480, 41), (600, 11), (30, 1)])
def test_autowsize(width, expected):
    assert autowsize(width) == expected


def test_zero_inverse_keeps_colour_under_ink():
    mask = np.array([[0, 255], [255, 0]], dtype=np.uint8)
    colour = np.zeros((2, 2, 4), dtype=np.uint8)
    colour[..., 0] = 200
    colour[..., 3] = 255

    out = zero_inverse(mask, colour)

    assert out.shape == (2, 2, 4)
    assert out[0, 0].tolist() == [200, 0, 0, 255]
    assert out[1, 1].tolist() == [200, 0, 0, 255]
    assert out[0, 1].tolist() == [255, 255, 255, 255]
    assert out[1, 0].tolist() == [255, 255, 255, 255]


def test_zero_inverse_accepts_rgb_original():
    mask = np.zeros((3, 4), dtype=np.uint8)
    rgb = np.full((3, 4, 3), 9, dtype=np.uint8)

    out = zero_inverse(mask, rgb)

    assert out[..., :3].max() == 9
    assert np.all(out[..., 3] == 255)


def test_zero_inverse_dimension_mismatch_is_an_error():
    mask = np.zeros((3, 4), dtype=np.uint8)
    colour = np.zeros((4, 3, 4), dtype=np.uint8)

    with pytest.raises(DimensionMismatchError):
        zero_inverse(mask, colour)
