# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Pytest configuration shared across the suite."""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _square_page(size: int, lo: int, hi: int) -> np.ndarray:
    grid = np.full((size, size), 255, dtype=np.uint8)
    grid[lo:hi, lo:hi] = 0
    return grid


@pytest.fixture
def square_page():
    """Factory: white ``size`` x ``size`` grid with a solid black square ``[lo, hi)``."""

    return _square_page


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
