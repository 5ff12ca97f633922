# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Utility helpers shared by the windowed-statistics primitives."""
from __future__ import annotations

from typing import TypeVar

_T = TypeVar("_T")


class ScanprepError(Exception):
    """Base class for errors raised while preprocessing a single image."""


class GridError(ScanprepError, ValueError):
    """Raised when an array cannot be used as an intensity grid."""


class DimensionMismatchError(ScanprepError, ValueError):
    """Raised when two images that must be paired have different shapes."""

    def __init__(self, left: tuple, right: tuple, what: str = "images") -> None:
        self.left = tuple(left)
        self.right = tuple(right)
        super().__init__(
            f"{what} need to be the same dimensions (got {self.left[:2]} and {self.right[:2]})"
        )


class ImageDecodeError(ScanprepError, RuntimeError):
    """Raised when an input file cannot be opened or decoded."""


class ImageEncodeError(ScanprepError, RuntimeError):
    """Raised when an output file cannot be written."""


def clamp(x: _T, lo: _T, hi: _T) -> _T:
    """Clamp ``x`` between ``lo`` and ``hi`` while preserving the original type."""

    return lo if x < lo else hi if x > hi else x


def odd_window(size: int) -> int:
    """Return ``size`` bumped to the next odd integer when it is even."""

    size = int(size)
    if size % 2 == 0:
        size += 1
    return size


__all__ = [
    "ScanprepError",
    "GridError",
    "DimensionMismatchError",
    "ImageDecodeError",
    "ImageEncodeError",
    "clamp",
    "odd_window",
]
