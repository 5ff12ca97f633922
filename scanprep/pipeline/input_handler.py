# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Image decoding and encoding for the preprocessing pipeline."""
from __future__ import annotations

from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..core.utils import ImageDecodeError, ImageEncodeError

PathLike = Union[str, Path]

_SIXTEEN_BIT_MODES = {"I;16", "I;16B", "I;16L", "I;16N"}


class PillowImageHandler:
    """Decode page images into numpy grids and write results as PNG.

    * :meth:`load_gray` yields a 2-D ``uint8`` grid, or ``uint16`` for 16-bit
      grayscale files.
    * :meth:`load` decodes once and also returns an ``(H, W, 4)`` array for
      zero-inverse output.

    Open/decode failures (including oversized images) are raised as
    :class:`ImageDecodeError`, write failures as :class:`ImageEncodeError`.
    """

    def _open(self, path: PathLike) -> Image.Image:
        p = Path(path)
        try:
            img = Image.open(p.as_posix())
            img.load()
        except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as exc:
            raise ImageDecodeError(f"Could not decode image {p}: {exc}") from exc
        return img

    @staticmethod
    def _gray(img: Image.Image) -> np.ndarray:
        if img.mode in _SIXTEEN_BIT_MODES:
            return np.asarray(img, dtype=np.uint16)
        if img.mode == "I":
            return np.clip(np.asarray(img), 0, 65535).astype(np.uint16)
        return np.asarray(img.convert("L"), dtype=np.uint8)

    @staticmethod
    def _rgba(img: Image.Image) -> np.ndarray:
        if img.mode in _SIXTEEN_BIT_MODES or img.mode == "I":
            gray = PillowImageHandler._gray(img)
            img = Image.fromarray((gray // 257).astype(np.uint8))
        return np.asarray(img.convert("RGBA"), dtype=np.uint8)

    def load_gray(self, path: PathLike) -> np.ndarray:
        return self._gray(self._open(path))

    def load(self, path: PathLike) -> Tuple[np.ndarray, np.ndarray]:
        img = self._open(path)
        return self._gray(img), self._rgba(img)

    def save(self, arr: np.ndarray, path: PathLike) -> Path:
        out = Path(path)
        # uint8 2-D -> L, uint16 2-D -> I;16, uint8 (H, W, 4) -> RGBA
        if arr.dtype not in (np.uint8, np.uint16):
            arr = arr.astype(np.uint8)
        img = Image.fromarray(np.ascontiguousarray(arr))
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            img.save(out.as_posix(), format="PNG")
        except OSError as exc:
            raise ImageEncodeError(f"Could not write image {out}: {exc}") from exc
        return out


__all__ = ["PathLike", "PillowImageHandler"]
