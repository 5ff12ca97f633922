# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Binarize-and-wipe preprocessing of page images."""
from __future__ import annotations

import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .._logging import log_event
from ..config import PreprocConfig
from ..core.grid import as_grid, to_gray8
from ..core.integral import IntegralTable
from ..core.sauvola import autowsize, binarize, precalced_sauvola, zero_inverse
from ..core.utils import ScanprepError
from ..core.wipe import apply_bounds, wipe_with_bounds
from ..models import (
    Axis,
    BinarizationMode,
    ContentBounds,
    EdgeParams,
    PageOutcome,
    ThresholdParams,
)
from .input_handler import PathLike, PillowImageHandler

logger = logging.getLogger(__name__)

MULTI_WIPE_FACTOR = 0.02


@dataclass
class PreprocResult:
    """Output of one binarize (+ wipe) pass.

    ``image`` is the final output (binary grid, or RGBA in zero-inverse
    mode); ``binary`` is the Sauvola mask before wiping.
    """

    image: np.ndarray
    binary: np.ndarray
    threshold: ThresholdParams
    bounds: List[ContentBounds] = field(default_factory=list)


def _multi_name(stem: str, k: float) -> str:
    return f"{stem}_bin{k:.1f}.png"


def multi_output_path(in_path: PathLike, k: float) -> Path:
    p = Path(in_path)
    return p.with_name(_multi_name(p.stem, k))


def batch_stems(paths: Sequence[PathLike]) -> List[str]:
    """Output stems for a batch; inputs sharing a file stem get their batch index appended."""

    stems = [Path(p).stem for p in paths]
    seen = Counter(stems)
    taken = set(stems)
    out: List[str] = []
    for i, stem in enumerate(stems):
        name = stem
        if seen[stem] > 1:
            name = f"{stem}-{i}"
            while name in taken:
                name = f"{name}-{i}"
            taken.add(name)
        out.append(name)
    return out


@dataclass
class Preprocessor:
    config: PreprocConfig = field(default_factory=PreprocConfig)
    image_handler: PillowImageHandler = field(default_factory=PillowImageHandler)

    def _wipe(
        self,
        mask: np.ndarray,
        out: np.ndarray,
        vertical: EdgeParams,
        horizontal: EdgeParams,
    ) -> Tuple[np.ndarray, List[ContentBounds]]:
        # bounds always come from the binary mask, then get applied to ``out``
        bounds: List[ContentBounds] = []
        same = out is mask
        for axis, params in ((Axis.VERTICAL, vertical), (Axis.HORIZONTAL, horizontal)):
            result = wipe_with_bounds(mask, params, axis)
            bounds.append(result.bounds)
            if not result.applied:
                continue
            mask = result.image
            out = mask if same else apply_bounds(out, result.bounds)
        return out, bounds

    def _finish(
        self,
        gray: np.ndarray,
        binary: np.ndarray,
        color: Optional[np.ndarray],
        params: ThresholdParams,
        vertical: EdgeParams,
        horizontal: EdgeParams,
    ) -> PreprocResult:
        out = binary
        if self.config.mode == BinarizationMode.ZEROINV:
            out = zero_inverse(binary, color if color is not None else to_gray8(gray))
        bounds: List[ContentBounds] = []
        if self.config.wipe:
            out, bounds = self._wipe(binary, out, vertical, horizontal)
        return PreprocResult(image=out, binary=binary, threshold=params, bounds=bounds)

    def process(
        self,
        gray,
        color: Optional[np.ndarray] = None,
        k: Optional[float] = None,
    ) -> PreprocResult:
        """Binarize ``gray`` and, unless disabled, wipe its margins.

        ``color`` is the original image used by zero-inverse mode; the gray
        grid is used when it is omitted.
        """

        grid = as_grid(gray)
        params = self.config.threshold_params(grid.shape[1], k)
        binary = binarize(grid, params, workers=self.config.workers)
        return self._finish(
            grid, binary, color, params, self.config.vertical, self.config.horizontal
        )

    def process_multi(
        self,
        gray,
        ks: Sequence[float],
        color: Optional[np.ndarray] = None,
    ) -> List[PreprocResult]:
        """Binarize at several ``k`` values from one pair of integral tables.

        Wipe thresholds on both axes follow ``k * 0.02``.
        """

        grid = to_gray8(as_grid(gray))
        table = IntegralTable(grid, squared=True)
        window = self.config.window_size or autowsize(grid.shape[1])
        results = []
        for k in ks:
            params = ThresholdParams(k=k, window_size=window)
            binary = precalced_sauvola(
                table, grid, params.k, params.window_size, workers=self.config.workers
            )
            thresh = k * MULTI_WIPE_FACTOR
            vertical = self.config.vertical.model_copy(update={"threshold": thresh})
            horizontal = self.config.horizontal.model_copy(update={"threshold": thresh})
            results.append(self._finish(grid, binary, color, params, vertical, horizontal))
        return results

    def preprocess_file(self, in_path: PathLike, out_path: PathLike) -> PreprocResult:
        t0 = time.perf_counter()
        gray, color = self.image_handler.load(in_path)
        result = self.process(gray, color)
        self.image_handler.save(result.image, out_path)
        log_event(
            logger,
            "page.preprocessed",
            {
                "input": str(in_path),
                "output": str(out_path),
                "k": result.threshold.k,
                "window_size": result.threshold.window_size,
                "bounds": [(b.axis.value, b.low, b.high) for b in result.bounds],
                "elapsed_sec": round(time.perf_counter() - t0, 3),
            },
        )
        return result

    def preprocess_multi_file(self, in_path: PathLike, ks: Sequence[float]) -> List[Path]:
        gray, color = self.image_handler.load(in_path)
        done: List[Path] = []
        for k, result in zip(ks, self.process_multi(gray, ks, color)):
            done.append(self.image_handler.save(result.image, multi_output_path(in_path, k)))
        log_event(logger, "page.preprocessed_multi", {"input": str(in_path), "outputs": [str(p) for p in done]})
        return done

    def wipe_file(self, in_path: PathLike, out_path: PathLike) -> List[ContentBounds]:
        """Wipe margins of an already binarized (or grayscale) image file."""

        gray = self.image_handler.load_gray(in_path)
        out, bounds = self._wipe(gray, gray, self.config.vertical, self.config.horizontal)
        self.image_handler.save(out, out_path)
        log_event(
            logger,
            "page.wiped",
            {"input": str(in_path), "bounds": [(b.axis.value, b.low, b.high) for b in bounds]},
        )
        return bounds

    def _process_one(
        self,
        in_path: PathLike,
        out_dir: Path,
        stem: str,
        ks: Optional[Sequence[float]],
    ) -> PageOutcome:
        try:
            if ks:
                gray, color = self.image_handler.load(in_path)
                outputs = []
                bounds: List[ContentBounds] = []
                for k, result in zip(ks, self.process_multi(gray, ks, color)):
                    target = out_dir / _multi_name(stem, k)
                    outputs.append(str(self.image_handler.save(result.image, target)))
                    bounds.extend(result.bounds)
                return PageOutcome(input_path=str(in_path), outputs=outputs, bounds=bounds)
            target = out_dir / f"{stem}.png"
            result = self.preprocess_file(in_path, target)
            return PageOutcome(input_path=str(in_path), outputs=[str(target)], bounds=result.bounds)
        except ScanprepError as exc:
            log_event(logger, "page.failed", {"input": str(in_path), "error": str(exc)}, level="error")
            return PageOutcome(input_path=str(in_path), error=str(exc))

    def process_batch(
        self,
        paths: Sequence[PathLike],
        out_dir: PathLike,
        ks: Optional[Sequence[float]] = None,
        workers: int = 1,
    ) -> List[PageOutcome]:
        """Preprocess every file independently; a failing file does not stop the rest.

        Outputs are named after the input's stem, see :func:`batch_stems`.
        """

        out = Path(out_dir)
        out.mkdir(parents=True, exist_ok=True)
        jobs = list(zip(paths, batch_stems(paths)))
        if workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                return list(pool.map(lambda job: self._process_one(job[0], out, job[1], ks), jobs))
        return [self._process_one(p, out, stem, ks) for p, stem in jobs]


__all__ = ["MULTI_WIPE_FACTOR", "PreprocResult", "Preprocessor", "batch_stems", "multi_output_path"]
