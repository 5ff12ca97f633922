from __future__ import annotations

import argparse
import json
import platform
import sys
import time
from pathlib import Path
from statistics import mean, median
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ._version import __version__


def _percentile(values: List[float], pct: float) -> float:
    if not values:
        return 0.0
    if pct <= 0:
        return min(values)
    if pct >= 100:
        return max(values)
    ordered = sorted(values)
    k = (len(ordered) - 1) * (pct / 100.0)
    lo = int(k)
    hi = min(len(ordered) - 1, lo + 1)
    if lo == hi:
        return ordered[lo]
    frac = k - lo
    return ordered[lo] * (1.0 - frac) + ordered[hi] * frac


def synthetic_page(width: int, height: int, seed: int = 24601) -> np.ndarray:
    """Light paper with dark margins and rows of text-like dark blocks."""

    rng = np.random.default_rng(seed)
    page = rng.normal(225, 12, size=(height, width)).clip(0, 255).astype(np.uint8)
    mx, my = max(1, width // 12), max(1, height // 14)
    page[:, :mx] = 40
    page[:, width - mx:] = 40
    line_h = max(2, height // 60)
    for y in range(2 * my, height - 2 * my, 3 * line_h):
        x = 2 * mx
        while x < width - 2 * mx:
            word = int(rng.integers(line_h, 6 * line_h))
            page[y:y + line_h, x:min(x + word, width - 2 * mx)] = rng.integers(10, 70)
            x += word + line_h
    return page


def _time(fn: Callable[[], Any], iterations: int, warmup: int) -> Dict[str, float]:
    for _ in range(max(0, warmup)):
        fn()
    timings: List[float] = []
    for _ in range(max(1, iterations)):
        t0 = time.perf_counter()
        fn()
        timings.append(time.perf_counter() - t0)
    return {
        "min": min(timings),
        "p50": median(timings),
        "p90": _percentile(timings, 90.0),
        "mean": mean(timings),
        "max": max(timings),
    }


def _bench_core(size: int, iterations: int, warmup: int, workers: int) -> Dict[str, Any]:
    from scanprep.core.integral import IntegralTable
    from scanprep.core.sauvola import autowsize, integral_sauvola, sauvola
    from scanprep.core.wipe import vwipe, wipe

    page = synthetic_page(size, int(size * 1.4))
    window = autowsize(page.shape[1])
    binary = integral_sauvola(page, 0.5, window)
    small = page[:64, :64]

    return {
        "name": "core",
        "image": {"width": int(page.shape[1]), "height": int(page.shape[0])},
        "window_size": window,
        "iterations": int(max(1, iterations)),
        "warmup": int(max(0, warmup)),
        "timings_sec": {
            "integral_table": _time(lambda: IntegralTable(page), iterations, warmup),
            "integral_sauvola": _time(
                lambda: integral_sauvola(page, 0.5, window, workers=workers), iterations, warmup
            ),
            "direct_sauvola_64x64": _time(lambda: sauvola(small, 0.5, 15), iterations, warmup),
            "wipe": _time(lambda: wipe(binary), iterations, warmup),
            "vwipe": _time(lambda: vwipe(binary), iterations, warmup),
        },
    }


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser("scanprep bench")
    parser.add_argument("--size", type=int, default=1200, help="Synthetic page width in pixels.")
    parser.add_argument("--iterations", type=int, default=3)
    parser.add_argument("--warmup", type=int, default=1)
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument("--out", type=str, default=None, help="Optional JSON output path.")
    args = parser.parse_args(argv)

    bench = _bench_core(int(args.size), int(args.iterations), int(args.warmup), int(args.workers))

    payload: Dict[str, Any] = {
        "schema": "scanprep.bench",
        "schema_version": 1,
        "scanprep_version": __version__,
        "python": sys.version.split()[0],
        "numpy": np.__version__,
        "platform": platform.platform(),
        "bench": bench,
    }

    out = getattr(args, "out", None)
    if out:
        out_path = Path(out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    else:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
