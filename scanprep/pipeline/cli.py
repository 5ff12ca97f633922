# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 scanprep contributors

"""Command-line front ends for binarization and margin wiping.

Every flag defaults to the value in :class:`~scanprep.config.PreprocConfig`
(after ``SCANPREP_*`` environment overrides), so a bare invocation uses the
documented defaults. Input errors on a page exit with status 1.
"""
from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from .._logging import configure_logging, log_event
from ..config import PreprocConfig
from ..core.utils import ScanprepError
from ..models import BinarizationMode, EdgeParams, EdgeStrategy
from .pipeline import Preprocessor

logger = logging.getLogger(__name__)

_STRATEGIES = [s.value for s in EdgeStrategy]


def _parse_ks(raw: str) -> List[float]:
    try:
        ks = [float(part) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid k list {raw!r}") from exc
    if not ks:
        raise argparse.ArgumentTypeError("at least one k value is required")
    return ks


def _add_binarize_args(parser: argparse.ArgumentParser, *, short: bool) -> None:
    wflag, tflag = ("-w", "-t") if short else ("-bw", "-bt")
    parser.add_argument(
        wflag,
        "--window-size",
        dest="window_size",
        type=int,
        default=None,
        help="Window size for sauvola binarization. Set automatically based on resolution if not set.",
    )
    parser.add_argument(
        tflag,
        "--type",
        dest="mode",
        choices=[m.value for m in BinarizationMode],
        default=None,
        help="Type of binarization threshold (default: binary).",
    )


def _add_k_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-k",
        type=float,
        default=None,
        help="K for sauvola binarization. Controls the overall threshold level; "
        "set it lower for very light text (try 0.1 or 0.2). Default 0.5.",
    )


def _add_vertical_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-vm",
        "--vwipe-min-percent",
        dest="vmin",
        type=int,
        default=None,
        help="Minimum percentage of the image height for the content height calculation "
        "to be considered valid (default 30).",
    )
    parser.add_argument(
        "-vt",
        "--vwipe-threshold",
        dest="vthresh",
        type=float,
        default=None,
        help="Proportion of black pixels below which a vertical wipe window is determined "
        "to be the edge (default 0.005).",
    )
    parser.add_argument(
        "-vw",
        "--vwipe-window",
        dest="vwsize",
        type=int,
        default=None,
        help="Window size for vertical edge finding; roughly line height + largest gap (default 120).",
    )
    parser.add_argument("--vstrategy", choices=_STRATEGIES, default=None, help="Vertical edge search (default outside-in).")


def _add_horizontal_args(parser: argparse.ArgumentParser, *, preproc_names: bool) -> None:
    if preproc_names:
        names = {"min": ("-m",), "thresh": ("-wt",), "wsize": ("-ws",)}
    else:
        names = {"min": ("-hm",), "thresh": ("-ht",), "wsize": ("-hw",)}
    parser.add_argument(
        *names["min"],
        "--hwipe-min-percent",
        dest="hmin",
        type=int,
        default=None,
        help="Minimum percentage of the image width for the content width calculation "
        "to be considered valid (default 30).",
    )
    parser.add_argument(
        *names["thresh"],
        "--hwipe-threshold",
        dest="hthresh",
        type=float,
        default=None,
        help="Proportion of black pixels below which a window is determined to be the edge. "
        "Higher means more aggressive wiping (default 0.05).",
    )
    parser.add_argument(
        *names["wsize"],
        "--hwipe-window",
        dest="hwsize",
        type=int,
        default=None,
        help="Window size for the horizontal edge finding algorithm (default 5).",
    )
    parser.add_argument("--hstrategy", choices=_STRATEGIES, default=None, help="Horizontal edge search (default middle-out).")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m scanprep",
        description="Binarize page images and wipe their margins before OCR",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--log-level", default=None, help="Logging level (default SCANPREP_LOG_LEVEL or INFO)")
    common.add_argument("--log-format", choices=["text", "json"], default=None)
    common.add_argument("--workers", type=int, default=None, help="Threads for the per-row binarization pass")
    sub = parser.add_subparsers(dest="command", required=True)

    binz = sub.add_parser("binarize", help="Fast integral-image Sauvola binarization of an image", parents=[common])
    _add_k_arg(binz)
    _add_binarize_args(binz, short=True)
    binz.add_argument("inimg")
    binz.add_argument("outimg")

    wipe = sub.add_parser("wipe", help="Wipe the sections of an image outside the content area", parents=[common])
    _add_horizontal_args(wipe, preproc_names=False)
    _add_vertical_args(wipe)
    wipe.add_argument("inimg")
    wipe.add_argument("outimg")

    pre = sub.add_parser("preproc", help="Binarize and wipe an image", parents=[common])
    _add_k_arg(pre)
    _add_binarize_args(pre, short=False)
    pre.add_argument("-nowipe", "--no-wipe", dest="nowipe", action="store_true", help="Disable wiping completely.")
    _add_horizontal_args(pre, preproc_names=True)
    _add_vertical_args(pre)
    pre.add_argument("inimg")
    pre.add_argument("outimg")

    multi = sub.add_parser(
        "preprocmulti",
        help="Binarize and wipe at several k values, writing <name>_bin<k>.png beside each input",
        parents=[common],
    )
    multi.add_argument("-k", dest="ks", type=_parse_ks, default=[0.1, 0.2, 0.4, 0.5], help="Comma separated k values")
    _add_binarize_args(multi, short=False)
    multi.add_argument("-nowipe", "--no-wipe", dest="nowipe", action="store_true", help="Disable wiping completely.")
    _add_horizontal_args(multi, preproc_names=True)
    _add_vertical_args(multi)
    multi.add_argument("--out-dir", default=None, help="Write outputs here instead of beside the inputs")
    multi.add_argument("--jobs", type=int, default=1, help="Images processed concurrently with --out-dir")
    multi.add_argument("inimgs", nargs="+")

    return parser


def _edge_overrides(base: EdgeParams, wsize, thresh, minp, strategy) -> EdgeParams:
    update: Dict[str, Any] = {}
    if wsize is not None:
        update["window_size"] = wsize
    if thresh is not None:
        update["threshold"] = thresh
    if minp is not None:
        update["min_content_percent"] = minp
    if strategy is not None:
        update["strategy"] = EdgeStrategy(strategy)
    if not update:
        return base
    # revalidate so window sizes are forced odd and ranges checked
    return type(base)(**{**base.model_dump(), **update})


def config_from_args(args: argparse.Namespace) -> PreprocConfig:
    base = PreprocConfig.from_env()
    overrides: Dict[str, Any] = {}
    for name in ("k", "window_size", "workers"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    if getattr(args, "mode", None):
        overrides["mode"] = BinarizationMode(args.mode)
    if args.command == "binarize":
        overrides["wipe"] = False
    elif getattr(args, "nowipe", False):
        overrides["wipe"] = False
    if hasattr(args, "hwsize"):
        overrides["horizontal"] = _edge_overrides(
            base.horizontal, args.hwsize, args.hthresh, args.hmin, args.hstrategy
        )
    if hasattr(args, "vwsize"):
        overrides["vertical"] = _edge_overrides(
            base.vertical, args.vwsize, args.vthresh, args.vmin, args.vstrategy
        )
    return PreprocConfig(**{**base.model_dump(), **overrides})


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.log_level, args.log_format)

    try:
        config = config_from_args(args)
    except ValidationError as exc:
        parser.error(f"invalid parameters: {exc}")
    pre = Preprocessor(config=config)

    try:
        if args.command in {"binarize", "preproc"}:
            result = pre.preprocess_file(args.inimg, args.outimg)
            if config.window_size == 0:
                logger.info("Set window size to %d", result.threshold.window_size)
        elif args.command == "wipe":
            pre.wipe_file(args.inimg, args.outimg)
        elif args.command == "preprocmulti":
            if args.out_dir:
                outcomes = pre.process_batch(args.inimgs, args.out_dir, ks=args.ks, workers=args.jobs)
                print(json.dumps([o.model_dump(mode="json") for o in outcomes], ensure_ascii=False, indent=2))
                return 0 if all(o.ok for o in outcomes) else 1
            for path in args.inimgs:
                for done in pre.preprocess_multi_file(path, args.ks):
                    print(done)
    except ScanprepError as exc:
        log_event(logger, "command.failed", {"command": args.command, "error": str(exc)}, level="error")
        return 1
    return 0


__all__ = ["build_parser", "config_from_args", "main"]
