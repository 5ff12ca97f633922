#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Unified CLI entry point for scanprep."""
from __future__ import annotations

import sys
from importlib import import_module
from textwrap import dedent

from ._version import __version__

_COMMAND_TO_MODULE = {
    "binarize": "scanprep.pipeline.cli",
    "wipe": "scanprep.pipeline.cli",
    "preproc": "scanprep.pipeline.cli",
    "preprocmulti": "scanprep.pipeline.cli",
    "bench": "scanprep.bench",
}


def _print_help() -> None:
    msg = dedent(
        """
        Usage:
          python -m scanprep <command> [args...]

        Commands:
          binarize        Sauvola binarization (binary or zeroinv output)
          wipe            Wipe margins outside the detected content area
          preproc         Binarize, then wipe
          preprocmulti    Binarize + wipe at several k values
          bench           Time the integral-image primitives
          help            Show this message

        Examples:
          python -m scanprep binarize -k 0.3 page.png page_bin.png
          python -m scanprep preproc -bt zeroinv page.png clean.png
          python -m scanprep preprocmulti -k 0.1,0.3,0.5 pages/*.png
        """
    ).strip()
    print(msg)


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if not argv or argv[0] in {"-h", "--help", "help"}:
        _print_help()
        return 0
    if argv[0] == "--version":
        print(__version__)
        return 0
    cmd = argv[0]
    module = _COMMAND_TO_MODULE.get(cmd)
    if module is None:
        _print_help()
        return 2
    if module == "scanprep.bench":
        argv = argv[1:]
    result = import_module(module).main(argv)
    return int(result or 0)


if __name__ == "__main__":
    sys.exit(main())
