"""Numerical core: integral tables, windowed statistics, Sauvola, edges, wipe.

Modules are imported lazily so that the parameter models in
:mod:`scanprep.models` can import :mod:`scanprep.core.utils` without pulling
in the whole core.
"""
from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import Dict

__all__ = [
    "edges",
    "grid",
    "integral",
    "sauvola",
    "utils",
    "windows",
    "wipe",
]

_PUBLIC_MODULES = {name: f".{name}" for name in __all__}

_LOADED: Dict[str, ModuleType] = {}


def _load_module(name: str) -> ModuleType:
    if name not in _PUBLIC_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = _LOADED.get(name)
    if module is None:
        module = import_module(_PUBLIC_MODULES[name], __name__)
        _LOADED[name] = module
        globals()[name] = module
    return module


def __getattr__(name: str) -> ModuleType:
    return _load_module(name)


def __dir__() -> list[str]:
    return sorted(set(__all__ + list(globals().keys())))
