"""scanprep public package surface.

The numerical entry points are re-exported lazily so ``import scanprep``
stays cheap for tools that only need the version or the models.
"""

from __future__ import annotations

from importlib import import_module as _import_module
from typing import Any, Dict

from ._version import __version__

__all__ = [
    "__version__",
    "IntegralTable",
    "Window",
    "integral_sauvola",
    "sauvola",
    "binarize",
    "zero_inverse",
    "autowsize",
    "find_edges",
    "find_edges_outin",
    "find_best_edge",
    "find_content_bounds",
    "wipe",
    "vwipe",
    "wipe_with_bounds",
    "Preprocessor",
    "PreprocConfig",
    "ThresholdParams",
    "EdgeParams",
    "EdgeStrategy",
    "Axis",
]

# Mapping of public attribute -> module that defines it
_ATTR_TO_SPEC: Dict[str, str] = {
    "IntegralTable": ".core.integral",
    "Window": ".core.integral",
    "integral_sauvola": ".core.sauvola",
    "sauvola": ".core.sauvola",
    "binarize": ".core.sauvola",
    "zero_inverse": ".core.sauvola",
    "autowsize": ".core.sauvola",
    "find_edges": ".core.edges",
    "find_edges_outin": ".core.edges",
    "find_best_edge": ".core.edges",
    "find_content_bounds": ".core.edges",
    "wipe": ".core.wipe",
    "vwipe": ".core.wipe",
    "wipe_with_bounds": ".core.wipe",
    "Preprocessor": ".pipeline.pipeline",
    "PreprocConfig": ".config",
    "ThresholdParams": ".models",
    "EdgeParams": ".models",
    "EdgeStrategy": ".models",
    "Axis": ".models",
}


def __getattr__(name: str) -> Any:
    spec = _ATTR_TO_SPEC.get(name)
    if spec is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    value = getattr(_import_module(spec, __name__), name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(set(__all__ + list(globals().keys())))
