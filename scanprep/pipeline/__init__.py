"""File-level preprocessing: decode, binarize, wipe, encode."""

from .input_handler import PillowImageHandler
from .pipeline import MULTI_WIPE_FACTOR, PreprocResult, Preprocessor, batch_stems, multi_output_path

__all__ = [
    "MULTI_WIPE_FACTOR",
    "PillowImageHandler",
    "PreprocResult",
    "Preprocessor",
    "batch_stems",
    "multi_output_path",
]
