"""Monochrome BMP codec with dithering and image merging."""

import logging

from .bmp import BitmapImage, padded_row_bytes, read_bitmap, verify_header, write_bitmap
from .compositor import append_border, overlay_min, substitute_rows
from .dither import dither, threshold
from .errors import (
    BmpMergerError,
    CodecError,
    DimensionMismatch,
    InvalidDimensions,
    InvalidSignature,
    IoFailure,
    MergeError,
    TruncatedHeader,
    TruncatedPalette,
    TruncatedPixelData,
    UnsupportedCompression,
    UnsupportedDepth,
    UnsupportedHeader,
)
from .grayscale import load_source, sample
from .grids import BitGrid, GrayscaleGrid, bitmap_from_bits, bits_from_bitmap
from .parameters import DEFAULT_PARAMS, MergeParameters, load_parameters
from .pipeline import (
    MergePolicy,
    load_image,
    merge,
    merge_and_dither,
    merge_exact,
    merge_files,
    merge_side_by_side,
    preview_pixels,
    save_image,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "BitmapImage",
    "padded_row_bytes",
    "read_bitmap",
    "write_bitmap",
    "verify_header",
    "GrayscaleGrid",
    "BitGrid",
    "bitmap_from_bits",
    "bits_from_bitmap",
    "sample",
    "load_source",
    "dither",
    "threshold",
    "overlay_min",
    "substitute_rows",
    "append_border",
    "MergePolicy",
    "MergeParameters",
    "DEFAULT_PARAMS",
    "load_parameters",
    "load_image",
    "save_image",
    "preview_pixels",
    "merge",
    "merge_and_dither",
    "merge_exact",
    "merge_side_by_side",
    "merge_files",
    "BmpMergerError",
    "CodecError",
    "InvalidSignature",
    "UnsupportedHeader",
    "UnsupportedDepth",
    "UnsupportedCompression",
    "InvalidDimensions",
    "TruncatedHeader",
    "TruncatedPalette",
    "TruncatedPixelData",
    "MergeError",
    "DimensionMismatch",
    "IoFailure",
]
