"""High level merge operations and file helpers used by front ends."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np
from PIL import Image

from .bmp import BitmapImage, read_bitmap, verify_header, write_bitmap
from .compositor import append_border, overlay_min, substitute_rows
from .dither import dither, threshold
from .errors import IoFailure, UnsupportedDepth
from .grayscale import PixelSource, load_source, sample
from .grids import BitGrid, bitmap_from_bits, bits_from_bitmap
from .parameters import DEFAULT_PARAMS, MergeParameters

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
Source = Union[PathLike, PixelSource]


class MergePolicy(str, Enum):
    OVERLAY = "overlay"
    EXACT = "exact"
    SIDE_BY_SIDE = "side-by-side"


# ---------- file collaborators ----------

def load_image(path: PathLike) -> BitmapImage:
    """Read and decode a 1bpp BMP file."""

    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise IoFailure(f"Could not read {path}: {exc}") from exc
    return read_bitmap(data)


def _write_bytes(path: PathLike, data: bytes) -> None:
    path = Path(path)
    try:
        path.write_bytes(data)
    except OSError as exc:
        raise IoFailure(f"Could not write {path}: {exc}") from exc
    logger.info("Wrote %s (%d bytes)", path, len(data))


def save_image(path: PathLike, image: BitmapImage) -> None:
    """Encode ``image`` completely, then write it to ``path``."""

    _write_bytes(path, write_bitmap(image))


def preview_pixels(
    image: Union[BitGrid, BitmapImage],
    callback: Optional[Callable[[Image.Image], None]] = None,
) -> Image.Image:
    """Render 1-bit pixels as a Pillow mode ``"1"`` image for display."""

    grid = bits_from_bitmap(image) if isinstance(image, BitmapImage) else image
    preview = Image.fromarray(grid.bits * np.uint8(255)).convert(
        "1", dither=Image.Dither.NONE
    )
    if callback is not None:
        callback(preview)
    return preview


# ---------- merge operations ----------

def _open(source: Source) -> PixelSource:
    if isinstance(source, (str, Path)):
        return load_source(source)
    return source


def _as_bitmap(source: Source, pixels_per_meter: int) -> BitmapImage:
    if isinstance(source, (str, Path)):
        return load_image(source)
    if isinstance(source, BitmapImage):
        return source
    if isinstance(source, BitGrid):
        return bitmap_from_bits(source, pixels_per_meter)
    if isinstance(source, Image.Image) and source.mode == "1":
        return bitmap_from_bits(BitGrid(np.asarray(source)), pixels_per_meter)
    raise UnsupportedDepth("Exact merging needs 1-bit input images")


def merge_and_dither(
    body_source: Source, border_source: Source, params: Optional[MergeParameters] = None
) -> BitGrid:
    """Overlay the border on the body (darkest wins), then error-diffuse."""

    params = params or DEFAULT_PARAMS
    body = sample(_open(body_source))
    border = sample(_open(border_source))
    merged = overlay_min(body, border)
    logger.info(
        "Overlay merge: body %dx%d, border %dx%d", body.width, body.height, border.width, border.height
    )
    return dither(merged, params.dither_threshold)


def merge_exact(
    body_bmp: Source, border_bmp: Source, pixels_per_meter: int = DEFAULT_PARAMS.pixels_per_meter
) -> BitmapImage:
    """Row substitution on 1-bit images, governed by the body's last column.

    ``pixels_per_meter`` only applies to inputs that are not already bitmaps.
    """

    body = _as_bitmap(body_bmp, pixels_per_meter)
    border = _as_bitmap(border_bmp, pixels_per_meter)
    return substitute_rows(body, border)


def merge_side_by_side(
    body_source: Source, border_source: Source, params: Optional[MergeParameters] = None
) -> BitGrid:
    """Append the tiled border to the body's right edge and threshold the result."""

    params = params or DEFAULT_PARAMS
    body = sample(_open(body_source))
    border = sample(_open(border_source))
    merged = append_border(body, border)
    logger.info("Side-by-side merge: output %dx%d", merged.width, merged.height)
    return threshold(merged, params.side_by_side_threshold)


def merge(
    body: Source,
    border: Source,
    policy: Union[MergePolicy, str] = MergePolicy.OVERLAY,
    params: Optional[MergeParameters] = None,
) -> BitmapImage:
    """Merge two images with the named policy and return an encodable bitmap."""

    params = params or DEFAULT_PARAMS
    policy = MergePolicy(policy)
    if policy is MergePolicy.EXACT:
        return merge_exact(body, border, params.pixels_per_meter)
    if policy is MergePolicy.SIDE_BY_SIDE:
        grid = merge_side_by_side(body, border, params)
    else:
        grid = merge_and_dither(body, border, params)
    return bitmap_from_bits(grid, params.pixels_per_meter)


def merge_files(
    body_path: PathLike,
    border_path: PathLike,
    output_path: PathLike,
    policy: Union[MergePolicy, str, None] = None,
    params: Optional[MergeParameters] = None,
) -> BitmapImage:
    """Load two images, merge them and save the result as a 1-bit BMP."""

    params = params or DEFAULT_PARAMS
    merged = merge(body_path, border_path, policy or params.policy, params)
    data = write_bitmap(merged)
    _write_bytes(output_path, data)
    if params.verify_output:
        verify_header(data)
    return merged
