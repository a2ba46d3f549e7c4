"""Brightness sampling of arbitrary pixel sources."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .bmp import BitmapImage
from .errors import CodecError, IoFailure
from .grids import BitGrid, GrayscaleGrid, bits_from_bitmap

PixelSource = Union[np.ndarray, Image.Image, BitmapImage, BitGrid, GrayscaleGrid]


def brightness(rgb: np.ndarray) -> np.ndarray:
    """HSB brightness of an ``(..., 3)`` uint8 array: ``max(R, G, B) / 255``."""

    return rgb[..., :3].max(axis=-1).astype(np.float64) / 255.0


def _as_values(source: PixelSource) -> np.ndarray:
    if isinstance(source, GrayscaleGrid):
        return source.values
    if isinstance(source, BitmapImage):
        source = bits_from_bitmap(source)
    if isinstance(source, BitGrid):
        return source.bits.astype(np.float64)
    if isinstance(source, Image.Image):
        if source.mode == "1":
            return (np.asarray(source) != 0).astype(np.float64)
        return brightness(np.asarray(source.convert("RGB"), dtype=np.uint8))

    array = np.asarray(source)
    if not (array.ndim == 2 or (array.ndim == 3 and array.shape[2] in (3, 4))):
        raise ValueError(f"Unsupported pixel array shape {array.shape}")

    if array.dtype == np.bool_:
        if array.ndim != 2:
            raise ValueError("Boolean pixel arrays must be 2D")
        return array.astype(np.float64)
    if array.dtype == np.uint8:
        if array.ndim == 3:
            return brightness(array)
        return array.astype(np.float64) / 255.0
    if np.issubdtype(array.dtype, np.floating):
        # Float input is taken as brightness already scaled to [0, 1].
        values = array.astype(np.float64)
        if not np.all((values >= 0.0) & (values <= 1.0)):
            raise ValueError("Floating point pixel values must lie within [0, 1]")
        return values[..., :3].max(axis=-1) if values.ndim == 3 else values
    raise ValueError(f"Unsupported pixel array dtype {array.dtype}")


def sample(
    source: PixelSource, width: Optional[int] = None, height: Optional[int] = None
) -> GrayscaleGrid:
    """Return the brightness of the top-left ``width`` x ``height`` region of ``source``.

    RGB(A) input uses the max-channel brightness; 2D uint8 arrays are treated
    as grey levels; 1-bit sources map to 0.0 (black) and 1.0 (white). Float
    arrays must already hold values in ``[0, 1]``; any other dtype is rejected.
    """

    values = _as_values(source)
    src_h, src_w = values.shape
    width = src_w if width is None else int(width)
    height = src_h if height is None else int(height)
    if not (0 < width <= src_w and 0 < height <= src_h):
        raise ValueError(
            f"Cannot sample {width}x{height} pixels from a {src_w}x{src_h} source"
        )
    return GrayscaleGrid(values[:height, :width].copy())


def load_source(path: Union[str, Path]) -> Image.Image:
    """Open any image Pillow understands, fully decoded."""

    path = Path(path)
    try:
        with Image.open(path) as im:
            im.load()
            return im.copy()
    except UnidentifiedImageError as exc:
        raise CodecError(f"Unrecognised image format: {path}") from exc
    except OSError as exc:
        raise IoFailure(f"Could not read {path}: {exc}") from exc
