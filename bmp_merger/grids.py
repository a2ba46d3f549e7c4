"""In-memory pixel grids and conversion to and from packed bitmaps."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .bmp import DEFAULT_PIXELS_PER_METER, BitmapImage, padded_row_bytes


@dataclass(eq=False)
class GrayscaleGrid:
    """Brightness values in ``[0, 1]``, shape ``(height, width)``, top row first."""

    values: np.ndarray

    def __post_init__(self) -> None:
        values = np.asarray(self.values, dtype=np.float64)
        if values.ndim != 2 or values.size == 0:
            raise ValueError(f"Grayscale grid must be a non-empty 2D array, got shape {values.shape}")
        self.values = values

    @property
    def width(self) -> int:
        return int(self.values.shape[1])

    @property
    def height(self) -> int:
        return int(self.values.shape[0])


@dataclass(eq=False)
class BitGrid:
    """One bit per pixel (1 = white), shape ``(height, width)``, top row first."""

    bits: np.ndarray

    def __post_init__(self) -> None:
        bits = np.asarray(self.bits)
        if bits.ndim != 2 or bits.size == 0:
            raise ValueError(f"Bit grid must be a non-empty 2D array, got shape {bits.shape}")
        self.bits = (bits != 0).astype(np.uint8)

    @property
    def width(self) -> int:
        return int(self.bits.shape[1])

    @property
    def height(self) -> int:
        return int(self.bits.shape[0])


def bitmap_from_bits(
    grid: BitGrid, pixels_per_meter: int = DEFAULT_PIXELS_PER_METER
) -> BitmapImage:
    """Pack a bit grid into bottom-up, 4-byte padded BMP rows."""

    packed = np.packbits(grid.bits, axis=1)
    rows = np.zeros((grid.height, padded_row_bytes(grid.width)), dtype=np.uint8)
    rows[:, : packed.shape[1]] = packed
    return BitmapImage(
        width=grid.width,
        height=grid.height,
        pixels=np.flipud(rows).tobytes(),
        x_pixels_per_meter=pixels_per_meter,
        y_pixels_per_meter=pixels_per_meter,
    )


def bits_from_bitmap(image: BitmapImage) -> BitGrid:
    """Unpack a bitmap's stored rows into a top-down bit grid."""

    rows = np.frombuffer(image.pixels, dtype=np.uint8).reshape(
        image.height, image.padded_row_bytes
    )
    bits = np.unpackbits(rows, axis=1)[:, : image.width]
    return BitGrid(np.flipud(bits))
