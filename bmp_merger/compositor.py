"""Merge strategies combining a body image with a repeating border image."""

from __future__ import annotations

import logging
from typing import List

import numpy as np

from .bmp import BitmapImage, padded_row_bytes
from .errors import DimensionMismatch
from .grids import GrayscaleGrid

logger = logging.getLogger(__name__)


def overlay_min(body: GrayscaleGrid, border: GrayscaleGrid) -> GrayscaleGrid:
    """Darken the body's left columns with the vertically tiled border.

    Where the two overlap the darker value wins, so the border never brightens
    the body. Columns right of the border are copied from the body unchanged.
    """

    if border.width > body.width:
        raise DimensionMismatch(
            f"Border width {border.width} exceeds body width {body.width}"
        )

    rows = np.arange(body.height) % border.height
    tiled = border.values[rows, :]
    merged = body.values.copy()
    merged[:, : border.width] = np.minimum(merged[:, : border.width], tiled)
    return GrayscaleGrid(merged)


def append_border(body: GrayscaleGrid, border: GrayscaleGrid) -> GrayscaleGrid:
    """Place the body on the left and the border, tiled downwards, on its right."""

    rows = np.arange(body.height) % border.height
    merged = np.hstack([body.values, border.values[rows, :]])
    return GrayscaleGrid(merged)


def _mask_row(row: bytes, width: int) -> bytes:
    """Trim or extend ``row`` to the padded size for ``width`` and zero bits past it."""

    size = padded_row_bytes(width)
    out = bytearray(row[:size].ljust(size, b"\x00"))
    used = (width + 7) // 8
    remainder = width % 8
    if remainder:
        out[used - 1] &= (0xFF << (8 - remainder)) & 0xFF
    out[used:] = bytes(size - used)
    return bytes(out)


def substitute_rows(body: BitmapImage, border: BitmapImage) -> BitmapImage:
    """Swap in border rows wherever the body's last column is white.

    The body must be exactly one column wider than the border; that extra
    column is a per-row flag. Rows are visited top to bottom. A white flag
    replaces the row with the next border row (cycling through the border's
    rows); a black flag keeps the body row minus its flag column.
    """

    if body.width != border.width + 1:
        raise DimensionMismatch(
            f"Body width {body.width} must be border width {border.width} + 1"
        )

    width = border.width
    flag = body.width - 1
    flag_byte, flag_mask = flag // 8, 0x80 >> (flag % 8)

    rows: List[bytes] = []
    cursor = 0
    for y in range(body.height):
        body_row = body.row(y)
        if body_row[flag_byte] & flag_mask:
            rows.append(_mask_row(border.row(cursor % border.height), width))
            cursor += 1
        else:
            rows.append(_mask_row(body_row, width))

    logger.info(
        "Substituted %d of %d rows from a %d-row border", cursor, body.height, border.height
    )
    return BitmapImage(
        width=width,
        height=body.height,
        pixels=b"".join(reversed(rows)),
        x_pixels_per_meter=body.x_pixels_per_meter,
        y_pixels_per_meter=body.y_pixels_per_meter,
    )
