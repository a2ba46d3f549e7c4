"""Reader and writer for uncompressed 1-bit BMP files."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from typing import List

import numpy as np

from .errors import (
    InvalidDimensions,
    InvalidSignature,
    TruncatedHeader,
    TruncatedPalette,
    TruncatedPixelData,
    UnsupportedCompression,
    UnsupportedDepth,
    UnsupportedHeader,
)

logger = logging.getLogger(__name__)

FILE_HEADER = struct.Struct("<2sIHHI")
INFO_HEADER = struct.Struct("<IiiHHIIiiII")
HEADER_SIZE = FILE_HEADER.size + INFO_HEADER.size  # 54
PALETTE_SIZE = 8
PIXEL_OFFSET = HEADER_SIZE + PALETTE_SIZE  # 62

# BGRA entries: index 0 black, index 1 white.
BLACK_WHITE_PALETTE = b"\x00\x00\x00\x00\xff\xff\xff\x00"

DEFAULT_PIXELS_PER_METER = 2835


def padded_row_bytes(width: int) -> int:
    """Bytes per stored row: ``width`` bits rounded up to a 4-byte boundary."""

    return ((int(width) + 31) // 32) * 4


@dataclass(frozen=True)
class BitmapImage:
    """A decoded 1bpp bitmap.

    ``pixels`` holds the rows exactly as a BMP stores them: bottom row first,
    each row ``padded_row_bytes`` long, leftmost pixel in the most significant
    bit. A set bit is white. The decoded ``palette`` is informational and is
    ignored when comparing images; writing always emits black and white.
    """

    width: int
    height: int
    pixels: bytes
    x_pixels_per_meter: int = DEFAULT_PIXELS_PER_METER
    y_pixels_per_meter: int = DEFAULT_PIXELS_PER_METER
    palette: bytes = field(default=BLACK_WHITE_PALETTE, compare=False)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensions(
                f"Bitmap dimensions must be positive, got {self.width}x{self.height}"
            )
        object.__setattr__(self, "pixels", bytes(self.pixels))
        object.__setattr__(self, "palette", bytes(self.palette))
        expected = self.padded_row_bytes * self.height
        if len(self.pixels) != expected:
            raise ValueError(
                f"Pixel buffer holds {len(self.pixels)} bytes, expected {expected}"
            )

    @property
    def padded_row_bytes(self) -> int:
        return padded_row_bytes(self.width)

    def storage_row(self, index: int) -> bytes:
        """Return stored row ``index`` (0 is the bottom row of the picture)."""

        size = self.padded_row_bytes
        return self.pixels[index * size : (index + 1) * size]

    def row(self, y: int) -> bytes:
        """Return the bytes of top-down row ``y``."""

        return self.storage_row(self.height - 1 - y)


def read_bitmap(data: bytes) -> BitmapImage:
    """Decode a 1bpp BMP file held in memory."""

    data = bytes(data)
    if len(data) < 2:
        raise TruncatedHeader(f"BMP header truncated: {len(data)} of {HEADER_SIZE} bytes")
    if data[:2] != b"BM":
        raise InvalidSignature(f"Not a BMP file: signature {data[:2]!r}")
    if len(data) < HEADER_SIZE:
        raise TruncatedHeader(f"BMP header truncated: {len(data)} of {HEADER_SIZE} bytes")

    _, _file_size, _, _, pixel_offset = FILE_HEADER.unpack_from(data, 0)
    (
        info_size,
        width,
        height,
        _planes,
        bit_count,
        compression,
        _image_size,
        x_ppm,
        y_ppm,
        _colors_used,
        _colors_important,
    ) = INFO_HEADER.unpack_from(data, FILE_HEADER.size)

    if info_size < INFO_HEADER.size:
        raise UnsupportedHeader(f"Unsupported info header size {info_size}")
    if len(data) < FILE_HEADER.size + info_size:
        raise TruncatedHeader(
            f"BMP info header truncated: {len(data) - FILE_HEADER.size} of {info_size} bytes"
        )
    if bit_count != 1:
        raise UnsupportedDepth(f"Expected 1 bit per pixel, found {bit_count}")
    if compression != 0:
        raise UnsupportedCompression(f"Expected uncompressed data, found compression {compression}")
    if width <= 0 or height == 0:
        raise InvalidDimensions(f"Invalid bitmap dimensions {width}x{height}")

    palette_start = FILE_HEADER.size + info_size
    palette = data[palette_start : palette_start + PALETTE_SIZE]
    if len(palette) < PALETTE_SIZE:
        raise TruncatedPalette(f"Palette truncated: {len(palette)} of {PALETTE_SIZE} bytes")

    top_down = height < 0
    rows = abs(height)
    row_size = padded_row_bytes(width)
    size = row_size * rows
    pixels = data[pixel_offset : pixel_offset + size]
    if len(pixels) < size:
        raise TruncatedPixelData(f"Pixel data truncated: {len(pixels)} of {size} bytes")

    if top_down:
        pixels = b"".join(
            pixels[i * row_size : (i + 1) * row_size] for i in reversed(range(rows))
        )

    logger.debug(
        "Decoded %dx%d bitmap (%d bytes per row, top_down=%s)", width, rows, row_size, top_down
    )
    return BitmapImage(
        width=width,
        height=rows,
        pixels=pixels,
        x_pixels_per_meter=x_ppm,
        y_pixels_per_meter=y_ppm,
        palette=palette,
    )


def _clear_padding(image: BitmapImage) -> bytes:
    row_size = padded_row_bytes(image.width)
    rows = np.frombuffer(image.pixels, dtype=np.uint8).reshape(image.height, row_size).copy()
    used = (image.width + 7) // 8
    remainder = image.width % 8
    if remainder:
        rows[:, used - 1] &= (0xFF << (8 - remainder)) & 0xFF
    rows[:, used:] = 0
    return rows.tobytes()


def write_bitmap(image: BitmapImage) -> bytes:
    """Encode ``image`` as a complete BMP file with a black/white palette."""

    row_size = padded_row_bytes(image.width)
    pixel_data_size = row_size * image.height

    file_header = FILE_HEADER.pack(
        b"BM",
        PIXEL_OFFSET + pixel_data_size,
        0,
        0,
        PIXEL_OFFSET,
    )
    info_header = INFO_HEADER.pack(
        INFO_HEADER.size,
        image.width,
        image.height,
        1,
        1,
        0,
        pixel_data_size,
        image.x_pixels_per_meter,
        image.y_pixels_per_meter,
        2,
        0,
    )

    logger.debug("Encoding %dx%d bitmap, %d pixel bytes", image.width, image.height, pixel_data_size)
    return b"".join((file_header, info_header, BLACK_WHITE_PALETTE, _clear_padding(image)))


def verify_header(data: bytes) -> List[str]:
    """Check an encoded file for the fields a monochrome BMP should carry.

    Problems are returned (and logged) as warnings rather than raised.
    """

    warnings: List[str] = []
    if len(data) < HEADER_SIZE:
        warnings.append(f"File is only {len(data)} bytes, too short for a BMP header")
    else:
        signature, file_size, reserved1, reserved2, _ = FILE_HEADER.unpack_from(data, 0)
        info = INFO_HEADER.unpack_from(data, FILE_HEADER.size)
        info_size, bit_count, colors_used = info[0], info[4], info[9]

        if signature != b"BM":
            warnings.append(f"BMP signature is not 'BM': {signature!r}")
        if file_size != len(data):
            warnings.append(f"Declared file size {file_size} differs from actual {len(data)}")
        if reserved1 or reserved2:
            warnings.append("Reserved header fields are not zero")
        if bit_count != 1:
            warnings.append(f"Expected 1 bit per pixel, found {bit_count}")
        if colors_used != 2:
            warnings.append(f"Expected 2 colors in palette, found {colors_used}")

        start = FILE_HEADER.size + info_size
        palette = data[start : start + PALETTE_SIZE]
        if palette != BLACK_WHITE_PALETTE:
            warnings.append(f"Palette is not pure black/white: {palette.hex()}")

    for message in warnings:
        logger.warning(message)
    return warnings
