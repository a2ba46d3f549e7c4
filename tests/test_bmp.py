from __future__ import annotations

import struct
from pathlib import Path

import numpy as np
import pytest

from PIL import Image

from bmp_merger.bmp import (
    BLACK_WHITE_PALETTE,
    BitmapImage,
    padded_row_bytes,
    read_bitmap,
    verify_header,
    write_bitmap,
)
from bmp_merger.errors import (
    InvalidDimensions,
    InvalidSignature,
    TruncatedHeader,
    TruncatedPalette,
    TruncatedPixelData,
    UnsupportedCompression,
    UnsupportedDepth,
    UnsupportedHeader,
)
from bmp_merger.grids import BitGrid, bitmap_from_bits, bits_from_bitmap


def _random_image(width: int, height: int, seed: int = 0) -> BitmapImage:
    rng = np.random.default_rng(seed)
    return bitmap_from_bits(BitGrid(rng.integers(0, 2, size=(height, width))))


def _patch(data: bytes, offset: int, fmt: str, value) -> bytes:
    out = bytearray(data)
    struct.pack_into(fmt, out, offset, value)
    return bytes(out)


@pytest.mark.parametrize("width,height", [(1, 1), (7, 3), (8, 2), (31, 5), (32, 4), (33, 9), (100, 17)])
def test_round_trip_preserves_bits(width: int, height: int):
    image = _random_image(width, height, seed=width * 31 + height)
    decoded = read_bitmap(write_bitmap(image))
    assert decoded == image
    assert decoded.width == width
    assert decoded.height == height
    np.testing.assert_array_equal(bits_from_bitmap(decoded).bits, bits_from_bitmap(image).bits)


def test_padded_row_bytes_is_word_aligned():
    for width in range(1, 200):
        size = padded_row_bytes(width)
        assert size % 4 == 0
        assert size * 8 >= width
        assert size == ((width + 31) // 32) * 4


def test_two_by_two_white_header_fields():
    data = write_bitmap(bitmap_from_bits(BitGrid(np.ones((2, 2), dtype=np.uint8))))

    assert len(data) == 54 + 8 + 4 * 2
    assert data[0:2] == b"BM"
    assert struct.unpack_from("<I", data, 2)[0] == len(data)
    assert struct.unpack_from("<I", data, 10)[0] == 62
    assert struct.unpack_from("<I", data, 14)[0] == 40
    assert struct.unpack_from("<H", data, 28)[0] == 1
    assert struct.unpack_from("<I", data, 34)[0] == 8
    assert struct.unpack_from("<I", data, 46)[0] == 2
    assert data[54:62] == BLACK_WHITE_PALETTE
    # Each row: two white pixels in the top bits, then padding.
    assert data[62:] == b"\xc0\x00\x00\x00" * 2


def test_rows_are_stored_bottom_up():
    bits = np.array([[1, 0, 0], [0, 0, 1]], dtype=np.uint8)
    image = bitmap_from_bits(BitGrid(bits))
    assert image.storage_row(0) == b"\x20\x00\x00\x00"
    assert image.storage_row(1) == b"\x80\x00\x00\x00"
    assert image.row(0) == b"\x80\x00\x00\x00"


def test_write_clears_padding_bits():
    image = BitmapImage(width=3, height=1, pixels=b"\xff\xff\xff\xff")
    data = write_bitmap(image)
    assert data[62:] == b"\xe0\x00\x00\x00"


def test_write_recomputes_sizes_for_wide_rows():
    image = _random_image(33, 2)
    data = write_bitmap(image)
    assert len(data) == 62 + 8 * 2
    assert struct.unpack_from("<i", data, 18)[0] == 33


def test_written_file_opens_in_pillow(tmp_path: Path):
    bits = np.zeros((5, 13), dtype=np.uint8)
    bits[1, :] = 1
    bits[:, 12] = 1
    path = tmp_path / "stripes.bmp"
    path.write_bytes(write_bitmap(bitmap_from_bits(BitGrid(bits))))

    with Image.open(path) as im:
        assert im.size == (13, 5)
        assert im.mode == "1"
        pixels = np.asarray(im).astype(np.uint8)
    np.testing.assert_array_equal(pixels, bits)


def test_reads_bitmap_written_by_pillow(tmp_path: Path):
    bits = np.eye(6, 10, dtype=np.uint8)
    path = tmp_path / "pillow.bmp"
    Image.fromarray(bits * np.uint8(255)).convert("1", dither=Image.Dither.NONE).save(path)

    decoded = read_bitmap(path.read_bytes())
    assert (decoded.width, decoded.height) == (10, 6)
    np.testing.assert_array_equal(bits_from_bitmap(decoded).bits, bits)


def test_reader_honours_pixel_offset():
    image = _random_image(9, 4)
    data = write_bitmap(image)
    gap = b"\xaa" * 6
    shifted = _patch(data[:62] + gap + data[62:], 10, "<I", 62 + len(gap))
    assert read_bitmap(shifted) == image


def test_reader_accepts_top_down_rows():
    image = _random_image(12, 3)
    data = write_bitmap(image)
    rows = [data[62 + i * 4 : 62 + (i + 1) * 4] for i in range(3)]
    flipped = _patch(data[:62], 22, "<i", -3) + b"".join(reversed(rows))
    assert read_bitmap(flipped) == image


def test_reader_keeps_foreign_palette():
    data = write_bitmap(_random_image(4, 4))
    recoloured = data[:54] + b"\x10\x20\x30\x00\x40\x50\x60\x00" + data[62:]
    decoded = read_bitmap(recoloured)
    assert decoded.palette == b"\x10\x20\x30\x00\x40\x50\x60\x00"


def test_invalid_signature():
    data = write_bitmap(_random_image(4, 4))
    with pytest.raises(InvalidSignature):
        read_bitmap(b"XY" + data[2:])


def test_truncated_header():
    data = write_bitmap(_random_image(4, 4))
    with pytest.raises(TruncatedHeader):
        read_bitmap(data[:40])
    with pytest.raises(TruncatedHeader):
        read_bitmap(b"B")


def test_unsupported_depth():
    data = write_bitmap(_random_image(4, 4))
    with pytest.raises(UnsupportedDepth):
        read_bitmap(_patch(data, 28, "<H", 24))


def test_unsupported_compression():
    data = write_bitmap(_random_image(4, 4))
    with pytest.raises(UnsupportedCompression):
        read_bitmap(_patch(data, 30, "<I", 1))


def test_core_header_is_rejected():
    data = write_bitmap(_random_image(4, 4))
    with pytest.raises(UnsupportedHeader):
        read_bitmap(_patch(data, 14, "<I", 12))


def test_zero_width_is_rejected():
    data = write_bitmap(_random_image(4, 4))
    with pytest.raises(InvalidDimensions):
        read_bitmap(_patch(data, 18, "<i", 0))


def test_truncated_palette():
    data = write_bitmap(_random_image(4, 4))
    with pytest.raises(TruncatedPalette):
        read_bitmap(data[:58])


def test_truncated_pixel_data():
    data = write_bitmap(_random_image(4, 4))
    with pytest.raises(TruncatedPixelData):
        read_bitmap(data[:-1])


def test_codec_errors_are_value_errors():
    with pytest.raises(ValueError):
        read_bitmap(b"not a bitmap at all")


def test_bitmap_image_validates_buffer_size():
    with pytest.raises(ValueError):
        BitmapImage(width=8, height=2, pixels=b"\x00" * 4)
    with pytest.raises(InvalidDimensions):
        BitmapImage(width=0, height=1, pixels=b"")


def test_verify_header_accepts_written_file():
    assert verify_header(write_bitmap(_random_image(20, 7))) == []


def test_verify_header_reports_problems(caplog):
    data = write_bitmap(_random_image(4, 4))
    data = _patch(data, 46, "<I", 0)
    data = data[:54] + b"\xff" * 8 + data[62:] + b"\x00"

    with caplog.at_level("WARNING", logger="bmp_merger"):
        warnings = verify_header(data)

    assert len(warnings) == 3
    assert any("file size" in w for w in warnings)
    assert any("2 colors" in w for w in warnings)
    assert any("black/white" in w for w in warnings)
    assert len(caplog.records) == 3


def test_verify_header_short_buffer():
    assert len(verify_header(b"BM")) == 1


def test_foreign_palette_does_not_affect_equality():
    image = _random_image(6, 3)
    data = write_bitmap(image)
    recoloured = read_bitmap(data[:54] + b"\x10\x20\x30\x00\x40\x50\x60\x00" + data[62:])
    assert recoloured == image
    assert read_bitmap(write_bitmap(recoloured)) == recoloured


def test_long_info_header_beyond_buffer_is_truncated_header():
    data = write_bitmap(_random_image(4, 4))
    v5 = _patch(data, 14, "<I", 124)
    with pytest.raises(TruncatedHeader):
        read_bitmap(v5[:100])
