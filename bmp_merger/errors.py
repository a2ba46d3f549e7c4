"""Exception hierarchy for codec and compositing failures."""

from __future__ import annotations


class BmpMergerError(Exception):
    """Base class for every error raised by the package."""


class CodecError(BmpMergerError, ValueError):
    """The byte stream is not a readable 1-bit BMP."""


class InvalidSignature(CodecError):
    pass


class UnsupportedHeader(CodecError):
    pass


class UnsupportedDepth(CodecError):
    pass


class UnsupportedCompression(CodecError):
    pass


class InvalidDimensions(CodecError):
    pass


class TruncatedHeader(CodecError):
    pass


class TruncatedPalette(CodecError):
    pass


class TruncatedPixelData(CodecError):
    pass


class MergeError(BmpMergerError, ValueError):
    """Two images cannot be combined with the requested policy."""


class DimensionMismatch(MergeError):
    pass


class IoFailure(BmpMergerError, OSError):
    """A file-system operation failed; the original error is the ``__cause__``."""
