"""
errors.py - Failure taxonomy for FITS decoding.

Every failure is fatal for the file being decoded: the decoder closes
its stream and raises one of these.  Nothing is retried and no partial
image is ever returned.  Callers that only care about "did it decode"
can catch ``FitsDecodeError``.
"""

from typing import Optional


class FitsDecodeError(Exception):
    """Base class for every decoding failure."""


class NotFitsFormat(FitsDecodeError):
    """The first header card does not start with ``SIMPLE``."""


class MalformedHeader(FitsDecodeError):
    """A required keyword is missing or unparseable, or the header never ends."""

    def __init__(self, message: str, keyword: Optional[str] = None):
        super().__init__(message)
        self.keyword = keyword


class UnsupportedSampleEncoding(FitsDecodeError):
    """``BITPIX`` is not one of 8, 16, 32, -32 or -64."""

    def __init__(self, bitpix: int):
        super().__init__(
            f"BITPIX must be 8, 16, 32, -32 or -64, but BITPIX={bitpix}"
        )
        self.bitpix = bitpix


class InvalidGeometry(FitsDecodeError):
    """Resolved axes cannot describe a displayable image."""


class TruncatedPixelData(FitsDecodeError):
    """The stream ended before the declared payload was read."""

    def __init__(self, expected: int, available: int):
        super().__init__(
            f"Pixel data truncated: expected {expected} bytes, got {available}"
        )
        self.expected = expected
        self.available = available


class IOFailure(FitsDecodeError, OSError):
    """Opening or reading the underlying (possibly gzipped) stream failed."""
