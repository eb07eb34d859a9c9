"""
fitsdecode: decode FITS astronomical images into numpy rasters.

Reads the fixed-format FITS header, resolves image geometry and sample
encoding from its keywords, and materializes the pixel data with the
BSCALE/BZERO rescale applied.  Plain, gzip and tile-compressed files
are supported.
"""

from fitsdecode.decoder import DecodedImage, decode_file
from fitsdecode.errors import (
    FitsDecodeError,
    IOFailure,
    InvalidGeometry,
    MalformedHeader,
    NotFitsFormat,
    TruncatedPixelData,
    UnsupportedSampleEncoding,
)
from fitsdecode.geometry import ImageGeometry
from fitsdecode.samples import SampleKind

__all__ = [
    "DecodedImage",
    "decode_file",
    "ImageGeometry",
    "SampleKind",
    "FitsDecodeError",
    "NotFitsFormat",
    "MalformedHeader",
    "UnsupportedSampleEncoding",
    "InvalidGeometry",
    "TruncatedPixelData",
    "IOFailure",
]
__version__ = "0.1.0"
