"""
geometry.py - Resolve image shape and encoding from interpreted keywords.

FITS lists axes fastest-first: NAXIS1 is the row length (x), NAXIS2 the
number of rows (y), and any further axes stack planes.  The resolver
turns those into width / height / depth and picks one of three cases:

    NAXIS == 0          data lives in a tile-compressed extension;
                        width/height come from ZNAXIS1/ZNAXIS2, depth 1
    NAXIS == 3 with     degenerate 1-D series (a spectrum): only the
    NAXIS2 == NAXIS3 == 1   first row is meaningful
    otherwise           width x height planes, depth = product of the
                        remaining axes (commonly 1)

A missing axis is never treated as zero: it is a MalformedHeader.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, TypeVar

from fitsdecode.errors import InvalidGeometry, MalformedHeader
from fitsdecode.keywords import HeaderKeywords
from fitsdecode.samples import SampleKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ImageGeometry:
    """Shape, encoding and calibration of one displayable image."""
    width: int
    height: int
    depth: int
    sample_kind: SampleKind
    scale: float = 1.0
    offset: float = 0.0
    pixel_spacing: tuple[float, float, float] = (1.0, 1.0, 1.0)
    unit: Optional[str] = None
    naxis: int = 2
    is_series: bool = False
    compressed: bool = False

    @property
    def sample_count(self) -> int:
        return self.width * self.height * self.depth

    @property
    def data_bytes(self) -> int:
        return self.sample_count * self.sample_kind.bytes_per_sample

    @property
    def shape(self) -> tuple[int, ...]:
        """Shape of the materialized raster."""
        if self.is_series:
            return (self.width,)
        if self.depth == 1:
            return (self.height, self.width)
        return (self.depth, self.height, self.width)


def _require(value: Optional[T], keyword: str) -> T:
    if value is None:
        raise MalformedHeader(f"Required keyword {keyword} is missing", keyword=keyword)
    return value


def _check_positive(width: int, height: int, depth: int) -> None:
    if width <= 0 or height <= 0 or depth <= 0:
        raise InvalidGeometry(
            f"Image dimensions must be positive, got "
            f"width={width}, height={height}, depth={depth}"
        )


def _spacing(kw: HeaderKeywords) -> tuple[float, float, float]:
    return (
        kw.spacing.get(1, 1.0),
        kw.spacing.get(2, 1.0),
        kw.spacing.get(3, 1.0),
    )


def is_compressed(kw: HeaderKeywords) -> bool:
    """A primary HDU with zero axes points at a tile-compressed extension."""
    return kw.naxis == 0


def resolve_geometry(kw: HeaderKeywords) -> ImageGeometry:
    """
    Derive the geometry of an uncompressed primary image.

    Parameters
    ----------
    kw : HeaderKeywords
        Interpreted primary header.

    Returns
    -------
    ImageGeometry

    Raises
    ------
    MalformedHeader
        If NAXIS, BITPIX or a declared NAXISn is missing.
    InvalidGeometry
        If there are fewer than two axes or any dimension is not positive.
    """
    naxis = _require(kw.naxis, "NAXIS")
    kind = _require(kw.sample_kind, "BITPIX")

    if naxis == 0:
        raise InvalidGeometry("Primary HDU has no axes; image is in a compressed extension")
    if naxis < 2:
        raise InvalidGeometry(f"NAXIS={naxis}: at least two axes are needed for an image")

    width = _require(kw.axes.get(1), "NAXIS1")
    height = _require(kw.axes.get(2), "NAXIS2")
    leading = [_require(kw.axes.get(n), f"NAXIS{n}") for n in range(3, naxis + 1)]

    is_series = naxis == 3 and height == 1 and leading[0] == 1
    depth = math.prod(leading)
    _check_positive(width, height, depth)

    geometry = ImageGeometry(
        width=width,
        height=height,
        depth=depth,
        sample_kind=kind,
        scale=kw.scale,
        offset=kw.offset,
        pixel_spacing=_spacing(kw),
        unit=kw.unit,
        naxis=naxis,
        is_series=is_series,
    )
    logger.debug("Resolved geometry: %s", geometry)
    return geometry


def resolve_compressed_geometry(kw: HeaderKeywords) -> ImageGeometry:
    """
    Derive the geometry of a tile-compressed image extension.

    Raises
    ------
    MalformedHeader
        If the extension is not a compressed image (no ``ZIMAGE = T``)
        or ZBITPIX / ZNAXIS1 / ZNAXIS2 are missing.
    InvalidGeometry
        If width or height is not positive.
    """
    if not kw.zimage:
        raise MalformedHeader("Extension HDU holds no displayable image", keyword="ZIMAGE")

    kind = _require(kw.zsample_kind, "ZBITPIX")
    width = _require(kw.znaxes.get(1), "ZNAXIS1")
    height = _require(kw.znaxes.get(2), "ZNAXIS2")
    _check_positive(width, height, 1)

    return ImageGeometry(
        width=width,
        height=height,
        depth=1,
        sample_kind=kind,
        scale=kw.scale,
        offset=kw.offset,
        pixel_spacing=_spacing(kw),
        unit=kw.unit,
        naxis=2,
        compressed=True,
    )
