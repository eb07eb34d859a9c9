"""
pixels.py - Turn the binary payload of an HDU into a physical-value raster.

FITS stores raw integers or floats; the physical value of each sample is

    physical = BZERO + BSCALE * raw

This module reads exactly the number of bytes the geometry declares,
decodes them with the big-endian dtype of the sample kind and applies
the rescale in float64.  One routine serves every encoding: the dtype
carries the width and signedness.

Raster layout is row-major with x varying fastest, which is numpy's
C order for FITS axes read back to front:

    one plane        (height, width)
    several planes   (depth, height, width), in file order
    1-D series       (width,)  -- first row of the first plane
"""

import logging
from typing import BinaryIO, Optional

import numpy as np

from fitsdecode.errors import InvalidGeometry, TruncatedPixelData
from fitsdecode.geometry import ImageGeometry
from fitsdecode.header import read_bytes

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1 << 20


def apply_rescale(
    raw: np.ndarray,
    scale: float = 1.0,
    offset: float = 0.0,
) -> np.ndarray:
    """
    Convert raw stored samples to physical values.

    Parameters
    ----------
    raw : np.ndarray
        Samples as stored in the file.
    scale : float
        BSCALE from the header (default 1.0).
    offset : float
        BZERO from the header (default 0.0).

    Returns
    -------
    np.ndarray
        Float64 array of ``offset + scale * raw``, same shape as *raw*.
    """
    return raw.astype(np.float64) * scale + offset


def check_data_limit(geometry: ImageGeometry, max_data_bytes: Optional[int]) -> None:
    """Raise InvalidGeometry if the declared payload exceeds *max_data_bytes*."""
    if max_data_bytes is not None and geometry.data_bytes > max_data_bytes:
        raise InvalidGeometry(
            f"Declared payload of {geometry.data_bytes} bytes exceeds the limit of {max_data_bytes}"
        )


def read_payload(
    stream: BinaryIO,
    geometry: ImageGeometry,
    max_data_bytes: Optional[int] = None,
) -> bytes:
    """
    Read the exact pixel payload declared by *geometry*.

    The payload is read in chunks of at most ``READ_CHUNK_SIZE`` bytes so
    a short file that declares a huge image fails as soon as the data
    runs out, without first reserving the declared size.

    Raises
    ------
    InvalidGeometry
        If the payload exceeds *max_data_bytes*.
    TruncatedPixelData
        If the stream ends early.
    """
    check_data_limit(geometry, max_data_bytes)

    expected = geometry.data_bytes
    payload = bytearray()
    while len(payload) < expected:
        chunk = read_bytes(stream, min(READ_CHUNK_SIZE, expected - len(payload)))
        if not chunk:
            raise TruncatedPixelData(expected, len(payload))
        payload += chunk
    return bytes(payload)


def materialize_array(raw: np.ndarray, geometry: ImageGeometry) -> np.ndarray:
    """
    Rescale already-decoded samples and shape them as a raster.

    Used directly for decompressed tile images, and by ``materialize``
    for plain payloads.  The returned array is read-only.
    """
    raw = np.asarray(raw)
    if raw.size != geometry.sample_count:
        raise InvalidGeometry(
            f"Got {raw.size} samples, geometry needs {geometry.sample_count}"
        )

    cube = apply_rescale(raw, geometry.scale, geometry.offset).reshape(
        geometry.depth, geometry.height, geometry.width
    )

    if geometry.is_series:
        raster = cube[0, 0, :]
    elif geometry.depth == 1:
        raster = cube[0]
    else:
        raster = cube

    raster = np.ascontiguousarray(raster)
    raster.setflags(write=False)
    return raster


def materialize(payload: bytes, geometry: ImageGeometry) -> np.ndarray:
    """
    Decode a big-endian payload into a float64 raster.

    Parameters
    ----------
    payload : bytes
        Exactly ``geometry.data_bytes`` bytes, as returned by ``read_payload``.
    geometry : ImageGeometry
        Resolved shape and encoding.

    Returns
    -------
    np.ndarray
        Read-only raster of shape ``geometry.shape``.
    """
    raw = np.frombuffer(
        payload, dtype=geometry.sample_kind.dtype, count=geometry.sample_count
    )
    logger.debug(
        "Materializing %d %s samples (scale=%s, offset=%s)",
        raw.size, geometry.sample_kind.name, geometry.scale, geometry.offset,
    )
    return materialize_array(raw, geometry)
