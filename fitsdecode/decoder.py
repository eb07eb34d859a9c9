"""
decoder.py - Decode a FITS file into a ready-to-render image.

Stages run strictly in order, one file per call:

    header.read_header      -> HeaderRecord   (verbatim cards)
    keywords.interpret      -> HeaderKeywords (typed metadata)
    geometry.resolve_*      -> ImageGeometry  (shape + encoding)
    pixels.read_payload     -> bytes
    pixels.materialize      -> float64 raster

The input stream is opened in a ``with`` block and is closed on every
exit path.  Any failure raises a ``FitsDecodeError`` subclass; a
partially built ``DecodedImage`` is never returned.  No state survives
between calls, so separate files can be decoded on separate threads.
"""

import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import BinaryIO, Mapping, Optional, Union

import numpy as np

from fitsdecode.compression import AstropyTileDecompressor, TileDecompressor
from fitsdecode.config import CONFIG
from fitsdecode.errors import InvalidGeometry
from fitsdecode.geometry import (
    ImageGeometry,
    is_compressed,
    resolve_compressed_geometry,
    resolve_geometry,
)
from fitsdecode.header import (
    EXTENSION_MARKER,
    LINE_LENGTH,
    PRIMARY_MARKER,
    HeaderRecord,
    open_stream,
    read_header,
    skip_to,
)
from fitsdecode.keywords import HeaderKeywords, interpret
from fitsdecode.pixels import check_data_limit, materialize, materialize_array, read_payload

logger = logging.getLogger(__name__)

# decode_file(max_data_bytes=FROM_CONFIG) reads the ceiling from CONFIG
FROM_CONFIG = object()


@dataclass(frozen=True)
class DecodedImage:
    """Geometry, physical-value raster and header text of one FITS image."""
    geometry: ImageGeometry
    raster: np.ndarray
    header_text: str
    data_offset: int
    path: str = ""
    cards: Mapping[str, str] = field(default_factory=dict)


def _header_end(record: HeaderRecord) -> int:
    return record.line_count * LINE_LENGTH


def _decode_compressed(
    stream: BinaryIO,
    path: str,
    primary: HeaderRecord,
    primary_keywords: HeaderKeywords,
    decompressor: TileDecompressor,
    max_header_lines: int,
    max_data_bytes: Optional[int],
) -> DecodedImage:
    skip_to(stream, _header_end(primary), primary.data_offset)
    extension = read_header(stream, EXTENSION_MARKER, max_header_lines)
    ext_keywords = interpret(extension.lines)
    geometry = resolve_compressed_geometry(ext_keywords)
    check_data_limit(geometry, max_data_bytes)

    raw = decompressor.decompress(path, 1)
    if raw.shape != (geometry.height, geometry.width):
        raise InvalidGeometry(
            f"Decompressed image has shape {raw.shape}, "
            f"header declares {(geometry.height, geometry.width)}"
        )

    cards = {**primary_keywords.cards, **ext_keywords.cards}
    return DecodedImage(
        geometry=geometry,
        raster=materialize_array(raw, geometry),
        header_text=primary.text + extension.text,
        data_offset=primary.data_offset + extension.data_offset,
        path=path,
        cards=MappingProxyType(cards),
    )


def decode_file(
    path: Union[str, os.PathLike],
    decompressor: Optional[TileDecompressor] = None,
    max_header_lines: Optional[int] = None,
    max_data_bytes: Union[int, None, object] = FROM_CONFIG,
) -> DecodedImage:
    """
    Decode the displayable image of a FITS file.

    Parameters
    ----------
    path : str or PathLike
        FITS file; a ``.gz`` suffix selects gzip decompression.
    decompressor : TileDecompressor, optional
        Codec for tile-compressed images.  Defaults to astropy.
    max_header_lines : int, optional
        Card limit for finding NAXIS1.  Defaults to config (360).
    max_data_bytes : int or None, optional
        Refuse larger payloads, compressed or not.  Defaults to the
        config value; pass None to decode without a ceiling even when
        config.yaml sets one.

    Returns
    -------
    DecodedImage

    Raises
    ------
    FitsDecodeError
        One of NotFitsFormat, MalformedHeader, UnsupportedSampleEncoding,
        InvalidGeometry, TruncatedPixelData or IOFailure.
    """
    path = os.fspath(path)
    decoder_cfg = CONFIG["decoder"]
    if max_header_lines is None:
        max_header_lines = decoder_cfg["max_header_lines"]
    if max_data_bytes is FROM_CONFIG:
        max_data_bytes = decoder_cfg["max_data_bytes"]

    with open_stream(path) as stream:
        primary = read_header(stream, PRIMARY_MARKER, max_header_lines)
        keywords = interpret(primary.lines)

        if is_compressed(keywords):
            image = _decode_compressed(
                stream, path, primary, keywords,
                decompressor or AstropyTileDecompressor(),
                max_header_lines,
                max_data_bytes,
            )
            logger.info(
                "Decoded %s (tile-compressed): %dx%d %s",
                path, image.geometry.width, image.geometry.height,
                image.geometry.sample_kind.name,
            )
            return image

        geometry = resolve_geometry(keywords)
        skip_to(stream, _header_end(primary), primary.data_offset)
        payload = read_payload(stream, geometry, max_data_bytes)

    image = DecodedImage(
        geometry=geometry,
        raster=materialize(payload, geometry),
        header_text=primary.text,
        data_offset=primary.data_offset,
        path=path,
        cards=MappingProxyType(dict(keywords.cards)),
    )
    logger.info(
        "Decoded %s: %dx%dx%d %s%s",
        path, geometry.width, geometry.height, geometry.depth,
        geometry.sample_kind.name, " (1-D series)" if geometry.is_series else "",
    )
    return image
