"""
header.py - Split a FITS byte stream into 80-byte header cards.

A FITS header is a run of 80-byte ASCII cards terminated by an ``END``
card and padded with blanks to a multiple of 2880 bytes (one FITS
"block" = 36 cards).  The binary data of the HDU starts at the next
block boundary:

    data_offset = 2880 * ceil(line_count * 80 / 2880)

Files may be gzip-compressed; a ``.gz`` suffix on the file name selects
the gzip reader.  Bytes are decoded as ASCII only, anything outside
that range is replaced rather than reinterpreted.
"""

import gzip
import logging
import os
import zlib
from dataclasses import dataclass
from typing import BinaryIO, Optional, Union

from fitsdecode.config import CONFIG
from fitsdecode.errors import IOFailure, MalformedHeader, NotFitsFormat, TruncatedPixelData
from fitsdecode.keywords import END_KEYWORD, split_card

logger = logging.getLogger(__name__)

LINE_LENGTH = 80
BLOCK_SIZE = 2880

PRIMARY_MARKER = "SIMPLE"
EXTENSION_MARKER = "XTENSION"

_WIDTH_KEYWORDS = ("NAXIS1", "ZNAXIS1")


def padded_length(line_count: int) -> int:
    """Bytes occupied by *line_count* cards once padded to whole blocks."""
    return BLOCK_SIZE * -(-(line_count * LINE_LENGTH) // BLOCK_SIZE)


@dataclass(frozen=True)
class HeaderRecord:
    """The verbatim cards of one HDU header, ``END`` card included."""
    lines: tuple[str, ...]

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def text(self) -> str:
        return "".join(line + "\n" for line in self.lines)

    @property
    def data_offset(self) -> int:
        return padded_length(self.line_count)


def open_stream(path: Union[str, os.PathLike]) -> BinaryIO:
    """
    Open *path* for binary reading, transparently un-gzipping ``.gz`` files.

    Raises
    ------
    IOFailure
        If the file cannot be opened.
    """
    path = os.fspath(path)
    try:
        if path.lower().endswith(".gz"):
            return gzip.open(path, "rb")
        return open(path, "rb")
    except OSError as exc:
        raise IOFailure(f"Cannot open {path}: {exc}") from exc


def read_bytes(stream: BinaryIO, n: int) -> bytes:
    """Read up to *n* bytes, converting stream and gzip errors to IOFailure."""
    try:
        return stream.read(n)
    except (OSError, EOFError, zlib.error) as exc:
        raise IOFailure(f"Read failed: {exc}") from exc


def read_header(
    stream: BinaryIO,
    marker: str = PRIMARY_MARKER,
    max_lines: Optional[int] = None,
) -> HeaderRecord:
    """
    Consume header cards from *stream* up to and including ``END``.

    The stream is left positioned right after the ``END`` card; use
    ``skip_to`` to move past the block padding.

    Parameters
    ----------
    stream : BinaryIO
        Open binary stream positioned at the start of an HDU.
    marker : str
        Keyword the first card must start with: ``SIMPLE`` for the
        primary HDU, ``XTENSION`` for an extension.
    max_lines : int, optional
        Give up once this many cards have been read without an
        ``NAXIS1``/``ZNAXIS1`` card.  Defaults to the config value.

    Returns
    -------
    HeaderRecord

    Raises
    ------
    NotFitsFormat
        If the primary header does not start with ``SIMPLE``.
    MalformedHeader
        If an extension marker is wrong, the stream ends before ``END``,
        or no width turns up within *max_lines* cards.
    """
    if max_lines is None:
        max_lines = CONFIG["decoder"]["max_header_lines"]

    lines: list[str] = []
    width_seen = False
    zero_axes = False

    while True:
        raw = read_bytes(stream, LINE_LENGTH)
        if len(raw) < LINE_LENGTH:
            if not lines and marker == PRIMARY_MARKER:
                raise NotFitsFormat("File is shorter than one header card")
            raise MalformedHeader("Header ended before the END card", keyword=END_KEYWORD)

        line = raw.decode("ascii", errors="replace")
        logger.debug("%s", line)

        if not lines and not line.startswith(marker):
            if marker == PRIMARY_MARKER:
                raise NotFitsFormat(f"First card does not start with SIMPLE: {line[:30]!r}")
            raise MalformedHeader(
                f"Expected {marker} card, found {line[:30]!r}", keyword=marker
            )

        lines.append(line)
        key, value = split_card(line)
        if key == END_KEYWORD:
            break
        if key in _WIDTH_KEYWORDS:
            width_seen = True
        elif key == "NAXIS" and value == "0":
            zero_axes = True

        if len(lines) > max_lines and not (width_seen or zero_axes):
            raise MalformedHeader(
                f"No NAXIS1 found within {max_lines} header cards", keyword="NAXIS1"
            )

    return HeaderRecord(tuple(lines))


def skip_to(stream: BinaryIO, position: int, target: int) -> None:
    """Discard bytes from *position* up to *target* (the block padding)."""
    gap = target - position
    if gap <= 0:
        return
    skipped = read_bytes(stream, gap)
    if len(skipped) < gap:
        raise TruncatedPixelData(gap, len(skipped))
