"""
keywords.py - Interpret FITS header cards into typed image metadata.

A header card is an 80-column line of the form

    KEYWORD = VALUE / COMMENT

The keyword is everything before the first ``=``; the value runs up to
an inline ``/`` comment.  Quoted strings are scanned to their closing
quote first so that values such as ``'km/s'`` survive intact.  Cards
without ``=`` (``COMMENT``, ``HISTORY``, ``END``, blank filler) have an
empty value.

Only the keywords in ``KEYWORD_TABLE`` (plus the indexed ``NAXISn``,
``ZNAXISn`` and ``CDELTn`` families) feed structured metadata.  Every
valued card, recognised or not, is kept in ``HeaderKeywords.cards`` so
renderers can look up extras like ``CRVAL1`` or ``STATUS``.

References
----------
- FITS Standard 4.0, section 4 (header cards):
  https://fits.gsfc.nasa.gov/standard40/fits_standard40aa-le.pdf
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from fitsdecode.errors import MalformedHeader
from fitsdecode.samples import SampleKind

logger = logging.getLogger(__name__)

END_KEYWORD = "END"

_INDEXED_KEYWORD = re.compile(r"^(NAXIS|ZNAXIS|CDELT)(\d+)$")


@dataclass
class HeaderKeywords:
    """Structured metadata accumulated from one HDU header."""
    sample_kind: Optional[SampleKind] = None
    naxis: Optional[int] = None
    axes: dict[int, int] = field(default_factory=dict)
    scale: float = 1.0
    offset: float = 0.0
    spacing: dict[int, float] = field(default_factory=dict)
    unit: Optional[str] = None
    zimage: bool = False
    zsample_kind: Optional[SampleKind] = None
    znaxes: dict[int, int] = field(default_factory=dict)
    cards: dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Card splitting and value parsing
# ---------------------------------------------------------------------------

def _end_of_quoted(text: str, start: int) -> int:
    """Index just past the closing quote of a string opening at *start*."""
    pos = start + 1
    while True:
        pos = text.find("'", pos)
        if pos < 0:
            return len(text)
        # '' is an escaped quote inside the string
        if text[pos + 1:pos + 2] == "'":
            pos += 2
            continue
        return pos + 1


def split_card(line: str) -> tuple[str, str]:
    """
    Split one header line into a trimmed ``(keyword, value)`` pair.

    Parameters
    ----------
    line : str
        An 80-character header card.

    Returns
    -------
    tuple[str, str]
        The keyword and its value with any inline comment removed.
        The value is empty when the card has no ``=``.
    """
    index = line.find("=")
    if index < 0:
        return line.strip(), ""

    key = line[:index].strip()
    rest = line[index + 1:]

    search_from = 0
    quote = rest.find("'")
    if quote >= 0 and rest[:quote].strip() == "":
        search_from = _end_of_quoted(rest, quote)

    comment = rest.find("/", search_from)
    if comment < 0:
        comment = len(rest)
    return key, rest[:comment].strip()


def parse_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise MalformedHeader(
            f"{key} must be an integer, got {value!r}", keyword=key
        ) from exc


def parse_float(key: str, value: str) -> float:
    # FITS allows Fortran-style 'D' exponents: 1.5D+03
    try:
        return float(value.replace("D", "E").replace("d", "e"))
    except ValueError as exc:
        raise MalformedHeader(
            f"{key} must be a number, got {value!r}", keyword=key
        ) from exc


def parse_string(value: str) -> str:
    """Strip FITS string quoting: ``'DEG     '`` -> ``DEG``."""
    if value.startswith("'"):
        end = _end_of_quoted(value, 0)
        inner = value[1:end - 1] if value[end - 1:end] == "'" else value[1:end]
        return inner.replace("''", "'").rstrip()
    return value


def parse_logical(value: str) -> bool:
    return value.strip().upper() == "T"


# ---------------------------------------------------------------------------
# Keyword table
# ---------------------------------------------------------------------------

def _set_bitpix(kw: HeaderKeywords, key: str, value: str) -> None:
    kw.sample_kind = SampleKind.from_bitpix(parse_int(key, value))


def _set_zbitpix(kw: HeaderKeywords, key: str, value: str) -> None:
    kw.zsample_kind = SampleKind.from_bitpix(parse_int(key, value))


def _set_naxis(kw: HeaderKeywords, key: str, value: str) -> None:
    kw.naxis = parse_int(key, value)


def _set_scale(kw: HeaderKeywords, key: str, value: str) -> None:
    kw.scale = parse_float(key, value)


def _set_offset(kw: HeaderKeywords, key: str, value: str) -> None:
    kw.offset = parse_float(key, value)


def _set_unit(kw: HeaderKeywords, key: str, value: str) -> None:
    kw.unit = parse_string(value)


def _set_zimage(kw: HeaderKeywords, key: str, value: str) -> None:
    kw.zimage = parse_logical(value)


KEYWORD_TABLE: dict[str, Callable[[HeaderKeywords, str, str], None]] = {
    "BITPIX": _set_bitpix,
    "NAXIS": _set_naxis,
    "BSCALE": _set_scale,
    "BZERO": _set_offset,
    "CTYPE1": _set_unit,
    "ZIMAGE": _set_zimage,
    "ZBITPIX": _set_zbitpix,
}


def _set_indexed(kw: HeaderKeywords, key: str, value: str) -> bool:
    match = _INDEXED_KEYWORD.match(key)
    if match is None:
        return False
    family, axis = match.group(1), int(match.group(2))
    if family == "NAXIS":
        kw.axes[axis] = parse_int(key, value)
    elif family == "ZNAXIS":
        kw.znaxes[axis] = parse_int(key, value)
    else:
        kw.spacing[axis] = parse_float(key, value)
    return True


def interpret_card(kw: HeaderKeywords, line: str) -> bool:
    """
    Apply one header line to *kw*.

    Returns
    -------
    bool
        False once the ``END`` card is reached, True otherwise.
    """
    key, value = split_card(line)
    if key == END_KEYWORD:
        return False
    if "=" in line:
        kw.cards[key] = value

    handler = KEYWORD_TABLE.get(key)
    if handler is not None:
        handler(kw, key, value)
    else:
        _set_indexed(kw, key, value)
    return True


def interpret(lines: Iterable[str]) -> HeaderKeywords:
    """
    Interpret a sequence of header lines into ``HeaderKeywords``.

    Later occurrences of a keyword override earlier ones.

    Raises
    ------
    MalformedHeader
        If a numeric keyword carries a non-numeric value.
    UnsupportedSampleEncoding
        If BITPIX or ZBITPIX is not a supported encoding.
    """
    kw = HeaderKeywords()
    for line in lines:
        if not interpret_card(kw, line):
            break
    logger.debug(
        "Interpreted header: NAXIS=%s axes=%s kind=%s scale=%s offset=%s",
        kw.naxis, kw.axes, kw.sample_kind, kw.scale, kw.offset,
    )
    return kw
