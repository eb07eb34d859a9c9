"""Tests for fitsdecode/header.py."""

import gzip
import io
import math

import pytest

from fitsdecode.errors import IOFailure, MalformedHeader, NotFitsFormat, TruncatedPixelData
from fitsdecode.header import (
    BLOCK_SIZE,
    EXTENSION_MARKER,
    LINE_LENGTH,
    HeaderRecord,
    open_stream,
    padded_length,
    read_header,
    skip_to,
)


def _card(keyword: str, value=None) -> bytes:
    """Format one 80-byte header card."""
    if value is None:
        return keyword.ljust(LINE_LENGTH).encode("ascii")
    return f"{keyword:<8}= {value:>20}".ljust(LINE_LENGTH).encode("ascii")


def _header_bytes(cards: list, end: bool = True, pad: bool = True) -> bytes:
    """Concatenate cards, optionally add END and pad to a whole block."""
    data = b"".join(_card(k, v) for k, v in cards)
    if end:
        data += _card("END")
    if pad:
        data += b" " * ((BLOCK_SIZE - len(data) % BLOCK_SIZE) % BLOCK_SIZE)
    return data


_BASIC_CARDS = [
    ("SIMPLE", "T"),
    ("BITPIX", "16"),
    ("NAXIS", "2"),
    ("NAXIS1", "4"),
    ("NAXIS2", "3"),
]


class TestPaddedLength:
    def test_single_card_fills_one_block(self):
        assert padded_length(1) == 2880

    def test_exactly_one_block(self):
        assert padded_length(36) == 2880

    def test_one_card_over_spills_into_second_block(self):
        assert padded_length(37) == 5760

    def test_matches_ceiling_formula(self):
        for n in range(1, 400):
            assert padded_length(n) == 2880 * math.ceil(n * 80 / 2880)


class TestReadHeader:
    def test_reads_until_end(self):
        stream = io.BytesIO(_header_bytes(_BASIC_CARDS))
        record = read_header(stream)
        assert record.line_count == len(_BASIC_CARDS) + 1
        assert record.lines[-1].strip() == "END"

    def test_every_line_is_80_characters(self):
        record = read_header(io.BytesIO(_header_bytes(_BASIC_CARDS)))
        assert all(len(line) == 80 for line in record.lines)

    def test_text_is_newline_terminated_lines(self):
        record = read_header(io.BytesIO(_header_bytes(_BASIC_CARDS)))
        assert record.text.count("\n") == record.line_count
        assert record.text.startswith("SIMPLE  =")

    def test_stream_left_just_after_end_card(self):
        stream = io.BytesIO(_header_bytes(_BASIC_CARDS))
        record = read_header(stream)
        assert stream.tell() == record.line_count * LINE_LENGTH

    def test_data_offset_for_long_header(self):
        cards = _BASIC_CARDS + [(f"KEY{i}", str(i)) for i in range(40)]
        record = read_header(io.BytesIO(_header_bytes(cards)))
        assert record.line_count == 46
        assert record.data_offset == 5760

    def test_missing_simple_raises_not_fits(self):
        cards = [("BITPIX", "16")] + _BASIC_CARDS[2:]
        with pytest.raises(NotFitsFormat):
            read_header(io.BytesIO(_header_bytes(cards)))

    def test_empty_stream_raises_not_fits(self):
        with pytest.raises(NotFitsFormat):
            read_header(io.BytesIO(b""))

    def test_stream_ending_before_end_card(self):
        data = _header_bytes(_BASIC_CARDS, end=False, pad=False)
        with pytest.raises(MalformedHeader, match="END"):
            read_header(io.BytesIO(data))

    def test_no_width_within_line_limit(self):
        """A header with no NAXIS1 and no END fails after 360 cards."""
        cards = [("SIMPLE", "T")] + [("COMMENT", None)] * 400
        with pytest.raises(MalformedHeader) as info:
            read_header(io.BytesIO(_header_bytes(cards, end=False)))
        assert info.value.keyword == "NAXIS1"

    def test_long_header_with_width_is_fine(self):
        cards = _BASIC_CARDS + [("HISTORY", None)] * 400
        record = read_header(io.BytesIO(_header_bytes(cards)))
        assert record.line_count == len(cards) + 1

    def test_zero_axis_header_is_exempt_from_width_limit(self):
        cards = [("SIMPLE", "T"), ("BITPIX", "8"), ("NAXIS", "0")] + [("COMMENT", None)] * 400
        record = read_header(io.BytesIO(_header_bytes(cards)))
        assert record.line_count == len(cards) + 1

    def test_custom_line_limit(self):
        cards = [("SIMPLE", "T")] + [("COMMENT", None)] * 20 + [("NAXIS1", "4")]
        with pytest.raises(MalformedHeader):
            read_header(io.BytesIO(_header_bytes(cards)), max_lines=10)

    def test_extension_needs_xtension_marker(self):
        with pytest.raises(MalformedHeader, match="XTENSION"):
            read_header(io.BytesIO(_header_bytes(_BASIC_CARDS)), marker=EXTENSION_MARKER)

    def test_extension_header(self):
        cards = [("XTENSION", "'BINTABLE'"), ("BITPIX", "8"), ("NAXIS", "2"), ("NAXIS1", "8")]
        record = read_header(io.BytesIO(_header_bytes(cards)), marker=EXTENSION_MARKER)
        assert record.lines[0].startswith("XTENSION")

    def test_non_ascii_bytes_are_replaced(self):
        data = bytearray(_header_bytes(_BASIC_CARDS + [("OBSERVER", "'X'")]))
        data[5 * 80 + 20] = 0xE9
        record = read_header(io.BytesIO(bytes(data)))
        assert "�" in record.lines[5]


class TestHeaderRecord:
    def test_is_immutable(self):
        record = HeaderRecord(("SIMPLE  =                    T".ljust(80), "END".ljust(80)))
        with pytest.raises(AttributeError):
            record.lines = ()

    def test_offset_rounds_up_to_block(self):
        record = HeaderRecord(tuple("X".ljust(80) for _ in range(37)))
        assert record.data_offset == 2 * BLOCK_SIZE


class TestOpenStream:
    def test_plain_file(self, tmp_path):
        path = tmp_path / "image.fits"
        path.write_bytes(_header_bytes(_BASIC_CARDS))
        with open_stream(path) as stream:
            assert stream.read(6) == b"SIMPLE"

    def test_gzip_detected_by_suffix(self, tmp_path):
        path = tmp_path / "image.fits.GZ"
        with gzip.open(path, "wb") as f:
            f.write(_header_bytes(_BASIC_CARDS))
        with open_stream(path) as stream:
            assert stream.read(6) == b"SIMPLE"

    def test_missing_file_raises_io_failure(self, tmp_path):
        with pytest.raises(IOFailure):
            open_stream(tmp_path / "nope.fits")

    def test_io_failure_is_an_os_error(self, tmp_path):
        with pytest.raises(OSError):
            open_stream(tmp_path / "nope.fits")

    def test_corrupt_gzip_raises_io_failure_on_read(self, tmp_path):
        path = tmp_path / "broken.fits.gz"
        path.write_bytes(b"this is not gzip data at all" * 10)
        with open_stream(path) as stream:
            with pytest.raises(IOFailure):
                read_header(stream)


class TestSkipTo:
    def test_skips_padding(self):
        stream = io.BytesIO(b" " * 100 + b"DATA")
        skip_to(stream, 0, 100)
        assert stream.read() == b"DATA"

    def test_short_padding_raises(self):
        stream = io.BytesIO(b" " * 10)
        with pytest.raises(TruncatedPixelData):
            skip_to(stream, 0, 100)

    def test_nothing_to_skip(self):
        stream = io.BytesIO(b"DATA")
        skip_to(stream, 2880, 2880)
        assert stream.read() == b"DATA"
