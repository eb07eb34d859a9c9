"""Tests for fitsdecode/geometry.py and fitsdecode/samples.py."""

import numpy as np
import pytest

from fitsdecode.errors import InvalidGeometry, MalformedHeader, UnsupportedSampleEncoding
from fitsdecode.geometry import (
    is_compressed,
    resolve_compressed_geometry,
    resolve_geometry,
)
from fitsdecode.keywords import HeaderKeywords
from fitsdecode.samples import SampleKind


def _keywords(*axes: int, kind: SampleKind = SampleKind.INT16, **kwargs) -> HeaderKeywords:
    """Build interpreted keywords for an image with the given NAXISn lengths."""
    return HeaderKeywords(
        sample_kind=kind,
        naxis=len(axes),
        axes={i + 1: n for i, n in enumerate(axes)},
        **kwargs,
    )


class TestSampleKind:
    @pytest.mark.parametrize(
        "bitpix, kind, width",
        [
            (8, SampleKind.UINT8, 1),
            (16, SampleKind.INT16, 2),
            (32, SampleKind.INT32, 4),
            (-32, SampleKind.FLOAT32, 4),
            (-64, SampleKind.FLOAT64, 8),
        ],
    )
    def test_from_bitpix(self, bitpix, kind, width):
        assert SampleKind.from_bitpix(bitpix) is kind
        assert kind.bytes_per_sample == width

    def test_dtypes_are_big_endian(self):
        for kind in SampleKind:
            assert kind.dtype.newbyteorder(">") == kind.dtype

    def test_uint8_is_unsigned(self):
        assert SampleKind.UINT8.dtype == np.dtype("u1")

    def test_float_flag(self):
        assert SampleKind.FLOAT32.is_float
        assert not SampleKind.INT32.is_float

    def test_unsupported(self):
        with pytest.raises(UnsupportedSampleEncoding):
            SampleKind.from_bitpix(-16)


class TestResolveGeometry:
    def test_two_dimensional(self):
        geometry = resolve_geometry(_keywords(4, 3))
        assert (geometry.width, geometry.height, geometry.depth) == (4, 3, 1)
        assert geometry.shape == (3, 4)
        assert not geometry.is_series

    def test_defaults(self):
        geometry = resolve_geometry(_keywords(4, 3))
        assert geometry.scale == 1.0
        assert geometry.offset == 0.0
        assert geometry.pixel_spacing == (1.0, 1.0, 1.0)
        assert geometry.unit is None

    def test_calibration_carried_through(self):
        kw = _keywords(4, 3, scale=2.0, offset=32768.0, spacing={1: 0.5, 3: 4.0}, unit="DEG")
        geometry = resolve_geometry(kw)
        assert geometry.scale == 2.0
        assert geometry.offset == 32768.0
        assert geometry.pixel_spacing == (0.5, 1.0, 4.0)
        assert geometry.unit == "DEG"

    def test_degenerate_series(self):
        geometry = resolve_geometry(_keywords(512, 1, 1))
        assert geometry.is_series
        assert geometry.width == 512
        assert geometry.height == 1
        assert geometry.depth == 1
        assert geometry.shape == (512,)

    def test_cube(self):
        geometry = resolve_geometry(_keywords(4, 3, 5))
        assert geometry.depth == 5
        assert geometry.shape == (5, 3, 4)
        assert not geometry.is_series

    def test_single_row_planes_are_not_a_series(self):
        geometry = resolve_geometry(_keywords(8, 1, 5))
        assert not geometry.is_series
        assert geometry.shape == (5, 1, 8)

    def test_four_axes_multiply_into_depth(self):
        geometry = resolve_geometry(_keywords(4, 3, 2, 3))
        assert geometry.depth == 6

    def test_sample_bytes(self):
        geometry = resolve_geometry(_keywords(4, 3, 2, kind=SampleKind.FLOAT64))
        assert geometry.sample_count == 24
        assert geometry.data_bytes == 192

    def test_single_axis_is_invalid(self):
        with pytest.raises(InvalidGeometry):
            resolve_geometry(_keywords(512))

    def test_zero_axes_is_not_resolved_here(self):
        kw = _keywords()
        assert is_compressed(kw)
        with pytest.raises(InvalidGeometry):
            resolve_geometry(kw)

    def test_missing_naxis2(self):
        kw = _keywords(4, 3)
        del kw.axes[2]
        with pytest.raises(MalformedHeader) as info:
            resolve_geometry(kw)
        assert info.value.keyword == "NAXIS2"

    def test_missing_naxis(self):
        kw = _keywords(4, 3)
        kw.naxis = None
        with pytest.raises(MalformedHeader, match="NAXIS"):
            resolve_geometry(kw)

    def test_missing_bitpix(self):
        kw = _keywords(4, 3)
        kw.sample_kind = None
        with pytest.raises(MalformedHeader, match="BITPIX"):
            resolve_geometry(kw)

    @pytest.mark.parametrize("axes", [(-4, 3), (4, -3), (0, 3), (4, 0), (4, 3, 0)])
    def test_non_positive_dimensions(self, axes):
        with pytest.raises(InvalidGeometry):
            resolve_geometry(_keywords(*axes))


class TestResolveCompressedGeometry:
    def _compressed(self, **kwargs) -> HeaderKeywords:
        fields = dict(zimage=True, zsample_kind=SampleKind.INT16, znaxes={1: 300, 2: 200})
        fields.update(kwargs)
        return HeaderKeywords(sample_kind=SampleKind.UINT8, naxis=2, axes={1: 8, 2: 25}, **fields)

    def test_uses_znaxis(self):
        geometry = resolve_compressed_geometry(self._compressed())
        assert (geometry.width, geometry.height, geometry.depth) == (300, 200, 1)
        assert geometry.sample_kind is SampleKind.INT16
        assert geometry.compressed

    def test_requires_zimage(self):
        with pytest.raises(MalformedHeader, match="no displayable image"):
            resolve_compressed_geometry(self._compressed(zimage=False))

    def test_requires_znaxis2(self):
        with pytest.raises(MalformedHeader) as info:
            resolve_compressed_geometry(self._compressed(znaxes={1: 300}))
        assert info.value.keyword == "ZNAXIS2"

    def test_requires_zbitpix(self):
        with pytest.raises(MalformedHeader, match="ZBITPIX"):
            resolve_compressed_geometry(self._compressed(zsample_kind=None))

    def test_negative_tile_size(self):
        with pytest.raises(InvalidGeometry):
            resolve_compressed_geometry(self._compressed(znaxes={1: -1, 2: 200}))
