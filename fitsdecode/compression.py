"""
compression.py - Tile decompression for fpack-style compressed images.

A tile-compressed FITS file has an empty primary HDU (NAXIS = 0) followed
by a binary table extension with ``ZIMAGE = T`` whose rows hold the
compressed tiles.  Decoding the tiles (Rice, GZIP, HCOMPRESS, PLIO) is
not done here: it is delegated to a decompressor object with a single
method,

    decompress(path, hdu_index) -> numpy.ndarray

that returns the raw, *unscaled* image.  The decoder applies BSCALE and
BZERO itself so both paths share the same rescale.

The default implementation uses astropy.io.fits.  Any object with the
same method can be injected into ``decode_file``.

References
----------
- Tiled image compression convention:
  https://fits.gsfc.nasa.gov/registry/tilecompression.html
- astropy CompImageHDU:
  https://docs.astropy.org/en/stable/io/fits/api/images.html
"""

import logging
import os
from typing import Protocol, Union

import numpy as np
from astropy.io import fits
from astropy.io.fits.verify import VerifyError

from fitsdecode.errors import IOFailure, MalformedHeader

logger = logging.getLogger(__name__)


class TileDecompressor(Protocol):
    def decompress(self, path: Union[str, os.PathLike], hdu_index: int) -> np.ndarray:
        ...


class AstropyTileDecompressor:
    """Decompress a tile-compressed image HDU with astropy."""

    def decompress(self, path: Union[str, os.PathLike], hdu_index: int = 1) -> np.ndarray:
        """
        Return the raw pixel array of the compressed HDU at *hdu_index*.

        Raises
        ------
        MalformedHeader
            If that HDU is not a compressed image.
        IOFailure
            If astropy cannot open the file or decode the tiles.
        """
        path = os.fspath(path)
        try:
            with fits.open(path, do_not_scale_image_data=True, memmap=False) as hdul:
                if hdu_index >= len(hdul):
                    raise MalformedHeader(
                        f"{path} has no HDU at index {hdu_index}", keyword="XTENSION"
                    )
                hdu = hdul[hdu_index]
                if not isinstance(hdu, fits.CompImageHDU):
                    raise MalformedHeader(
                        f"HDU {hdu_index} of {path} is not a compressed image",
                        keyword="ZIMAGE",
                    )
                # Copy out before the file is closed
                data = np.array(hdu.data)
        except (OSError, ValueError, RuntimeError, VerifyError) as exc:
            raise IOFailure(f"Tile decompression failed for {path}: {exc}") from exc

        logger.debug("Decompressed HDU %d of %s: shape=%s", hdu_index, path, data.shape)
        return data
