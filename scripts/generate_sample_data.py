"""
generate_sample_data.py - Create synthetic FITS files for an end-to-end demo.

Writes a handful of small FITS files to data/raw/ so you can run the
decoder immediately without real telescope data.  The files are written
with astropy, covering each decoding path: plain planes of several
encodings, a cube, a radio spectrum, an optical spectrum, a gzipped
file and a tile-compressed file.

Usage
-----
    python scripts/generate_sample_data.py

After running, try:
    python -c "from fitsdecode.pipeline import decode_folder; print(decode_folder().summary())"
"""

import os
import sys

import numpy as np
from astropy.io import fits

# Make sure repo root is on the path when run as a script
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _REPO_ROOT)

from fitsdecode.config import CONFIG  # noqa: E402

OUTPUT_FOLDER = os.path.join(_REPO_ROOT, CONFIG["paths"]["input_folder"])


def _star_field(size: int, seed: int) -> np.ndarray:
    """Noisy sky background with a few Gaussian stars."""
    rng = np.random.default_rng(seed)
    yy, xx = np.mgrid[0:size, 0:size]
    sky = rng.normal(1000.0, 20.0, size=(size, size))
    for _ in range(8):
        cx, cy = rng.uniform(5, size - 5, size=2)
        flux = rng.uniform(2000, 20000)
        sky += flux * np.exp(-((xx - cx) ** 2 + (yy - cy) ** 2) / (2 * 1.8 ** 2))
    return sky


def _write_int16_plane(folder: str) -> None:
    data = _star_field(128, seed=1).clip(-32768, 32767).astype(np.int16)
    hdu = fits.PrimaryHDU(data)
    hdu.header["CDELT1"] = 0.5
    hdu.header["CDELT2"] = 0.5
    hdu.header["CTYPE1"] = "ARCSEC"
    hdu.writeto(os.path.join(folder, "plane_int16.fits"), overwrite=True)


def _write_uint16_plane(folder: str) -> None:
    # astropy stores uint16 as Int16 with BZERO = 32768
    data = (_star_field(128, seed=2) * 2).clip(0, 65535).astype(np.uint16)
    fits.PrimaryHDU(data).writeto(os.path.join(folder, "plane_uint16.fits"), overwrite=True)


def _write_float32_plane(folder: str) -> None:
    data = _star_field(96, seed=3).astype(np.float32)
    fits.PrimaryHDU(data).writeto(os.path.join(folder, "plane_float32.fits"), overwrite=True)


def _write_cube(folder: str) -> None:
    cube = np.stack([_star_field(64, seed=10 + i) for i in range(5)]).astype(np.float32)
    fits.PrimaryHDU(cube).writeto(os.path.join(folder, "cube_float32.fits"), overwrite=True)


def _write_radio_spectrum(folder: str) -> None:
    """NAXIS=3 with two length-1 axes: a 1-D series around the 21 cm line."""
    channels = np.arange(512)
    line = 1.0 + 40.0 * np.exp(-((channels - 256) ** 2) / (2 * 12.0 ** 2))
    data = line.astype(np.int16).reshape(1, 1, 512)
    hdu = fits.PrimaryHDU(data)
    hdu.header["CRVAL1"] = 1.4204e9
    hdu.header["CRPIX1"] = 256.0
    hdu.header["CDELT1"] = 1.0e4
    hdu.header["CTYPE1"] = "FREQ"
    hdu.writeto(os.path.join(folder, "spectrum_radio.fits"), overwrite=True)


def _write_optical_spectrum(folder: str) -> None:
    wavelengths = np.arange(400)
    row = 500.0 - 300.0 * np.exp(-((wavelengths - 250) ** 2) / (2 * 4.0 ** 2))
    data = np.tile(row, (4, 1)).astype(np.float32)
    hdu = fits.PrimaryHDU(data)
    hdu.header["STATUS"] = "SPECTRUM"
    hdu.header["CRVAL1"] = 4.0e-7
    hdu.header["CRPIX1"] = 0.0
    hdu.header["CDELT1"] = 1.0e-9
    hdu.writeto(os.path.join(folder, "spectrum_optical.fits"), overwrite=True)


def _write_gzipped(folder: str) -> None:
    data = _star_field(64, seed=4).astype(np.float64)
    # astropy gzips transparently when the name ends in .gz
    fits.PrimaryHDU(data).writeto(os.path.join(folder, "plane_float64.fits.gz"), overwrite=True)


def _write_tile_compressed(folder: str) -> None:
    data = _star_field(128, seed=5).astype(np.int16)
    hdul = fits.HDUList([
        fits.PrimaryHDU(),
        fits.CompImageHDU(data=data, compression_type="RICE_1"),
    ])
    hdul.writeto(os.path.join(folder, "plane_rice.fits.fz"), overwrite=True)


_WRITERS = [
    (_write_int16_plane, "Int16 plane with pixel spacing"),
    (_write_uint16_plane, "UInt16 counts stored with BZERO=32768"),
    (_write_float32_plane, "Float32 plane"),
    (_write_cube, "5-plane Float32 cube"),
    (_write_radio_spectrum, "degenerate NAXIS=3 radio spectrum"),
    (_write_optical_spectrum, "STATUS='SPECTRUM' optical spectrum"),
    (_write_gzipped, "gzipped Float64 plane"),
    (_write_tile_compressed, "RICE tile-compressed Int16 plane"),
]


def generate(output_folder: str = OUTPUT_FOLDER) -> None:
    """Generate all synthetic FITS files into *output_folder*."""
    os.makedirs(output_folder, exist_ok=True)

    print(f"Writing {len(_WRITERS)} synthetic FITS files to: {output_folder}")
    print("-" * 60)

    for i, (writer, note) in enumerate(_WRITERS, start=1):
        writer(output_folder)
        print(f"  [{i:02d}/{len(_WRITERS)}] {note}")

    print("-" * 60)
    print("Done.  Decode them with:")
    print("  python scripts/run_full_pipeline.py")


if __name__ == "__main__":
    generate()
