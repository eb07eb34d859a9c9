"""
visualization.py - Turn a DecodedImage into something a human can look at.

The decoder hands back a raster in file orientation: FITS row 0 is the
bottom of the image.  Everything that only matters on screen lives
here, never in the decoder:

- flipping rows so the origin lands where a display expects it
- stretching one-row (or one-column) images to a visible height
- building a frequency or wavelength axis for 1-D spectra
- matplotlib figures for planes, stacks and spectra

All plot functions follow a consistent style and return the Figure so
callers can save or display it as needed.  None of them mutate the
image they are given.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import matplotlib.pyplot as plt
import numpy as np

from fitsdecode.config import CONFIG
from fitsdecode.decoder import DecodedImage
from fitsdecode.keywords import parse_float, parse_string
from fitsdecode.samples import SampleKind

logger = logging.getLogger(__name__)

# Consistent figure style across all plots
plt.rcParams.update({"figure.dpi": 100, "axes.titlesize": 11})

# (threshold on CRVAL1 in Hz, divisor, label), checked top to bottom
FREQUENCY_UNITS: list[tuple[float, float, str]] = [
    (2e9, 1e9, "GHz"),
    (1e9, 1e6, "MHz"),
    (1e6, 1e3, "kHz"),
]


@dataclass(frozen=True)
class Series:
    """A 1-D spectrum ready for a line plot."""
    x: np.ndarray
    y: np.ndarray
    x_label: str
    y_label: str


def _card_float(image: DecodedImage, keyword: str, default: float = 0.0) -> float:
    value = image.cards.get(keyword)
    if value is None or value == "":
        return default
    return parse_float(keyword, value)


def _linear_axis(image: DecodedImage, length: int) -> tuple[np.ndarray, float]:
    """CRVAL1 + (i - CRPIX1) * CDELT1 for i in [0, length)."""
    crval1 = _card_float(image, "CRVAL1")
    crpix1 = _card_float(image, "CRPIX1")
    cdelt1 = _card_float(image, "CDELT1")
    return crval1 + (np.arange(length, dtype=np.float64) - crpix1) * cdelt1, crval1


def display_array(image: DecodedImage, min_extent: Optional[int] = None) -> np.ndarray:
    """
    Return a vertically flipped copy of the raster for display.

    A one-row image (including a 1-D series) is repeated to *min_extent*
    rows, and a one-column image to *min_extent* columns, so that it is
    visible at all.  Stacks are flipped plane by plane and never resized.

    Parameters
    ----------
    image : DecodedImage
        Decoded image; left untouched.
    min_extent : int, optional
        Synthetic extent for degenerate axes.  Defaults to config (100).

    Returns
    -------
    np.ndarray
        2-D array, or 3-D ``(depth, rows, cols)`` for stacks.
    """
    if min_extent is None:
        min_extent = CONFIG["display"]["min_extent"]

    raster = image.raster
    if raster.ndim == 1:
        raster = raster.reshape(1, -1)

    if raster.ndim == 3:
        return np.ascontiguousarray(raster[:, ::-1, :])

    out = np.flipud(raster)
    if out.shape[0] == 1:
        out = np.repeat(out, min_extent, axis=0)
    if out.shape[1] == 1:
        out = np.repeat(out, min_extent, axis=1)
    return np.ascontiguousarray(out)


def frequency_axis(image: DecodedImage) -> Series:
    """
    Pair a 1-D series with its frequency axis.

    The axis unit is picked from CRVAL1: above 2 GHz it is shown in GHz,
    above 1 GHz in MHz, above 1 MHz in kHz, otherwise in Hz.

    Raises
    ------
    ValueError
        If *image* is not a degenerate 1-D series.
    """
    if not image.geometry.is_series:
        raise ValueError("frequency_axis needs a 1-D series (NAXIS=3, NAXIS2=NAXIS3=1)")

    y = np.array(image.raster, dtype=np.float64)
    x, crval1 = _linear_axis(image, y.size)

    divisor, unit = 1.0, "Hz"
    for threshold, div, label in FREQUENCY_UNITS:
        if crval1 > threshold:
            divisor, unit = div, label
            break

    return Series(x=x / divisor, y=y, x_label=f"Frequency ({unit})", y_label="Intensity")


def optical_spectrum(image: DecodedImage) -> Optional[Series]:
    """
    Extract an optical spectrum from a 2-D Float32 image flagged
    ``STATUS = 'SPECTRUM'``.

    The first row is used, with negative values clipped to zero.  The
    wavelength axis is converted to micrometres when CRVAL1 is below
    1e-6 (i.e. given in metres); otherwise it is left in raw units.

    Returns
    -------
    Series or None
        None when the image is not such a spectrum.
    """
    geometry = image.geometry
    status = parse_string(image.cards.get("STATUS", ""))
    if (
        status != "SPECTRUM"
        or geometry.naxis != 2
        or geometry.sample_kind is not SampleKind.FLOAT32
    ):
        return None

    y = np.clip(np.array(image.raster[0], dtype=np.float64), 0.0, None)
    x, crval1 = _linear_axis(image, y.size)
    if crval1 < 1e-6:
        x = x * 1e6
        x_label = "Wavelength (µm)"
    else:
        x_label = "Wavelength (ADU)"
    return Series(x=x, y=y, x_label=x_label, y_label="Intensity")


def plot_image(
    image: DecodedImage,
    title: Optional[str] = None,
    cmap: Optional[str] = None,
) -> plt.Figure:
    """
    Display a single plane (or a stretched 1-D series) as an image.

    Parameters
    ----------
    image : DecodedImage
        Decoded image with a 1-D or 2-D raster.
    title : str, optional
        Plot title.  Defaults to the file path.
    cmap : str, optional
        Matplotlib colour map.  Defaults to config.

    Returns
    -------
    plt.Figure
    """
    pixels = display_array(image)
    if pixels.ndim == 3:
        raise ValueError("plot_image takes a single plane; use plot_stack for cubes")

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.imshow(pixels, cmap=cmap or CONFIG["display"]["cmap"])
    ax.set_title(title or image.path or "FITS image")
    ax.axis("off")
    return fig


def plot_stack(
    image: DecodedImage,
    max_planes: int = 4,
    cmap: Optional[str] = None,
) -> plt.Figure:
    """
    Show the first *max_planes* planes of a multi-plane image side by side.

    Returns
    -------
    plt.Figure
    """
    planes = display_array(image)
    if planes.ndim != 3:
        planes = planes[np.newaxis, ...]
    count = min(len(planes), max_planes)

    fig, axes = plt.subplots(1, count, figsize=(4 * count, 4), squeeze=False)
    for i, ax in enumerate(axes[0]):
        ax.imshow(planes[i], cmap=cmap or CONFIG["display"]["cmap"])
        ax.set_title(f"Plane {i + 1}/{len(planes)}")
        ax.axis("off")

    fig.suptitle(image.path or "FITS stack", y=1.02)
    fig.tight_layout()
    return fig


def plot_series(series: Series, title: str = "Spectrum") -> plt.Figure:
    """
    Line plot of a 1-D spectrum.

    Returns
    -------
    plt.Figure
    """
    fig, ax = plt.subplots(figsize=(10, 4))
    ax.plot(series.x, series.y, linewidth=1.0)
    ax.set_title(title)
    ax.set_xlabel(series.x_label)
    ax.set_ylabel(series.y_label)
    ax.grid(True, linestyle="--", alpha=0.6)
    fig.tight_layout()
    return fig
