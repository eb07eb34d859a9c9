"""
run_full_pipeline.py - End-to-end decoding demonstration.

Generates synthetic FITS data (if data/raw has no FITS files), decodes
every file, saves a rendering of each decoded image to reports/, and
prints a final summary.

Usage
-----
    python scripts/run_full_pipeline.py

To use your own data instead of generated samples, copy your FITS files
into data/raw/ first:

    cp /path/to/observations/*.fits data/raw/
    python scripts/run_full_pipeline.py
"""

import logging
import os
import sys

# Ensure repo root is on sys.path regardless of launch directory
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _REPO_ROOT)

import matplotlib
matplotlib.use("Agg")  # non-interactive backend, no display needed
import matplotlib.pyplot as plt

from fitsdecode.config import CONFIG
from fitsdecode.pipeline import decode_folder, is_fits_name
from fitsdecode.visualization import (
    frequency_axis,
    optical_spectrum,
    plot_image,
    plot_series,
    plot_stack,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)-8s %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
INPUT_FOLDER = os.path.join(_REPO_ROOT, CONFIG["paths"]["input_folder"])
REPORTS_FOLDER = os.path.join(_REPO_ROOT, CONFIG["paths"]["reports_folder"])


def _ensure_sample_data() -> None:
    """Generate synthetic data if data/raw/ has no FITS files."""
    os.makedirs(INPUT_FOLDER, exist_ok=True)
    extensions = CONFIG["pipeline"]["extensions"]
    fits_files = [f for f in os.listdir(INPUT_FOLDER) if is_fits_name(f, extensions)]
    if fits_files:
        logger.info("Found %d FITS file(s) in %s; skipping generation.", len(fits_files), INPUT_FOLDER)
        return

    logger.info("No FITS files in %s; generating samples", INPUT_FOLDER)
    from scripts.generate_sample_data import generate  # noqa: E402
    generate(INPUT_FOLDER)


def _render(filename: str, image) -> list[str]:
    """Save every rendering that applies to *image*; return the file names."""
    stem = filename.split(".")[0]
    saved = []

    figures = []
    if image.geometry.is_series:
        figures.append(("spectrum", plot_series(frequency_axis(image), title=filename)))
    elif image.geometry.depth > 1:
        figures.append(("stack", plot_stack(image)))
    else:
        figures.append(("image", plot_image(image, title=filename)))
        spectrum = optical_spectrum(image)
        if spectrum is not None:
            figures.append(("spectrum", plot_series(spectrum, title=filename)))

    for kind, fig in figures:
        out_name = f"{stem}_{kind}.png"
        fig.savefig(os.path.join(REPORTS_FOLDER, out_name), bbox_inches="tight")
        plt.close(fig)
        saved.append(out_name)
    return saved


def main() -> None:
    os.makedirs(REPORTS_FOLDER, exist_ok=True)

    # ── Step 1: Ensure sample data exists ──────────────────────────────────
    print("=" * 60)
    print("STEP 1: Prepare input data")
    print("=" * 60)
    _ensure_sample_data()
    print(f"  Input folder : {INPUT_FOLDER}")
    print()

    # ── Step 2: Decode every file ──────────────────────────────────────────
    print("=" * 60)
    print("STEP 2: Decode FITS files")
    print("=" * 60)
    report = decode_folder(input_folder=INPUT_FOLDER, keep_images=True)
    for result in report.results:
        status = f"shape={result.shape}" if result.success else f"FAILED ({result.error})"
        print(f"  {result.filename:30s} {status}")
    print()

    # ── Step 3: Render ─────────────────────────────────────────────────────
    print("=" * 60)
    print("STEP 3: Render decoded images")
    print("=" * 60)
    for filename, image in report.images.items():
        for out_name in _render(filename, image):
            print(f"  Saved: reports/{out_name}")
    print()

    print(report.summary())


if __name__ == "__main__":
    main()
