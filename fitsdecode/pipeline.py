"""
pipeline.py - Batch decoding of a folder of FITS files.

Decodes every FITS file in an input folder and records, per file,
whether it decoded and what shape came out.  A file that fails to
decode is logged and counted; the batch moves on to the next one.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

from fitsdecode.config import CONFIG
from fitsdecode.decoder import DecodedImage, decode_file
from fitsdecode.errors import FitsDecodeError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class ProcessingResult:
    """Summary of a single file's decoding outcome."""
    filename: str
    success: bool
    error: Optional[str] = None
    duration_s: float = 0.0
    shape: Optional[tuple[int, ...]] = None


@dataclass
class DecodeReport:
    """Aggregate report produced at the end of a batch run."""
    total_files: int = 0
    decoded: int = 0
    failed: int = 0
    elapsed_s: float = 0.0
    results: list[ProcessingResult] = field(default_factory=list)
    images: dict[str, DecodedImage] = field(default_factory=dict, repr=False)

    def summary(self) -> str:
        lines = [
            "=" * 50,
            "DECODE SUMMARY",
            "=" * 50,
            f"Total files found    : {self.total_files}",
            f"Successfully decoded : {self.decoded}",
            f"Failed               : {self.failed}",
            f"Total time           : {self.elapsed_s:.2f}s",
        ]
        if self.failed > 0:
            lines.append("\nFailed files:")
            for r in self.results:
                if not r.success:
                    lines.append(f"  - {r.filename}: {r.error}")
        return "\n".join(lines)


def is_fits_name(filename: str, extensions: Sequence[str]) -> bool:
    name = filename.lower()
    return any(name.endswith(ext.lower()) for ext in extensions)


# ---------------------------------------------------------------------------
# Core pipeline
# ---------------------------------------------------------------------------

def decode_folder(
    input_folder: Optional[str] = None,
    max_files: Optional[int] = None,
    extensions: Optional[Sequence[str]] = None,
    keep_images: bool = False,
) -> DecodeReport:
    """
    Decode all FITS files in *input_folder*.

    Parameters
    ----------
    input_folder : str, optional
        Source directory.  Defaults to config value.
    max_files : int, optional
        Cap on the number of files to decode.  None = decode all.
    extensions : sequence of str, optional
        File name suffixes treated as FITS.  Defaults to config value.
    keep_images : bool
        Keep each DecodedImage in ``report.images`` (keyed by filename)
        for later rendering.

    Returns
    -------
    DecodeReport
        Summary of the batch run.
    """
    input_folder = input_folder or CONFIG["paths"]["input_folder"]
    max_files = max_files if max_files is not None else CONFIG["pipeline"]["max_files"]
    extensions = extensions or CONFIG["pipeline"]["extensions"]

    report = DecodeReport()
    batch_start = time.time()

    if not os.path.isdir(input_folder):
        logger.error("Input folder not found: %s", input_folder)
        return report

    files = sorted(
        f for f in os.listdir(input_folder)
        if not f.startswith(".") and is_fits_name(f, extensions)
    )

    if max_files is not None:
        files = files[:max_files]

    report.total_files = len(files)
    logger.info("Starting decode: %d files to process.", report.total_files)

    for filename in files:
        file_start = time.time()
        result = ProcessingResult(filename=filename, success=False)

        try:
            image = decode_file(os.path.join(input_folder, filename))
            result.success = True
            result.shape = image.raster.shape
            report.decoded += 1
            if keep_images:
                report.images[filename] = image
        except FitsDecodeError as exc:
            result.error = f"{type(exc).__name__}: {exc}"
            report.failed += 1
            logger.warning("Could not decode %s: %s", filename, result.error)

        result.duration_s = time.time() - file_start
        report.results.append(result)

    report.elapsed_s = time.time() - batch_start
    logger.info(report.summary())
    return report
