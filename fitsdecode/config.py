"""
config.py - Settings for the FITS decoder and its batch driver.

Values come from three layers, later ones winning:

    1. built-in defaults (``_DEFAULTS`` below)
    2. config.yaml at the repo root, or the file named by the
       ``FITSDECODE_CONFIG`` environment variable
    3. explicit arguments passed to ``decode_file`` / ``decode_folder``

Only the keys a file actually sets override a default; a config.yaml
that just changes ``display.cmap`` keeps every decoder limit as-is.
"""

import os
import yaml
from typing import Any, Optional

_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_CONFIG_PATH = os.path.join(_REPO_ROOT, "config.yaml")
CONFIG_ENV_VAR = "FITSDECODE_CONFIG"

_DEFAULTS: dict[str, Any] = {
    "paths": {
        "input_folder": "data/raw",
        "reports_folder": "reports",
    },
    "decoder": {
        # Cards read without seeing NAXIS1 before a header is rejected
        "max_header_lines": 360,
        # None = no ceiling on the declared pixel payload
        "max_data_bytes": None,
    },
    "display": {
        "min_extent": 100,
        "cmap": "gray",
    },
    "pipeline": {
        "max_files": None,
        "extensions": [".fits", ".fit", ".fts", ".fits.gz", ".fit.gz", ".fz"],
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Return a copy of *base* with *override* laid over it, section by section."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _check_decoder_limits(decoder: dict) -> None:
    max_lines = decoder["max_header_lines"]
    if not isinstance(max_lines, int) or max_lines < 1:
        raise ValueError(f"decoder.max_header_lines must be a positive integer, got {max_lines!r}")
    max_bytes = decoder["max_data_bytes"]
    if max_bytes is not None and (not isinstance(max_bytes, int) or max_bytes < 0):
        raise ValueError(f"decoder.max_data_bytes must be null or a non-negative integer, got {max_bytes!r}")


def load_config(config_path: Optional[str] = None) -> dict[str, Any]:
    """
    Read a YAML settings file and merge it over the built-in defaults.

    Parameters
    ----------
    config_path : str, optional
        YAML file to read.  Defaults to ``$FITSDECODE_CONFIG`` if set,
        else config.yaml at the repo root.  A missing file is not an
        error; the defaults are returned unchanged.

    Returns
    -------
    dict
        Merged settings.

    Raises
    ------
    ValueError
        If the decoder limits in the file are not sensible numbers.
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR, _CONFIG_PATH)

    user_config: dict = {}
    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            user_config = yaml.safe_load(f) or {}

    config = _deep_merge(_DEFAULTS, user_config)
    _check_decoder_limits(config["decoder"])
    return config


# Shared settings: `from fitsdecode.config import CONFIG`
CONFIG = load_config()
