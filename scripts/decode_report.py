"""
decode_report.py - Decode a folder of DICOM files and print what came out.

For each file prints the raster shape and the window it would be displayed
with, or the error that stopped it.

Usage
-----
    python scripts/decode_report.py                          # decodes data/raw/
    python scripts/decode_report.py path/to/dicom/folder     # custom folder
"""

import logging
import os
import sys

# Ensure repo root is on sys.path
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _REPO_ROOT)

from dicom_raster.config import CONFIG, configure_logging  # noqa: E402
from dicom_raster.pipeline import PipelineReport, process_folder  # noqa: E402

configure_logging(CONFIG)
logger = logging.getLogger(__name__)


def print_report(report: PipelineReport) -> None:
    """Print a human-readable per-file decode report."""
    print("=" * 60)
    print("DECODE REPORT")
    print("=" * 60)
    for r in report.results:
        if r.success:
            window = r.voi_lut.window
            print(
                f"  ✓ {r.filename}: shape={r.shape} "
                f"window C={window.center:g} W={window.width:g} ({r.voi_lut.function.value})"
            )
        else:
            print(f"  ✗ {r.filename}: {r.error}")
    print()
    print(report.summary())


def main() -> None:
    if len(sys.argv) > 1:
        folder = sys.argv[1]
    else:
        folder = os.path.join(_REPO_ROOT, CONFIG["paths"]["input_folder"])

    report = process_folder(input_folder=folder)
    if report.total_files == 0:
        logger.warning("Nothing decoded from %s", folder)
    print_report(report)


if __name__ == "__main__":
    main()
