"""
pipeline.py - Decode DICOM files into display-ready rasters.

Wires the stages together for one dataset:

    pydicom Dataset -> extract_metadata -> decode        -> raster
                                        -> resolve_voi_lut -> VOI LUT module
                    -> read_pixel_spacing                -> pixel spacing

and runs that over a folder, recording each file's outcome in a
PipelineReport.  A single file is all-or-nothing: any DicomRasterError
aborts that file, gets recorded, and the batch moves on.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Optional

import pydicom
from pydicom.dataset import Dataset
from pydicom.errors import InvalidDicomError

from dicom_raster.attributes import PixelSpacing
from dicom_raster.config import CONFIG
from dicom_raster.decoder import DecodedRaster, decode
from dicom_raster.errors import DicomRasterError
from dicom_raster.metadata import DicomImageMetadata, extract_metadata, read_pixel_spacing
from dicom_raster.windowing import VoiLutModule, resolve_voi_lut

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class DecodedImage:
    """Everything the rendering layer needs for one image."""
    raster: DecodedRaster
    voi_lut: VoiLutModule
    pixel_spacing: Optional[PixelSpacing]
    metadata: DicomImageMetadata


@dataclass
class ProcessingResult:
    """Summary of a single file's decoding outcome."""
    filename: str
    success: bool
    error: Optional[str] = None
    shape: Optional[tuple[int, ...]] = None
    voi_lut: Optional[VoiLutModule] = None
    duration_s: float = 0.0


@dataclass
class PipelineReport:
    """Aggregate report produced at the end of a batch run."""
    total_files: int = 0
    decoded: int = 0
    failed: int = 0
    elapsed_s: float = 0.0
    results: list[ProcessingResult] = field(default_factory=list)

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


# ---------------------------------------------------------------------------
# Single image
# ---------------------------------------------------------------------------

def decode_dataset(
    ds: Dataset,
    allow_best_effort_color: Optional[bool] = None,
) -> DecodedImage:
    """
    Decode one pydicom Dataset.

    Parameters
    ----------
    ds : Dataset
        Parsed dataset.  Not modified and not referenced by the result.
    allow_best_effort_color : bool, optional
        Overrides ``decoding.allow_best_effort_color`` from the config.

    Returns
    -------
    DecodedImage

    Raises
    ------
    DicomRasterError
        Whatever stage failed first.
    """
    if allow_best_effort_color is None:
        allow_best_effort_color = CONFIG["decoding"]["allow_best_effort_color"]

    metadata = extract_metadata(ds)
    raster = decode(metadata, allow_best_effort_color=allow_best_effort_color)
    voi_lut = resolve_voi_lut(metadata.windowing_hint)
    pixel_spacing = read_pixel_spacing(ds)

    return DecodedImage(
        raster=raster,
        voi_lut=voi_lut,
        pixel_spacing=pixel_spacing,
        metadata=metadata,
    )


def decode_file(path: str, allow_best_effort_color: Optional[bool] = None) -> DecodedImage:
    """
    Read a DICOM file from disk and decode it.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    pydicom.errors.InvalidDicomError
        If the file cannot be read as DICOM.
    DicomRasterError
        If the image cannot be decoded.
    """
    ds = pydicom.dcmread(path)
    image = decode_dataset(ds, allow_best_effort_color=allow_best_effort_color)
    logger.info(
        "Decoded %s: %dx%d, window C=%.1f W=%.1f (%s)",
        os.path.basename(path), image.raster.rows, image.raster.columns,
        image.voi_lut.window.center, image.voi_lut.window.width,
        image.voi_lut.function.value,
    )
    return image


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------

def process_folder(
    input_folder: Optional[str] = None,
    max_files: Optional[int] = None,
    allow_best_effort_color: Optional[bool] = None,
) -> PipelineReport:
    """
    Decode every file in *input_folder*.

    Each file is decoded independently; a failure is recorded against that
    file and does not stop the batch.

    Parameters
    ----------
    input_folder : str, optional
        Source directory.  Defaults to config value.
    max_files : int, optional
        Cap on the number of files to decode.  None = decode all.
    allow_best_effort_color : bool, optional
        Overrides the config value for every file.

    Returns
    -------
    PipelineReport
        Summary of the batch run.
    """
    input_folder = input_folder or CONFIG["paths"]["input_folder"]
    max_files = max_files if max_files is not None else CONFIG["pipeline"]["max_files"]

    report = PipelineReport()
    batch_start = time.time()

    if not os.path.isdir(input_folder):
        logger.error("Input folder not found: %s", input_folder)
        return report

    files = sorted(
        f for f in os.listdir(input_folder) if not f.startswith(".")
    )

    if max_files is not None:
        files = files[:max_files]

    report.total_files = len(files)
    logger.info("Starting decode: %d files.", report.total_files)

    for filename in files:
        file_start = time.time()
        result = ProcessingResult(filename=filename, success=False)

        try:
            image = decode_file(
                os.path.join(input_folder, filename),
                allow_best_effort_color=allow_best_effort_color,
            )
            result.success = True
            result.shape = tuple(image.raster.pixels.shape)
            result.voi_lut = image.voi_lut
            report.decoded += 1

        except DicomRasterError as exc:
            result.error = f"{type(exc).__name__}: {exc}"
            report.failed += 1
            logger.warning("Could not decode %s: %s", filename, result.error)

        except (InvalidDicomError, OSError) as exc:
            result.error = f"{type(exc).__name__}: {exc}"
            report.failed += 1
            logger.error("Could not read %s: %s", filename, exc)

        result.duration_s = time.time() - file_start
        report.results.append(result)

    report.elapsed_s = time.time() - batch_start
    logger.info(report.summary())
    return report
