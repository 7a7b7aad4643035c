"""
generate_sample_data.py - Create synthetic DICOM files for a decode demo.

Writes a handful of small DICOM files to data/raw/ covering the cases the
decoder accepts and the ones it refuses, so the batch report shows both.

Usage
-----
    python scripts/generate_sample_data.py

After running, try:
    python scripts/decode_report.py
"""

import os
import sys

import numpy as np
import pydicom
from pydicom.dataset import FileDataset, FileMetaDataset
from pydicom.uid import ExplicitVRBigEndian, ExplicitVRLittleEndian

# Make sure repo root is on the path when run as a script
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _REPO_ROOT)

from dicom_raster.config import CONFIG  # noqa: E402 — import after path fix

OUTPUT_FOLDER = os.path.join(_REPO_ROOT, CONFIG["paths"]["input_folder"])


# ---------------------------------------------------------------------------
# Synthetic image profiles
# ---------------------------------------------------------------------------
_SAMPLE_PROFILES = [
    # (filename_stem, transfer_syntax, bits_allocated, photometric, window, note)
    ("mono2_le_16", ExplicitVRLittleEndian, 16, "MONOCHROME2", (1040, 400), "decodes"),
    ("mono2_be_16", ExplicitVRBigEndian, 16, "MONOCHROME2", (1040, 400), "decodes, byte-swapped"),
    ("mono2_le_8", ExplicitVRLittleEndian, 8, "MONOCHROME2", None, "decodes, default window"),
    ("mono1_le_16", ExplicitVRLittleEndian, 16, "MONOCHROME1", None, "refused: MONOCHROME1"),
]


def _make_dicom(
    path: str,
    transfer_syntax: str,
    bits_allocated: int,
    photometric: str,
    window,
    size: int = 64,
    seed: int = 42,
) -> None:
    """
    Write a single synthetic DICOM file.

    Pixel values are drawn from a Normal distribution, then a bright square
    is added so the window has some contrast to work with.
    """
    rng = np.random.default_rng(seed)
    max_value = 2 ** bits_allocated - 1
    sample_type = np.uint8 if bits_allocated == 8 else np.uint16

    pixels = rng.normal(max_value / 4, max_value / 16, size=(size, size))
    pixels = pixels.clip(0, max_value).astype(sample_type)
    sq = size // 4
    pixels[sq : sq * 2, sq : sq * 2] = max_value // 2

    if transfer_syntax == ExplicitVRBigEndian:
        pixel_bytes = pixels.astype(pixels.dtype.newbyteorder(">")).tobytes()
    else:
        pixel_bytes = pixels.astype(pixels.dtype.newbyteorder("<")).tobytes()

    file_meta = FileMetaDataset()
    file_meta.MediaStorageSOPClassUID = pydicom.uid.UID("1.2.840.10008.5.1.4.1.1.2")
    file_meta.MediaStorageSOPInstanceUID = pydicom.uid.generate_uid()
    file_meta.TransferSyntaxUID = transfer_syntax

    ds = FileDataset(path, {}, file_meta=file_meta, preamble=b"\0" * 128)
    ds.Modality = "CT"
    ds.PixelSpacing = ["0.5", "0.5"]
    if window is not None:
        ds.WindowCenter, ds.WindowWidth = window

    ds.Rows = size
    ds.Columns = size
    ds.SamplesPerPixel = 1
    ds.PhotometricInterpretation = photometric
    ds.PixelRepresentation = 0
    ds.BitsAllocated = bits_allocated
    ds.BitsStored = bits_allocated
    ds.HighBit = bits_allocated - 1
    # explicit VR; an ambiguous one is resolved to OW when save_as() converts
    ds.add_new(0x7FE00010, "OB" if bits_allocated == 8 else "OW", pixel_bytes)

    if transfer_syntax == ExplicitVRBigEndian:
        # save_as() will not switch a dataset between byte orders
        pydicom.dcmwrite(path, ds, implicit_vr=False, little_endian=False, force_encoding=True)
    else:
        ds.save_as(path)


def generate(output_folder: str = OUTPUT_FOLDER) -> None:
    """Generate all synthetic DICOM files into *output_folder*."""
    os.makedirs(output_folder, exist_ok=True)

    print(f"Writing {len(_SAMPLE_PROFILES)} synthetic DICOM files to: {output_folder}")
    print("-" * 60)

    for i, (stem, syntax, bits, photometric, window, note) in enumerate(_SAMPLE_PROFILES, start=1):
        filename = f"{stem}.dcm"
        _make_dicom(
            path=os.path.join(output_folder, filename),
            transfer_syntax=syntax,
            bits_allocated=bits,
            photometric=photometric,
            window=window,
            seed=42 + i,
        )
        print(f"  [{i:02d}/{len(_SAMPLE_PROFILES)}] {filename}  ({note})")

    print("-" * 60)
    print("Done.  Decode them with:")
    print("  python scripts/decode_report.py")


if __name__ == "__main__":
    generate()
