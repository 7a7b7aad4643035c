"""
decoder.py - Turn validated metadata and raw pixel bytes into a raster.

Only uncompressed MONOCHROME2 images with unsigned samples are decoded.
Each precondition is checked in a fixed order and the first one that fails
raises; there is no partial or best-guess output on the grayscale path.

The raw bytes are always copied into a freshly allocated array in the
machine's native byte order.  Big-endian sources are byte-swapped during
that copy.

No rescale, masking of unused high bits, or windowing is applied here.
Windowing is done at display time by dicom_raster.windowing.
"""

import logging
import sys
from dataclasses import dataclass, field
from typing import Union, assert_never

import numpy as np

from dicom_raster.attributes import (
    PhotometricInterpretation,
    PixelDataVR,
    PixelRepresentation,
)
from dicom_raster.errors import (
    PixelDataLengthMismatch,
    UnsupportedBitDepth,
    UnsupportedBitLayout,
    UnsupportedColorLayout,
    UnsupportedCompression,
    UnsupportedPhotometricInterpretation,
    UnsupportedPixelDataRepresentation,
    UnsupportedPixelRepresentation,
)
from dicom_raster.metadata import DicomImageMetadata
from dicom_raster.transfer_syntax import Compression, Endianness

logger = logging.getLogger(__name__)

_NATIVE_BYTE_ORDER = "<" if sys.byteorder == "little" else ">"

# BitsAllocated -> element type of the sample buffer
SAMPLE_TYPES: dict[int, type[np.unsignedinteger]] = {
    8: np.uint8,
    16: np.uint16,
    32: np.uint32,
}


@dataclass(frozen=True, eq=False)
class GrayScaleRaster:
    rows: int
    columns: int
    pixels: np.ndarray = field(repr=False)

    @property
    def dtype(self) -> np.dtype:
        return self.pixels.dtype


@dataclass(frozen=True, eq=False)
class RgbRaster:
    """Packed 32-bit pixels.  Only produced by the best-effort color path."""
    rows: int
    columns: int
    pixels: np.ndarray = field(repr=False)


DecodedRaster = Union[GrayScaleRaster, RgbRaster]


def _read_samples(
    data: bytes,
    sample_type: type[np.unsignedinteger],
    endianness: Endianness,
    count: int,
) -> np.ndarray:
    """Copy *count* samples of *sample_type* out of *data* into native order."""
    source_type = np.dtype(sample_type).newbyteorder(endianness.byte_order)
    available = len(data) // source_type.itemsize
    if available < count:
        raise PixelDataLengthMismatch(count, available)

    if source_type.itemsize > 1 and endianness.byte_order != _NATIVE_BYTE_ORDER:
        logger.debug("Byte-swapping %d %s samples from %s", count, source_type, endianness.value)

    # frombuffer aliases *data*; astype makes the owned native-order copy
    samples = np.frombuffer(data, dtype=source_type, count=count)
    return samples.astype(sample_type, copy=True)


def _check_compression(compression: Compression) -> None:
    match compression:
        case Compression.NONE:
            return
        case (
            Compression.JPEG_LOSSLESS
            | Compression.JPEG_BASELINE
            | Compression.JPEG_2000
            | Compression.RLE
        ):
            raise UnsupportedCompression(compression.value)
        case _:
            assert_never(compression)


def decode_grayscale(metadata: DicomImageMetadata) -> GrayScaleRaster:
    """
    Decode a single-sample monochrome image into a GrayScaleRaster.

    Checks, in order: pixel data VR against BitsAllocated, HighBit against
    BitsStored, MONOCHROME1 rejection, signed rejection, BitsAllocated in
    {8, 16, 32}, and enough pixel data for the image geometry.

    Parameters
    ----------
    metadata : DicomImageMetadata
        Metadata for an uncompressed image with SamplesPerPixel == 1.

    Returns
    -------
    GrayScaleRaster
        Pixels shaped (rows, columns), or (frames, rows, columns) for
        multi-frame images, with dtype uint8/uint16/uint32.
    """
    photometric = metadata.photometric_interpretation
    if not photometric.is_monochrome or metadata.samples_per_pixel != 1:
        raise UnsupportedPhotometricInterpretation(photometric.value)

    if metadata.pixel_data_vr is PixelDataVR.OW and metadata.bits_allocated != 16:
        raise UnsupportedPixelDataRepresentation(
            metadata.pixel_data_vr.value, metadata.bits_allocated
        )

    if metadata.high_bit + 1 != metadata.bits_stored:
        raise UnsupportedBitLayout(metadata.high_bit, metadata.bits_stored)

    # MONOCHROME1 stores inverted intensities
    if photometric is PhotometricInterpretation.MONOCHROME1:
        raise UnsupportedPhotometricInterpretation(photometric.value)

    if metadata.pixel_representation is PixelRepresentation.SIGNED:
        raise UnsupportedPixelRepresentation(metadata.pixel_representation.value)

    sample_type = SAMPLE_TYPES.get(metadata.bits_allocated)
    if sample_type is None:
        raise UnsupportedBitDepth(metadata.bits_allocated)

    frames = metadata.number_of_frames
    count = metadata.rows * metadata.columns * frames
    pixels = _read_samples(metadata.pixel_data, sample_type, metadata.endianness, count)

    if frames > 1:
        pixels = pixels.reshape(frames, metadata.rows, metadata.columns)
    else:
        pixels = pixels.reshape(metadata.rows, metadata.columns)
    pixels.flags.writeable = False

    logger.debug("Decoded grayscale raster %s %s", pixels.shape, pixels.dtype)
    return GrayScaleRaster(rows=metadata.rows, columns=metadata.columns, pixels=pixels)


def decode_color(metadata: DicomImageMetadata, best_effort: bool = False) -> RgbRaster:
    """
    Decode a color (or otherwise non-grayscale) image.

    A correct color decode has to honour PlanarConfiguration, the
    per-channel bit depth and signedness.  None of that is implemented, so
    this raises UnsupportedColorLayout by default.

    With ``best_effort=True`` the pixel data is reinterpreted as packed
    32-bit pixels without looking at any of those attributes.  The result
    is structurally wrong for most real images and is only meant for
    previews.
    """
    if not best_effort:
        raise UnsupportedColorLayout(
            metadata.photometric_interpretation.value, metadata.samples_per_pixel
        )

    logger.warning(
        "Best-effort color decode of %s image: planar configuration, bit depth "
        "and pixel representation are ignored.",
        metadata.photometric_interpretation.value,
    )
    count = len(metadata.pixel_data) // 4
    pixels = _read_samples(metadata.pixel_data, np.uint32, metadata.endianness, count)
    pixels.flags.writeable = False
    return RgbRaster(rows=metadata.rows, columns=metadata.columns, pixels=pixels)


def decode(metadata: DicomImageMetadata, allow_best_effort_color: bool = False) -> DecodedRaster:
    """
    Decode pixel data into a DecodedRaster.

    Raises
    ------
    UnsupportedCompression
        The transfer syntax is compressed; entropy decoding is not built.
    UnsupportedCombinationError
        Any grayscale precondition fails (see decode_grayscale).
    UnsupportedColorLayout
        The image is not single-sample monochrome and best-effort color
        decoding was not requested.
    """
    _check_compression(metadata.compression)

    if metadata.photometric_interpretation.is_monochrome and metadata.samples_per_pixel == 1:
        return decode_grayscale(metadata)
    return decode_color(metadata, best_effort=allow_best_effort_color)
