"""
errors.py - Typed failures raised while decoding a DICOM image.

Every failure is deterministic for a given input file, so nothing here is
retried.  The hierarchy mirrors the four ways a decode can fail:

- FormatResolutionError      the transfer syntax UID is not one we know
- MetadataError              a required attribute is absent or malformed
- UnsupportedCombinationError  the attributes are valid DICOM but this
                               decoder does not handle the combination
- NotImplementedDecodeError  the feature exists in DICOM but is not built

Callers that want to report any decode problem catch ``DicomRasterError``.
"""

from typing import Any, Optional


class DicomRasterError(Exception):
    """Base class for every error raised by dicom_raster."""


# ---------------------------------------------------------------------------
# Format resolution
# ---------------------------------------------------------------------------

class FormatResolutionError(DicomRasterError):
    pass


class UnrecognizedTransferSyntax(FormatResolutionError):
    def __init__(self, uid: str):
        self.uid = uid
        super().__init__(f"Unrecognized transfer syntax UID '{uid}'")


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

class MetadataError(DicomRasterError):
    pass


class MissingAttributeError(MetadataError):
    """A required attribute is absent, empty, or holds the wrong type."""

    keyword = "Attribute"

    def __init__(self, raw_value: Any = None):
        self.raw_value = raw_value
        if raw_value is None:
            message = f"DICOM image needs {self.keyword}"
        else:
            message = f"DICOM image has invalid {self.keyword}: {raw_value!r}"
        super().__init__(message)


class MissingRows(MissingAttributeError):
    keyword = "Rows"


class MissingColumns(MissingAttributeError):
    keyword = "Columns"


class MissingSamplesPerPixel(MissingAttributeError):
    keyword = "SamplesPerPixel"


class MissingPhotometricInterpretation(MissingAttributeError):
    keyword = "PhotometricInterpretation"


class MissingBitsAllocated(MissingAttributeError):
    keyword = "BitsAllocated"


class MissingBitsStored(MissingAttributeError):
    keyword = "BitsStored"


class MissingHighBit(MissingAttributeError):
    keyword = "HighBit"


class MissingPixelRepresentation(MissingAttributeError):
    keyword = "PixelRepresentation"


class MissingPixelData(MissingAttributeError):
    keyword = "PixelData"


class InvalidEnumeratedValue(MetadataError):
    def __init__(self, field_name: str, raw_value: Any):
        self.field_name = field_name
        self.raw_value = raw_value
        super().__init__(f"Unexpected value of {field_name}: {raw_value!r}")


class PixelSpacingParseError(MetadataError, ValueError):
    def __init__(self, raw_value: str, reason: Optional[str] = None):
        self.raw_value = raw_value
        message = f"Invalid value of Pixel Spacing: {raw_value!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Unsupported attribute combinations
# ---------------------------------------------------------------------------

class UnsupportedCombinationError(DicomRasterError):
    pass


class UnsupportedPixelDataRepresentation(UnsupportedCombinationError):
    def __init__(self, vr: str, bits_allocated: int):
        self.vr = vr
        self.bits_allocated = bits_allocated
        super().__init__(
            f"Pixel data VR {vr} requires BitsAllocated=16, got {bits_allocated}"
        )


class UnsupportedBitLayout(UnsupportedCombinationError):
    def __init__(self, high_bit: int, bits_stored: int):
        self.high_bit = high_bit
        self.bits_stored = bits_stored
        super().__init__(
            f"Unsupported combination of HighBit={high_bit} and BitsStored={bits_stored}"
        )


class UnsupportedPhotometricInterpretation(UnsupportedCombinationError):
    def __init__(self, photometric_interpretation: str):
        self.photometric_interpretation = photometric_interpretation
        super().__init__(
            f"Unsupported photometric interpretation '{photometric_interpretation}'"
        )


class UnsupportedPixelRepresentation(UnsupportedCombinationError):
    def __init__(self, pixel_representation: str):
        self.pixel_representation = pixel_representation
        super().__init__(f"Unsupported pixel representation '{pixel_representation}'")


class UnsupportedBitDepth(UnsupportedCombinationError):
    def __init__(self, bits_allocated: int):
        self.bits_allocated = bits_allocated
        super().__init__(
            f"Unsupported BitsAllocated={bits_allocated} (expected 8, 16 or 32)"
        )


class PixelDataLengthMismatch(UnsupportedCombinationError):
    def __init__(self, expected_samples: int, available_samples: int):
        self.expected_samples = expected_samples
        self.available_samples = available_samples
        super().__init__(
            f"Pixel data holds {available_samples} samples, "
            f"image geometry needs {expected_samples}"
        )


# ---------------------------------------------------------------------------
# Not yet implemented
# ---------------------------------------------------------------------------

class NotImplementedDecodeError(DicomRasterError):
    pass


class UnsupportedCompression(NotImplementedDecodeError):
    def __init__(self, compression: str):
        self.compression = compression
        super().__init__(f"Decoding {compression} compressed pixel data is not implemented")


class UnsupportedVoiLutSequence(NotImplementedDecodeError):
    def __init__(self):
        super().__init__("Not supported VOI LUT Sequence (0028,3010)")


class UnsupportedColorLayout(NotImplementedDecodeError):
    def __init__(self, photometric_interpretation: str, samples_per_pixel: int):
        self.photometric_interpretation = photometric_interpretation
        self.samples_per_pixel = samples_per_pixel
        super().__init__(
            f"Color decoding is not implemented "
            f"(PhotometricInterpretation={photometric_interpretation}, "
            f"SamplesPerPixel={samples_per_pixel})"
        )


# ---------------------------------------------------------------------------
# Display mapping
# ---------------------------------------------------------------------------

class InvalidWindowWidth(DicomRasterError, ValueError):
    def __init__(self, width: float, function: str, minimum: str):
        self.width = width
        self.function = function
        super().__init__(
            f"Window width must be {minimum} for a '{function}' windowing operation, "
            f"got width={width}."
        )
