"""
attributes.py - Closed value sets for the Image Pixel and VOI LUT modules.

The string values of these enums are the DICOM defined terms and double as
the serialised form shown to users, so they must not be changed.

References
----------
- DICOM PS3.3 C.7.6.3: Image Pixel Module
- DICOM PS3.3 C.11.2: VOI LUT Module
- DICOM PS3.3 C.7.6.2: Image Plane Module (Pixel Spacing)
"""

import enum
import math
from dataclasses import dataclass
from typing import Any

from dicom_raster.errors import InvalidEnumeratedValue, PixelSpacingParseError


class PhotometricInterpretation(enum.Enum):
    MONOCHROME1 = "MONOCHROME1"
    MONOCHROME2 = "MONOCHROME2"
    PALETTE_COLOR = "PALETTE COLOR"
    RGB = "RGB"
    HSV = "HSV"
    ARGB = "ARGB"
    CMYK = "CMYK"
    YBR_FULL = "YBR_FULL"
    YBR_FULL_422 = "YBR_FULL_422"
    YBR_PARTIAL_422 = "YBR_PARTIAL_422"
    YBR_PARTIAL_420 = "YBR_PARTIAL_420"
    YBR_ICT = "YBR_ICT"
    YBR_RCT = "YBR_RCT"

    @classmethod
    def from_value(cls, value: str) -> "PhotometricInterpretation":
        try:
            return cls(value.strip())
        except ValueError:
            raise InvalidEnumeratedValue("PhotometricInterpretation", value) from None

    @property
    def is_monochrome(self) -> bool:
        return self in (PhotometricInterpretation.MONOCHROME1, PhotometricInterpretation.MONOCHROME2)


class PixelRepresentation(enum.Enum):
    UNSIGNED = "UNSIGNED"
    SIGNED = "SIGNED"

    @classmethod
    def from_code(cls, code: Any) -> "PixelRepresentation":
        if code == 0:
            return cls.UNSIGNED
        if code == 1:
            return cls.SIGNED
        raise InvalidEnumeratedValue("PixelRepresentation", code)


class PlanarConfiguration(enum.Enum):
    INTERLACED = 0  # R1G1B1 R2G2B2 ...
    SEPARATED = 1   # R1R2... G1G2... B1B2...

    @classmethod
    def from_code(cls, code: Any) -> "PlanarConfiguration":
        try:
            return cls(code)
        except ValueError:
            raise InvalidEnumeratedValue("PlanarConfiguration", code) from None


class PixelDataVR(enum.Enum):
    OB = "OB"  # other byte
    OW = "OW"  # other word


class VoiLutFunction(enum.Enum):
    LINEAR = "LINEAR"
    LINEAR_EXACT = "LINEAR_EXACT"
    SIGMOID = "SIGMOID"

    @classmethod
    def default(cls) -> "VoiLutFunction":
        return cls.LINEAR


@dataclass(frozen=True)
class PixelSpacing:
    """Physical distance in mm between row centres and column centres."""
    row: float
    column: float

    @classmethod
    def from_string(cls, value: str) -> "PixelSpacing":
        """
        Parse a backslash-delimited DS pair such as ``"0.5\\0.5"``.

        Raises
        ------
        PixelSpacingParseError
            If there are not exactly two fields, or either field is not a
            finite number.
        """
        fields = value.split("\\")
        if len(fields) != 2:
            raise PixelSpacingParseError(value, f"expected 2 fields, got {len(fields)}")
        try:
            row, column = (float(f) for f in fields)
        except ValueError:
            raise PixelSpacingParseError(value, "non-numeric field") from None
        if not (math.isfinite(row) and math.isfinite(column)):
            raise PixelSpacingParseError(value, "non-finite field")
        return cls(row=row, column=column)
