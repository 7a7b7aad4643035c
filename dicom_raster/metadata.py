"""
metadata.py - Extract and validate the attributes needed to decode pixels.

Reads a fixed set of Image Pixel Module attributes out of a pydicom
Dataset and returns them as an immutable DicomImageMetadata.  Extraction
stops at the first missing or malformed attribute, in the order listed in
extract_metadata(), so no pixel work is ever done for a broken header.

Tags are looked up by number rather than keyword so that the set of
attributes consumed is explicit.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from pydicom.dataset import Dataset

from dicom_raster import transfer_syntax as ts
from dicom_raster.attributes import (
    PhotometricInterpretation,
    PixelDataVR,
    PixelRepresentation,
    PixelSpacing,
    PlanarConfiguration,
    VoiLutFunction,
)
from dicom_raster.errors import (
    InvalidEnumeratedValue,
    MissingAttributeError,
    MissingBitsAllocated,
    MissingBitsStored,
    MissingColumns,
    MissingHighBit,
    MissingPhotometricInterpretation,
    MissingPixelData,
    MissingPixelRepresentation,
    MissingRows,
    MissingSamplesPerPixel,
    UnsupportedVoiLutSequence,
)
from dicom_raster.windowing import WindowingHint

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tags consumed
# ---------------------------------------------------------------------------
TAG_TRANSFER_SYNTAX_UID = 0x00020010
TAG_SAMPLES_PER_PIXEL = 0x00280002
TAG_PHOTOMETRIC_INTERPRETATION = 0x00280004
TAG_PLANAR_CONFIGURATION = 0x00280006
TAG_NUMBER_OF_FRAMES = 0x00280008
TAG_ROWS = 0x00280010
TAG_COLUMNS = 0x00280011
TAG_PIXEL_SPACING = 0x00280030
TAG_BITS_ALLOCATED = 0x00280100
TAG_BITS_STORED = 0x00280101
TAG_HIGH_BIT = 0x00280102
TAG_PIXEL_REPRESENTATION = 0x00280103
TAG_WINDOW_CENTER = 0x00281050
TAG_WINDOW_WIDTH = 0x00281051
TAG_VOI_LUT_FUNCTION = 0x00281056
TAG_VOI_LUT_SEQUENCE = 0x00283010
TAG_PIXEL_DATA = 0x7FE00010

IMPLICIT_VR_LITTLE_ENDIAN = "1.2.840.10008.1.2"


@dataclass(frozen=True)
class DicomImageMetadata:
    """Everything the sample decoder needs, validated and detached from the source."""
    transfer_syntax: ts.TransferSyntax
    compression: ts.Compression
    endianness: ts.Endianness
    rows: int
    columns: int
    samples_per_pixel: int
    photometric_interpretation: PhotometricInterpretation
    planar_configuration: PlanarConfiguration
    bits_allocated: int
    bits_stored: int
    high_bit: int
    pixel_representation: PixelRepresentation
    pixel_data: bytes = field(repr=False)
    pixel_data_vr: PixelDataVR
    number_of_frames: int = 1
    windowing_hint: Optional[WindowingHint] = None


# ---------------------------------------------------------------------------
# Typed lookups
# ---------------------------------------------------------------------------

def _value(ds: Dataset, tag: int) -> Any:
    elem = ds.get(tag)
    if elem is None:
        return None
    return elem.value


def _read_uint(
    ds: Dataset,
    tag: int,
    error: type[MissingAttributeError],
    minimum: int = 1,
) -> int:
    value = _value(ds, tag)
    if value is None or value == "":
        raise error()
    # bool is an int subclass; MultiValue and str are wrong types
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise error(value)
    return int(value)


def _read_optional_str(ds: Dataset, tag: int) -> Optional[str]:
    value = _value(ds, tag)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _read_first_float(ds: Dataset, tag: int) -> Optional[float]:
    """First value of a DS element, or None if absent or unparsable."""
    elem = ds.get(tag)
    if elem is None or elem.value is None or elem.value == "":
        return None
    value = elem.value[0] if elem.VM > 1 else elem.value
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric value %r in %08X", value, tag)
        return None


# ---------------------------------------------------------------------------
# Attribute groups
# ---------------------------------------------------------------------------

def _read_transfer_syntax(ds: Dataset) -> ts.TransferSyntax:
    uid = None
    file_meta = getattr(ds, "file_meta", None)
    if file_meta is not None:
        uid = _read_optional_str(file_meta, TAG_TRANSFER_SYNTAX_UID)
    if uid is None:
        uid = _read_optional_str(ds, TAG_TRANSFER_SYNTAX_UID)
    if uid is None:
        default = ts.default()
        logger.warning("No Transfer Syntax UID; assuming %s.", default.name)
        return default
    return ts.resolve(uid)


def _read_photometric_interpretation(ds: Dataset) -> PhotometricInterpretation:
    value = _value(ds, TAG_PHOTOMETRIC_INTERPRETATION)
    if value is None or value == "":
        raise MissingPhotometricInterpretation()
    if not isinstance(value, str):
        raise MissingPhotometricInterpretation(value)
    return PhotometricInterpretation.from_value(value)


def _read_planar_configuration(ds: Dataset) -> PlanarConfiguration:
    value = _value(ds, TAG_PLANAR_CONFIGURATION)
    if value is None or value == "":
        return PlanarConfiguration.INTERLACED
    return PlanarConfiguration.from_code(value)


def _read_number_of_frames(ds: Dataset) -> int:
    value = _value(ds, TAG_NUMBER_OF_FRAMES)
    if value is None or value == "":
        return 1
    try:
        frames = int(value)
    except (TypeError, ValueError):
        raise InvalidEnumeratedValue("NumberOfFrames", value) from None
    if frames < 1:
        raise InvalidEnumeratedValue("NumberOfFrames", value)
    return frames


def _resolve_pixel_data_vr(vr: Optional[str], bits_allocated: int) -> PixelDataVR:
    if not vr:
        # Implicit VR files carry no VR on the wire
        return PixelDataVR.OB
    vr = str(vr)
    if vr == "OB or OW":
        # Unresolved ambiguous VR: PS3.5 Annex A.1 rule for implicit VR
        return PixelDataVR.OW if bits_allocated > 8 else PixelDataVR.OB
    try:
        return PixelDataVR(vr)
    except ValueError:
        raise InvalidEnumeratedValue("PixelData VR", vr) from None


def _is_implicit_vr(ds: Dataset) -> bool:
    """True when the dataset was encoded without VRs on the wire."""
    uid = None
    file_meta = getattr(ds, "file_meta", None)
    if file_meta is not None:
        uid = _read_optional_str(file_meta, TAG_TRANSFER_SYNTAX_UID)
    if uid is None:
        uid = _read_optional_str(ds, TAG_TRANSFER_SYNTAX_UID)
    if uid is not None:
        return uid.rstrip("\x00") == IMPLICIT_VR_LITTLE_ENDIAN
    # FileDataset defaults its read encoding to implicit, so this is only
    # consulted when no UID names the encoding
    return getattr(ds, "original_encoding", (None, None))[0] is True


def _read_pixel_data(ds: Dataset, bits_allocated: int) -> tuple[bytes, PixelDataVR]:
    elem = ds.get(TAG_PIXEL_DATA)
    if elem is None or elem.value is None:
        raise MissingPixelData()
    # pydicom fills in a dictionary VR for implicit files; only a VR read
    # from the wire counts
    wire_vr = None if _is_implicit_vr(ds) else elem.VR
    vr = _resolve_pixel_data_vr(wire_vr, bits_allocated)
    # Copy out so the dataset (and the file buffer behind it) can be released
    pixel_data = bytes(elem.value)
    return pixel_data, vr


def _read_windowing_hint(ds: Dataset) -> Optional[WindowingHint]:
    center = _read_first_float(ds, TAG_WINDOW_CENTER)
    width = _read_first_float(ds, TAG_WINDOW_WIDTH)
    function = _read_optional_str(ds, TAG_VOI_LUT_FUNCTION)

    if function is None and center is not None:
        function = VoiLutFunction.LINEAR.value
    if function is None:
        return None
    return WindowingHint(center=center, width=width, function=function)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_metadata(ds: Dataset) -> DicomImageMetadata:
    """
    Build a DicomImageMetadata from a pydicom Dataset.

    Attributes are read in this order, stopping at the first failure:
    transfer syntax, Rows, Columns, SamplesPerPixel,
    PhotometricInterpretation, PlanarConfiguration, BitsAllocated,
    BitsStored, HighBit, PixelRepresentation, NumberOfFrames, PixelData,
    windowing hint, VOI LUT Sequence.

    Parameters
    ----------
    ds : Dataset
        Parsed dataset, ideally a FileDataset with file meta information.
        It is only read, never modified.

    Returns
    -------
    DicomImageMetadata

    Raises
    ------
    UnrecognizedTransferSyntax
        The Transfer Syntax UID is not recognised.
    MissingAttributeError
        A required attribute is absent or holds the wrong type
        (MissingRows, MissingColumns, ...).
    InvalidEnumeratedValue
        An enumerated attribute holds a value outside its defined terms.
    UnsupportedVoiLutSequence
        The dataset defines its window through a VOI LUT Sequence.
    """
    transfer_syntax = _read_transfer_syntax(ds)
    compression, endianness = ts.classify(transfer_syntax)

    rows = _read_uint(ds, TAG_ROWS, MissingRows)
    columns = _read_uint(ds, TAG_COLUMNS, MissingColumns)
    samples_per_pixel = _read_uint(ds, TAG_SAMPLES_PER_PIXEL, MissingSamplesPerPixel)
    photometric_interpretation = _read_photometric_interpretation(ds)
    planar_configuration = _read_planar_configuration(ds)

    bits_allocated = _read_uint(ds, TAG_BITS_ALLOCATED, MissingBitsAllocated)
    bits_stored = _read_uint(ds, TAG_BITS_STORED, MissingBitsStored)
    high_bit = _read_uint(ds, TAG_HIGH_BIT, MissingHighBit, minimum=0)

    representation_code = _read_uint(
        ds, TAG_PIXEL_REPRESENTATION, MissingPixelRepresentation, minimum=0
    )
    pixel_representation = PixelRepresentation.from_code(representation_code)

    number_of_frames = _read_number_of_frames(ds)
    pixel_data, pixel_data_vr = _read_pixel_data(ds, bits_allocated)

    windowing_hint = _read_windowing_hint(ds)
    if TAG_VOI_LUT_SEQUENCE in ds:
        raise UnsupportedVoiLutSequence()

    metadata = DicomImageMetadata(
        transfer_syntax=transfer_syntax,
        compression=compression,
        endianness=endianness,
        rows=rows,
        columns=columns,
        samples_per_pixel=samples_per_pixel,
        photometric_interpretation=photometric_interpretation,
        planar_configuration=planar_configuration,
        bits_allocated=bits_allocated,
        bits_stored=bits_stored,
        high_bit=high_bit,
        pixel_representation=pixel_representation,
        pixel_data=pixel_data,
        pixel_data_vr=pixel_data_vr,
        number_of_frames=number_of_frames,
        windowing_hint=windowing_hint,
    )
    logger.debug(
        "Extracted %dx%d %s, %d-bit allocated, %d bytes of %s pixel data",
        rows, columns, photometric_interpretation.value,
        bits_allocated, len(pixel_data), pixel_data_vr.value,
    )
    return metadata


def read_pixel_spacing(ds: Dataset) -> Optional[PixelSpacing]:
    """
    Read Pixel Spacing (0028,0030), or None when the tag is absent.

    Raises
    ------
    PixelSpacingParseError
        If the tag is present but does not hold two finite numbers.
    """
    elem = ds.get(TAG_PIXEL_SPACING)
    if elem is None or elem.value is None or elem.value == "":
        return None
    value = elem.value
    if not isinstance(value, str):
        # pydicom splits DS values on backslash; put them back together
        value = "\\".join(str(v) for v in value) if elem.VM > 1 else str(value)
    return PixelSpacing.from_string(value)
