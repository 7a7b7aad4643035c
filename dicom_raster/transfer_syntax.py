"""
transfer_syntax.py - Map a Transfer Syntax UID to compression and byte order.

The Transfer Syntax UID (0002,0010) in the file meta header tells us how the
pixel data was encoded.  Only the subset below is recognised; anything else
is refused rather than guessed.

References
----------
- DICOM PS3.5 Section 10 and Annex A: Transfer Syntax Specifications
- DICOM PS3.6 Annex A: Registry of DICOM Unique Identifiers
"""

import enum
import logging
from typing import assert_never

from dicom_raster.errors import UnrecognizedTransferSyntax

logger = logging.getLogger(__name__)


class TransferSyntax(enum.Enum):
    JPEG2000 = "JPEG2000"
    RLE = "RLE"
    JPEG_LOSSLESS = "JPEGLossless"
    JPEG_BASELINE = "JPEGBaseline"
    UNCOMPRESSED_LE = "UncompressedLE"
    UNCOMPRESSED_BE = "UncompressedBE"


class Compression(enum.Enum):
    NONE = "NONE"
    JPEG_LOSSLESS = "JPEG_LOSSLESS"
    JPEG_BASELINE = "JPEG_BASELINE"
    JPEG_2000 = "JPEG_2000"
    RLE = "RLE"


class Endianness(enum.Enum):
    LITTLE = "LITTLE_ENDIAN"
    BIG = "BIG_ENDIAN"

    @property
    def byte_order(self) -> str:
        """numpy byte-order character for this endianness."""
        return "<" if self is Endianness.LITTLE else ">"


# Exact-match table.  Each UID appears once.
TRANSFER_SYNTAX_UIDS: dict[str, TransferSyntax] = {
    "1.2.840.10008.1.2": TransferSyntax.UNCOMPRESSED_LE,        # Implicit VR Little Endian
    "1.2.840.10008.1.2.1": TransferSyntax.UNCOMPRESSED_LE,      # Explicit VR Little Endian
    "1.2.840.10008.1.2.2": TransferSyntax.UNCOMPRESSED_BE,      # Explicit VR Big Endian
    "1.2.840.10008.1.2.4.90": TransferSyntax.JPEG2000,          # JPEG 2000 Lossless
    "1.2.840.10008.1.2.4.91": TransferSyntax.JPEG2000,          # JPEG 2000
    "1.2.840.10008.1.2.5": TransferSyntax.RLE,                  # RLE Lossless
    "1.2.840.10008.1.2.4.57": TransferSyntax.JPEG_LOSSLESS,     # JPEG Lossless, Process 14
    "1.2.840.10008.1.2.4.70": TransferSyntax.JPEG_LOSSLESS,     # JPEG Lossless, SV1
    "1.2.840.10008.1.2.4.50": TransferSyntax.JPEG_BASELINE,     # JPEG Baseline (Process 1)
    "1.2.840.10008.1.2.4.51": TransferSyntax.JPEG_BASELINE,     # JPEG Extended (Process 2 & 4)
}


def resolve(uid: str) -> TransferSyntax:
    """
    Look up the transfer syntax for *uid*.

    UI values are padded to even length with a trailing NUL, so the UID is
    stripped of whitespace and NUL before the exact match.

    Raises
    ------
    UnrecognizedTransferSyntax
        If the UID is not in TRANSFER_SYNTAX_UIDS.
    """
    key = str(uid).strip().rstrip("\x00")
    try:
        transfer_syntax = TRANSFER_SYNTAX_UIDS[key]
    except KeyError:
        raise UnrecognizedTransferSyntax(key) from None
    logger.debug("Transfer syntax %s -> %s", key, transfer_syntax.name)
    return transfer_syntax


def classify(transfer_syntax: TransferSyntax) -> tuple[Compression, Endianness]:
    """Return the (compression, endianness) pair for a transfer syntax."""
    match transfer_syntax:
        case TransferSyntax.UNCOMPRESSED_BE:
            return Compression.NONE, Endianness.BIG
        case TransferSyntax.UNCOMPRESSED_LE:
            return Compression.NONE, Endianness.LITTLE
        case TransferSyntax.RLE:
            return Compression.RLE, Endianness.LITTLE
        case TransferSyntax.JPEG_LOSSLESS:
            return Compression.JPEG_LOSSLESS, Endianness.LITTLE
        case TransferSyntax.JPEG2000:
            return Compression.JPEG_2000, Endianness.LITTLE
        case TransferSyntax.JPEG_BASELINE:
            return Compression.JPEG_BASELINE, Endianness.LITTLE
        case _:
            assert_never(transfer_syntax)


def default() -> TransferSyntax:
    """Transfer syntax to assume when a file carries no UID at all."""
    return TransferSyntax.UNCOMPRESSED_LE
