"""Smoke tests for dicom_raster/pipeline.py."""

import numpy as np
import pydicom
import pytest
from pydicom.dataset import FileDataset, FileMetaDataset
from pydicom.uid import ExplicitVRBigEndian, ExplicitVRLittleEndian, ImplicitVRLittleEndian

from dicom_raster.attributes import PixelSpacing, VoiLutFunction
from dicom_raster.decoder import GrayScaleRaster, RgbRaster
from dicom_raster.errors import MissingRows, UnsupportedColorLayout
from dicom_raster.pipeline import PipelineReport, decode_dataset, decode_file, process_folder
from dicom_raster.windowing import DEFAULT_VOI_LUT_MODULE, VoiLutWindow


def _make_dataset(
    path: str = "synthetic.dcm",
    pixels: np.ndarray = None,
    photometric: str = "MONOCHROME2",
    transfer_syntax: str = ExplicitVRLittleEndian,
    **kwargs,
) -> FileDataset:
    """Build a minimal single-frame dataset; 16-bit unsigned pixels by default."""
    if pixels is None:
        pixels = np.arange(16, dtype=np.uint16).reshape(4, 4) * 100
    bits_allocated = pixels.dtype.itemsize * 8
    byte_order = ">" if transfer_syntax == ExplicitVRBigEndian else "<"

    file_meta = FileMetaDataset()
    file_meta.MediaStorageSOPClassUID = pydicom.uid.UID("1.2.840.10008.5.1.4.1.1.2")
    file_meta.MediaStorageSOPInstanceUID = pydicom.uid.generate_uid()
    file_meta.TransferSyntaxUID = transfer_syntax

    ds = FileDataset(path, {}, file_meta=file_meta, preamble=b"\0" * 128)
    ds.Modality = "CT"
    ds.Rows, ds.Columns = pixels.shape
    ds.SamplesPerPixel = 1
    ds.PhotometricInterpretation = photometric
    ds.PixelRepresentation = 0
    ds.BitsAllocated = bits_allocated
    ds.BitsStored = bits_allocated
    ds.HighBit = bits_allocated - 1
    pixel_bytes = pixels.astype(pixels.dtype.newbyteorder(byte_order)).tobytes()
    ds.add_new(0x7FE00010, "OB" if bits_allocated == 8 else "OW", pixel_bytes)

    for key, value in kwargs.items():
        setattr(ds, key, value)
    return ds


def _write_dicom(path: str, **kwargs) -> None:
    """Write a minimal valid DICOM file to *path*."""
    ds = _make_dataset(path, **kwargs)
    if ds.file_meta.TransferSyntaxUID == ExplicitVRBigEndian:
        pydicom.dcmwrite(path, ds, implicit_vr=False, little_endian=False, force_encoding=True)
    else:
        ds.save_as(path)


class TestDecodeDataset:
    def test_grayscale_image(self):
        pixels = np.arange(16, dtype=np.uint16).reshape(4, 4) * 100
        image = decode_dataset(_make_dataset(pixels=pixels))
        assert isinstance(image.raster, GrayScaleRaster)
        np.testing.assert_array_equal(image.raster.pixels, pixels)
        assert image.voi_lut == DEFAULT_VOI_LUT_MODULE
        assert image.pixel_spacing is None

    def test_window_and_spacing_from_header(self):
        ds = _make_dataset(
            WindowCenter="40", WindowWidth="400", PixelSpacing=["0.7", "0.7"],
        )
        image = decode_dataset(ds)
        assert image.voi_lut.window == VoiLutWindow(center=40, width=400)
        assert image.voi_lut.function is VoiLutFunction.LINEAR
        assert image.pixel_spacing == PixelSpacing(row=0.7, column=0.7)

    def test_images_compare_by_identity(self):
        ds = _make_dataset()
        first, second = decode_dataset(ds), decode_dataset(ds)
        assert first == first
        assert first != second

    def test_missing_rows_propagates(self):
        ds = _make_dataset()
        del ds.Rows
        with pytest.raises(MissingRows):
            decode_dataset(ds)

    def test_color_follows_override(self):
        ds = _make_dataset(photometric="RGB", SamplesPerPixel=3)
        with pytest.raises(UnsupportedColorLayout):
            decode_dataset(ds, allow_best_effort_color=False)
        image = decode_dataset(ds, allow_best_effort_color=True)
        assert isinstance(image.raster, RgbRaster)


class TestDecodeFile:
    def test_round_trip_through_disk(self, tmp_path):
        pixels = np.arange(16, dtype=np.uint16).reshape(4, 4) * 250
        path = str(tmp_path / "scan.dcm")
        _write_dicom(path, pixels=pixels, WindowCenter="500", WindowWidth="1000")

        image = decode_file(path)

        np.testing.assert_array_equal(image.raster.pixels, pixels)
        assert image.voi_lut.window == VoiLutWindow(center=500, width=1000)

    @pytest.mark.parametrize("dtype", [np.uint8, np.uint16, np.uint32])
    def test_implicit_vr_little_endian(self, tmp_path, dtype):
        # pydicom reports implicit Pixel Data as OW whatever BitsAllocated is
        pixels = np.arange(16, dtype=dtype).reshape(4, 4) * 7
        path = str(tmp_path / "implicit.dcm")
        _write_dicom(path, pixels=pixels, transfer_syntax=ImplicitVRLittleEndian)

        image = decode_file(path)

        assert image.metadata.pixel_data_vr.value == "OB"
        assert image.raster.dtype == dtype
        np.testing.assert_array_equal(image.raster.pixels, pixels)

    def test_explicit_vr_little_endian_8bit_stays_ob(self, tmp_path):
        pixels = np.arange(16, dtype=np.uint8).reshape(4, 4)
        path = str(tmp_path / "eight_bit.dcm")
        _write_dicom(path, pixels=pixels)

        image = decode_file(path)

        assert image.metadata.pixel_data_vr.value == "OB"
        np.testing.assert_array_equal(image.raster.pixels, pixels)

    def test_explicit_vr_big_endian(self, tmp_path):
        pixels = np.array([[0x0102, 0x0304], [0xA0B0, 0xFFFE]], dtype=np.uint16)
        path = str(tmp_path / "big_endian.dcm")
        _write_dicom(path, pixels=pixels, transfer_syntax=ExplicitVRBigEndian)

        with open(path, "rb") as f:
            assert pixels.astype(">u2").tobytes() in f.read()
        image = decode_file(path)

        assert image.metadata.endianness.value == "BIG_ENDIAN"
        assert image.raster.pixels.dtype.isnative
        np.testing.assert_array_equal(image.raster.pixels, pixels)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            decode_file(str(tmp_path / "absent.dcm"))


class TestProcessFolder:
    def test_missing_folder_returns_empty_report(self):
        report = process_folder(input_folder="/nonexistent/path")
        assert isinstance(report, PipelineReport)
        assert report.total_files == 0

    def test_decodes_every_file(self, tmp_path):
        _write_dicom(str(tmp_path / "scan1.dcm"))
        _write_dicom(str(tmp_path / "scan2.dcm"))

        report = process_folder(input_folder=str(tmp_path))

        assert report.total_files == 2
        assert report.decoded == 2
        assert report.failed == 0
        assert all(r.shape == (4, 4) for r in report.results)

    def test_failures_recorded_per_file(self, tmp_path):
        _write_dicom(str(tmp_path / "a_good.dcm"))
        _write_dicom(str(tmp_path / "b_inverted.dcm"), photometric="MONOCHROME1")
        (tmp_path / "c_notes.txt").write_text("not a DICOM file")

        report = process_folder(input_folder=str(tmp_path))

        assert report.total_files == 3
        assert report.decoded == 1
        assert report.failed == 2
        by_name = {r.filename: r for r in report.results}
        assert by_name["a_good.dcm"].success
        assert "UnsupportedPhotometricInterpretation" in by_name["b_inverted.dcm"].error
        assert by_name["c_notes.txt"].error.startswith("InvalidDicomError")
        assert "b_inverted.dcm" in report.summary()

    def test_max_files_limits_processing(self, tmp_path):
        for i in range(5):
            _write_dicom(str(tmp_path / f"scan{i}.dcm"))

        report = process_folder(input_folder=str(tmp_path), max_files=2)

        assert report.total_files == 2
