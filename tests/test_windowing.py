"""Tests for dicom_raster/windowing.py."""

import numpy as np
import pytest

from dicom_raster.attributes import VoiLutFunction
from dicom_raster.errors import InvalidWindowWidth
from dicom_raster.windowing import (
    DEFAULT_VOI_LUT_MODULE,
    VoiLutModule,
    VoiLutWindow,
    WindowingHint,
    WindowingOffset,
    apply_voi_lut,
    resolve_voi_lut,
)


class TestResolveVoiLut:
    def test_no_hint_gives_default(self):
        module = resolve_voi_lut(None)
        assert module.window.center == 1024
        assert module.window.width == 4096
        assert module.function is VoiLutFunction.LINEAR
        assert module == DEFAULT_VOI_LUT_MODULE

    def test_center_and_width_without_function(self):
        module = resolve_voi_lut(WindowingHint(center=200, width=400))
        assert module.window == VoiLutWindow(center=200, width=400)
        assert module.function is VoiLutFunction.LINEAR

    @pytest.mark.parametrize("name, expected", [
        ("LINEAR", VoiLutFunction.LINEAR),
        ("LINEAR_EXACT", VoiLutFunction.LINEAR_EXACT),
        ("SIGMOID", VoiLutFunction.SIGMOID),
        ("sigmoid", VoiLutFunction.SIGMOID),
    ])
    def test_function_names(self, name, expected):
        module = resolve_voi_lut(WindowingHint(center=40, width=80, function=name))
        assert module.function is expected

    def test_unknown_function_falls_back_to_linear(self):
        module = resolve_voi_lut(WindowingHint(center=40, width=80, function="CUBIC"))
        assert module.function is VoiLutFunction.LINEAR
        assert module.window == VoiLutWindow(center=40, width=80)

    def test_out_of_range_values_used_verbatim(self):
        module = resolve_voi_lut(WindowingHint(center=-50000, width=0))
        assert module.window.center == -50000
        assert module.window.width == 0

    def test_center_only_keeps_default_window(self):
        module = resolve_voi_lut(WindowingHint(center=40, function="SIGMOID"))
        assert module.window == DEFAULT_VOI_LUT_MODULE.window
        assert module.function is VoiLutFunction.SIGMOID


class TestApplyVoiLut:
    def test_output_in_zero_one_range(self):
        values = np.linspace(-1000, 5000, 200)
        for function in VoiLutFunction:
            module = VoiLutModule(VoiLutWindow(center=40, width=80), function)
            mapped = apply_voi_lut(values, module)
            assert mapped.min() >= 0.0
            assert mapped.max() <= 1.0

    def test_linear_exact_edges(self):
        module = VoiLutModule(VoiLutWindow(center=40, width=80), VoiLutFunction.LINEAR_EXACT)
        mapped = apply_voi_lut(np.array([-2000.0, 0.0, 40.0, 80.0, 5000.0]), module)
        np.testing.assert_allclose(mapped, [0.0, 0.0, 0.5, 1.0, 1.0])

    def test_linear_uses_dicom_offsets(self):
        module = VoiLutModule(VoiLutWindow(center=40, width=80), VoiLutFunction.LINEAR)
        mapped = apply_voi_lut(np.array([40.0]), module)
        assert mapped[0] == pytest.approx((40 - 39.5) / 79 + 0.5)

    def test_sigmoid_center_maps_to_half(self):
        module = VoiLutModule(VoiLutWindow(center=40, width=80), VoiLutFunction.SIGMOID)
        assert apply_voi_lut(np.array([40.0]), module)[0] == pytest.approx(0.5)

    def test_shape_preserved(self):
        pixels = np.arange(12, dtype=np.uint16).reshape(3, 4)
        assert apply_voi_lut(pixels, DEFAULT_VOI_LUT_MODULE).shape == (3, 4)

    def test_linear_width_below_one_raises(self):
        module = VoiLutModule(VoiLutWindow(center=40, width=0.5), VoiLutFunction.LINEAR)
        with pytest.raises(InvalidWindowWidth):
            apply_voi_lut(np.zeros(4), module)

    @pytest.mark.parametrize("function", [VoiLutFunction.LINEAR_EXACT, VoiLutFunction.SIGMOID])
    def test_non_positive_width_raises(self, function):
        module = VoiLutModule(VoiLutWindow(center=40, width=0), function)
        with pytest.raises(ValueError, match="Window width"):
            apply_voi_lut(np.zeros(4), module)


class TestWindowingOffset:
    def test_offset_added(self):
        module = VoiLutModule(VoiLutWindow(center=40, width=80), VoiLutFunction.SIGMOID)
        shifted = module.shifted(WindowingOffset(center=10, width=-20))
        assert shifted.window == VoiLutWindow(center=50, width=60)
        assert shifted.function is VoiLutFunction.SIGMOID

    def test_width_clamped_to_one(self):
        shifted = DEFAULT_VOI_LUT_MODULE.shifted(WindowingOffset(width=-10000))
        assert shifted.window.width == 1.0

    def test_original_unchanged(self):
        DEFAULT_VOI_LUT_MODULE.shifted(WindowingOffset(center=5))
        assert DEFAULT_VOI_LUT_MODULE.window.center == 1024
