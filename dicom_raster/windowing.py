"""
windowing.py - VOI LUT (window/level) resolution and display mapping.

WHY THIS MATTERS
----------------
Stored pixel values usually span a much wider range than a display can
show.  A *window* picks a centre and a width out of that range and maps it
onto the full display intensity range:

    below  (center - width/2)  -> black
    above  (center + width/2)  -> white
    in between                 -> shaped by the VOI LUT Function

The VOI LUT Function (0028,1056) chooses the shape:
    LINEAR        the classic DICOM ramp (centre and width offset by 0.5 / 1)
    LINEAR_EXACT  a straight ramp exactly between the window edges
    SIGMOID       a smooth S-curve around the centre

Only linear-style windows from WindowCenter / WindowWidth are handled here.
Table based VOI LUTs (VOI LUT Sequence) are rejected during extraction.

References
----------
- DICOM PS3.3 C.11.2.1.2: Window Center and Window Width
- DICOM PS3.3 C.11.2.1.3: VOI LUT Function
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

import numpy as np

from dicom_raster.attributes import VoiLutFunction
from dicom_raster.errors import InvalidWindowWidth

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_CENTER = 1024.0
DEFAULT_WINDOW_WIDTH = 4096.0


@dataclass(frozen=True)
class VoiLutWindow:
    center: float = DEFAULT_WINDOW_CENTER
    width: float = DEFAULT_WINDOW_WIDTH

    @property
    def lower(self) -> float:
        return self.center - self.width / 2.0

    @property
    def upper(self) -> float:
        return self.center + self.width / 2.0


@dataclass(frozen=True)
class WindowingOffset:
    """A relative adjustment applied on top of a resolved window."""
    center: float = 0.0
    width: float = 0.0


@dataclass(frozen=True)
class VoiLutModule:
    window: VoiLutWindow = field(default_factory=VoiLutWindow)
    function: VoiLutFunction = VoiLutFunction.LINEAR

    def shifted(self, offset: WindowingOffset) -> "VoiLutModule":
        """Return a copy moved by *offset*; the width never drops below 1."""
        window = VoiLutWindow(
            center=self.window.center + offset.center,
            width=max(self.window.width + offset.width, 1.0),
        )
        return replace(self, window=window)


DEFAULT_VOI_LUT_MODULE = VoiLutModule()


@dataclass(frozen=True)
class WindowingHint:
    """Windowing values read from the file; any of them may be absent."""
    center: Optional[float] = None
    width: Optional[float] = None
    function: Optional[str] = None


def _resolve_function(name: Optional[str]) -> VoiLutFunction:
    if name is None:
        return VoiLutFunction.default()
    try:
        return VoiLutFunction(name.strip().upper())
    except ValueError:
        logger.warning("Unknown VOI LUT Function '%s'; using LINEAR.", name)
        return VoiLutFunction.default()


def resolve_voi_lut(hint: Optional[WindowingHint]) -> VoiLutModule:
    """
    Derive the VOI LUT module to display an image with.

    Centre and width from the file are used verbatim when both are present,
    even if they fall outside the stored sample range; windowing is a view
    transform, not a validity check.  Anything missing falls back to
    DEFAULT_VOI_LUT_MODULE.  This function never raises.

    Parameters
    ----------
    hint : WindowingHint, optional
        Values extracted from the dataset, or None if it had none.

    Returns
    -------
    VoiLutModule
    """
    if hint is None:
        logger.debug("No windowing hint; using default window.")
        return DEFAULT_VOI_LUT_MODULE

    function = _resolve_function(hint.function)

    if hint.center is not None and hint.width is not None:
        window = VoiLutWindow(center=hint.center, width=hint.width)
    else:
        logger.debug("Incomplete windowing hint %s; using default window.", hint)
        window = DEFAULT_VOI_LUT_MODULE.window

    logger.debug(
        "Resolved window: centre=%.1f, width=%.1f, function=%s",
        window.center, window.width, function.value,
    )
    return VoiLutModule(window=window, function=function)


def apply_voi_lut(pixels: np.ndarray, module: VoiLutModule) -> np.ndarray:
    """
    Map raw sample values through a VOI LUT module.

    Parameters
    ----------
    pixels : np.ndarray
        Sample values, any numeric dtype and shape.
    module : VoiLutModule
        Window and response function to apply.

    Returns
    -------
    np.ndarray
        Float64 array in [0, 1], same shape as *pixels*.

    Raises
    ------
    InvalidWindowWidth
        LINEAR needs width >= 1; LINEAR_EXACT and SIGMOID need width > 0.
    """
    center = float(module.window.center)
    width = float(module.window.width)
    values = pixels.astype(np.float64)
    function = module.function

    if function is VoiLutFunction.SIGMOID:
        if width <= 0:
            raise InvalidWindowWidth(width, function.value, "> 0")
        return 1.0 / (1.0 + np.exp(-4.0 * (values - center) / width))

    if function is VoiLutFunction.LINEAR:
        if width < 1:
            raise InvalidWindowWidth(width, function.value, ">= 1")
        # PS3.3 C.11.2.1.2.1
        center -= 0.5
        width -= 1.0
    elif width <= 0:
        raise InvalidWindowWidth(width, function.value, "> 0")

    lower = center - width / 2.0
    upper = center + width / 2.0
    out = np.empty_like(values)
    below = values <= lower
    above = values > upper
    between = ~(below | above)
    out[below] = 0.0
    out[above] = 1.0
    # LINEAR with width 1 leaves no values between the edges
    if width > 0:
        out[between] = (values[between] - center) / width + 0.5
    return np.clip(out, 0.0, 1.0)
