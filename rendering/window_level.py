"""
Window/Level Rendering

Converts raw CT voxel values to 8-bit grayscale under a window center
(level) and width.
"""

import logging
import math
from typing import Tuple, Union
import numpy as np

from config import DEFAULT_WINDOW, WindowConfig


def sanitize_window(level: float, width: float,
                    config: WindowConfig = DEFAULT_WINDOW) -> Tuple[float, float]:
    """
    Replace degenerate window parameters with displayable ones.

    Non-finite level becomes 0. A non-finite or non-positive width becomes
    the configured minimum width; any positive width is kept as given.
    """
    if level is None or not math.isfinite(level):
        logging.warning(f"Non-finite window level {level}; using 0")
        level = 0.0
    if width is None or not math.isfinite(width) or width <= 0:
        logging.warning(f"Degenerate window width {width}; using {config.min_window_width}")
        width = config.min_window_width
    return float(level), float(width)


def to_gray8(raw_value: Union[int, np.ndarray], hu_offset: int, level: float,
             width: float) -> Union[int, np.ndarray]:
    """
    Window a raw CT value into [0, 255].

    ``hu = raw - hu_offset``; ``v = (hu - (level - width/2)) * 255/width``,
    clamped.

    Args:
        raw_value: Raw voxel value or array of values
        hu_offset: Storage offset subtracted to obtain HU
        level: Window center in HU
        width: Window width in HU

    Returns:
        int for scalar input, uint8 array otherwise
    """
    level, width = sanitize_window(level, width)
    hu_min = level - width / 2.0

    hu = np.asarray(raw_value, dtype=np.float64) - hu_offset
    values = np.clip((hu - hu_min) * 255.0 / width, 0.0, 255.0)
    # Truncate like a byte cast; values are already within [0, 255]
    gray = values.astype(np.uint8)
    if gray.ndim == 0:
        return int(gray)
    return gray


def render_grayscale(slice_voxels: np.ndarray, hu_offset: int, level: float,
                     width: float) -> np.ndarray:
    """Window a full (ny, nx) slice into a uint8 raster of the same shape."""
    return to_gray8(np.asarray(slice_voxels), hu_offset, level, width)


def center_voxel(slice_voxels: np.ndarray) -> int:
    """Raw value at the center of a (ny, nx) slice."""
    height, width = slice_voxels.shape
    return int(slice_voxels[height // 2, width // 2])


def detect_hu_offset(center_raw: int, config: WindowConfig = DEFAULT_WINDOW) -> int:
    """
    Guess the storage offset from the center voxel of a slice.

    Unsigned storage puts air near 32768, so a center value above the
    threshold means values must be shifted down to HU. This is a heuristic
    fallback for sources that do not report their rescale intercept.
    """
    if center_raw > config.hu_offset_threshold:
        return config.unsigned_hu_offset
    return 0


def auto_window(center_raw: int, hu_offset: int,
                config: WindowConfig = DEFAULT_WINDOW) -> Tuple[float, float]:
    """Window centered on the center voxel with the configured default width."""
    return float(center_raw - hu_offset), float(config.auto_window_width)


def get_preset(name: str, config: WindowConfig = DEFAULT_WINDOW) -> Tuple[float, float]:
    """
    Look up a named window preset.

    Returns:
        (level, width)

    Raises:
        KeyError: If the preset does not exist
    """
    preset = config.window_presets[name]
    return float(preset["center"]), float(preset["width"])
