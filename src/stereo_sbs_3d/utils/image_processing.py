"""
Pixel transforms for side-by-side stereo synthesis.

Frames are handled as (height, width, channels) uint8 arrays. All operations
are vectorised over the whole frame.
"""

from __future__ import annotations

import numpy as np

from ..core.constants import CONTRAST_PIVOT, MAX_PARALLAX_DISPLACEMENT_PX, STANDARD_PUPIL_DISTANCE
from ..core.models import ColorAdjustments, Frame, SBSConversionOptions
from .stereo_math import clamp, round_half_up


def adjust_colors(
    pixels: np.ndarray,
    brightness: float = 1.0,
    contrast: float = 1.0,
    saturation: float = 1.0,
) -> np.ndarray:
    """
    Apply brightness, contrast and saturation to an RGB(A) image.

    Order matters: brightness scales, contrast pivots around 128, saturation
    blends each channel toward the per-pixel grey average. Results are
    clamped to [0, 255]. A 4th channel (alpha) is copied through untouched.

    Args:
        pixels: uint8 array of shape (H, W, 3) or (H, W, 4)
        brightness: Multiplier applied to every colour channel
        contrast: Contrast factor around the 128 midpoint
        saturation: 0 gives greyscale, 1 leaves colours unchanged

    Returns:
        New uint8 array with the same shape as ``pixels``
    """
    if pixels.ndim != 3 or pixels.shape[2] < 3:
        raise ValueError(f"Expected an RGB(A) image, got shape {pixels.shape}")

    rgb = pixels[..., :3].astype(np.float32)

    rgb *= brightness

    rgb -= CONTRAST_PIVOT
    rgb *= contrast
    rgb += CONTRAST_PIVOT

    gray = rgb.mean(axis=2, keepdims=True)
    rgb -= gray
    rgb *= saturation
    rgb += gray

    np.clip(rgb, 0.0, 255.0, out=rgb)
    np.rint(rgb, out=rgb)

    result = pixels.copy()
    result[..., :3] = rgb.astype(np.uint8)
    return result


def apply_color_adjustments(
    rgb: tuple[float, float, float],
    adjustments: ColorAdjustments,
) -> tuple[float, float, float]:
    """
    Scalar form of :func:`adjust_colors` for a single pixel.

    Examples:
        >>> apply_color_adjustments((100, 150, 200), ColorAdjustments())
        (100.0, 150.0, 200.0)
    """
    channels = [c * adjustments.brightness for c in rgb]
    channels = [CONTRAST_PIVOT + (c - CONTRAST_PIVOT) * adjustments.contrast for c in channels]
    gray = sum(channels) / 3
    channels = [gray + (c - gray) * adjustments.saturation for c in channels]
    r, g, b = (float(clamp(c, 0.0, 255.0)) for c in channels)
    return r, g, b


def adjust_frame(frame: Frame, adjustments: ColorAdjustments | None) -> Frame:
    """
    Colour-adjust an RGBA frame; neutral adjustments return the same frame.

    Raises:
        ValueError: If adjustments are requested for a non-RGBA (e.g. YUV) frame
    """
    if adjustments is None or adjustments.is_identity:
        return frame
    if frame.channels != 4:
        raise ValueError(
            f"Colour adjustments need RGBA frames, got {frame.channels} channels"
        )
    adjusted = adjust_colors(
        frame.to_array(),
        adjustments.brightness,
        adjustments.contrast,
        adjustments.saturation,
    )
    return Frame.from_array(adjusted, frame.timestamp_ms)


def calculate_shift_pixels(shift_percent: float, width: int) -> int:
    """
    Convert a shift percentage into whole pixels for a frame width.

    Examples:
        >>> calculate_shift_pixels(6.5, 1920)
        125
        >>> calculate_shift_pixels(-10, 100)
        -10
    """
    return round_half_up(shift_percent / 100.0 * width)


def create_sbs_frame(frame: Frame, shift_percent: float) -> Frame:
    """
    Build a double-width side-by-side stereo frame.

    The left half is the source unchanged. Right-half column ``x`` samples
    source column ``clamp(x + shift_pixels, 0, width - 1)``, so columns shifted
    past an edge repeat the edge column.

    Args:
        frame: Source frame
        shift_percent: Disparity shift as a percentage of width

    Returns:
        Frame with twice the source width and the source timestamp
    """
    source = frame.to_array()
    height, width, channels = source.shape

    sbs = np.empty((height, width * 2, channels), dtype=np.uint8)
    sbs[:, :width] = source

    shift_pixels = calculate_shift_pixels(shift_percent, width)
    source_columns = np.clip(np.arange(width) + shift_pixels, 0, max(width - 1, 0))
    sbs[:, width:] = source[:, source_columns]

    return Frame.from_array(sbs, frame.timestamp_ms)


def calculate_parallax_displacement(pupil_distance: float, parallax: float) -> int:
    """
    Per-eye displacement in pixels for parallax SBS conversion.

    Examples:
        >>> calculate_parallax_displacement(65, 50)
        5
        >>> calculate_parallax_displacement(78, 100)
        12
    """
    return round_half_up(
        (pupil_distance / STANDARD_PUPIL_DISTANCE) * (parallax / 100.0) * MAX_PARALLAX_DISPLACEMENT_PX
    )


def _scatter_columns(source: np.ndarray, offset: int) -> np.ndarray:
    # Each source column x lands on clamp(x + offset); when several land on the
    # same column the rightmost source column wins. Unreached columns stay zero.
    width = source.shape[1]
    result = np.zeros_like(source)
    if width == 0:
        return result
    columns = np.arange(width)
    targets = np.clip(columns + offset, 0, width - 1)
    last = np.append(targets[1:] != targets[:-1], True)
    result[:, targets[last]] = source[:, columns[last]]
    return result


def create_parallax_sbs_frame(frame: Frame, options: SBSConversionOptions) -> Frame:
    """
    Build a side-by-side frame by moving the left eye left and the right eye right.

    Both eyes are colour-adjusted copies of the source. The displacement is
    ``round(calculate_parallax_displacement(...) * separation_strength)`` pixels
    per eye. Columns past the edge are clamped onto the edge column, and
    columns no source pixel reaches are left transparent black.

    Args:
        frame: RGBA source frame
        options: Parallax, separation and colour options

    Returns:
        Frame with twice the source width and the source timestamp
    """
    if frame.channels != 4:
        raise ValueError(f"Parallax SBS conversion needs RGBA frames, got {frame.channels} channels")

    source = adjust_colors(
        frame.to_array(), options.brightness, options.contrast, options.saturation
    )
    height, width, channels = source.shape

    displacement = calculate_parallax_displacement(options.pupil_distance, options.parallax)
    offset = round_half_up(displacement * options.separation_strength)

    sbs = np.empty((height, width * 2, channels), dtype=np.uint8)
    sbs[:, :width] = _scatter_columns(source, -offset)
    sbs[:, width:] = _scatter_columns(source, offset)
    return Frame.from_array(sbs, frame.timestamp_ms)
