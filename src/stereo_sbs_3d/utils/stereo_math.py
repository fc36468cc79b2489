"""
Pure viewer-geometry functions for stereo conversion.

This module contains ONLY pure functions with no side effects:
- Disparity shift from pupil and convergence distances
- Pupil-distance helpers and option validation
- Deterministic output for given inputs
"""

from __future__ import annotations

import math

from ..core.constants import (
    BASE_PUPIL_SHIFT_RATIO,
    COMFORTABLE_PUPIL_DISTANCE_RANGE,
    CONVERGENCE_DISTANCE_RANGE,
    DEFAULT_VIEWING_DISTANCE_CM,
    ERROR_MESSAGES,
    MAX_SHIFT_PERCENT,
    OPTIMAL_VIEW_ANGLE_TAN,
    PUPIL_DISTANCE_RANGE,
    STANDARD_PUPIL_DISTANCE,
    VR_DEVICE_PUPIL_DISTANCES,
)
from ..core.models import ConversionOptions, ValidationReport


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves going towards positive infinity.

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(-2.5)
        -2
    """
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def compute_shift(pupil_distance: float, convergence_distance: float) -> float:
    """
    Compute the right-eye disparity shift as a percentage of frame width.

    Args:
        pupil_distance: Interpupillary distance in mm
        convergence_distance: Convergence distance in mm (must be non-zero)

    Returns:
        Shift percentage clamped to [-10, 10]

    Examples:
        >>> compute_shift(65, 1000)
        6.5
        >>> compute_shift(80, 500)
        10.0
    """
    shift = (pupil_distance / convergence_distance) * 100.0
    return clamp(shift, -MAX_SHIFT_PERCENT, MAX_SHIFT_PERCENT)


def optimal_pupil_distance(screen_width_mm: float, viewing_distance_mm: float) -> float:
    """
    Estimate a comfortable pupil distance for a screen.

    Uses a 30 degree viewing angle. The viewing distance is accepted for a
    future field-of-view refinement and does not change the result yet.

    Args:
        screen_width_mm: Physical screen width in mm
        viewing_distance_mm: Eye to screen distance in mm

    Returns:
        Pupil distance in mm, clamped to [50, 80]

    Examples:
        >>> round(optimal_pupil_distance(200, 600), 2)
        57.74
        >>> optimal_pupil_distance(100, 600)
        50.0
    """
    optimal = screen_width_mm * OPTIMAL_VIEW_ANGLE_TAN / 2
    low, high = PUPIL_DISTANCE_RANGE
    return float(clamp(optimal, low, high))


def validate_options(options: ConversionOptions) -> ValidationReport:
    """
    Check both option ranges independently and collect every violation.

    Examples:
        >>> validate_options(ConversionOptions(True, 100, 1000)).errors
        ['pupil distance out of range']
    """
    errors = []

    pupil_low, pupil_high = PUPIL_DISTANCE_RANGE
    if options.pupil_distance < pupil_low or options.pupil_distance > pupil_high:
        errors.append(ERROR_MESSAGES["pupil_distance_range"])

    conv_low, conv_high = CONVERGENCE_DISTANCE_RANGE
    if options.convergence_distance < conv_low or options.convergence_distance > conv_high:
        errors.append(ERROR_MESSAGES["convergence_distance_range"])

    return ValidationReport(valid=not errors, errors=errors)


def calculate_pupil_distance_shift(
    pupil_distance: float,
    screen_width_px: int,
    viewing_distance_cm: float = DEFAULT_VIEWING_DISTANCE_CM,
) -> int:
    """
    Pixel shift for a pupil distance, scaled from a 2% base at 65 mm.

    Examples:
        >>> calculate_pupil_distance_shift(65, 1920)
        38
    """
    base_shift = screen_width_px * BASE_PUPIL_SHIFT_RATIO
    return round_half_up((pupil_distance / STANDARD_PUPIL_DISTANCE) * base_shift)


def is_comfortable_pupil_distance(pupil_distance: float) -> bool:
    """True when the pupil distance is inside the usual adult 50-75 mm band."""
    low, high = COMFORTABLE_PUPIL_DISTANCE_RANGE
    return low <= pupil_distance <= high


def pupil_distance_for_device(device_name: str | None) -> float:
    """Look up a headset preset, falling back to the standard 65 mm."""
    if not device_name:
        return STANDARD_PUPIL_DISTANCE
    return VR_DEVICE_PUPIL_DISTANCES.get(device_name.strip().lower(), STANDARD_PUPIL_DISTANCE)
