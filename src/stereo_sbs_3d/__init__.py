"""
Stereo SBS 3D - Convert 2D video frames into side-by-side stereo pairs for VR.

This package provides the frame-level stereo synthesis, memory-budgeted
sampling, frame caching and cancellable batch conversion used to prepare
monoscopic videos for dual-eye VR playback.
"""

__version__ = "1.0.0"
__author__ = "Stereo SBS 3D Team"
__description__ = "Convert 2D video frames into side-by-side stereo pairs for VR"

from .core.constants import DEFAULT_SETTINGS, VR_DEVICE_PUPIL_DISTANCES
from .core.models import ColorAdjustments, ConversionOptions, Frame, FrameRequest, SBSConversionOptions
from .processing import BatchConversionController, ConversionSession
from .utils.stereo_math import compute_shift, optimal_pupil_distance, validate_options

__all__ = [
    "BatchConversionController",
    "ColorAdjustments",
    "ConversionOptions",
    "ConversionSession",
    "DEFAULT_SETTINGS",
    "Frame",
    "FrameRequest",
    "SBSConversionOptions",
    "VR_DEVICE_PUPIL_DISTANCES",
    "compute_shift",
    "optimal_pupil_distance",
    "validate_options",
]
