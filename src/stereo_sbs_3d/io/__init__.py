"""Frame sources and video probing."""

from .frame_sources import (
    FrameSource,
    OpenCVFrameSource,
    SyntheticFrameSource,
    probe_video_metadata,
    validate_video_file,
)

__all__ = [
    "FrameSource",
    "OpenCVFrameSource",
    "SyntheticFrameSource",
    "probe_video_metadata",
    "validate_video_file",
]
