"""
Frame source collaborators.

The engine never decodes video itself; it awaits ``get_frame`` on an object
implementing :class:`FrameSource`. Two implementations are provided: a
synthetic noise source for tests and previews, and an OpenCV reader for real
files.
"""

from __future__ import annotations

import asyncio
import os
import threading
from pathlib import Path
from typing import Protocol

import cv2
import numpy as np

from ..core.constants import (
    DEFAULT_FPS,
    ERROR_MESSAGES,
    SUPPORTED_VIDEO_FORMATS,
    SYNTHETIC_FRAME_DELAY_SECONDS,
)
from ..core.errors import ExtractionError
from ..core.models import Frame, FrameRequest, VideoMetadata


class FrameSource(Protocol):
    async def get_frame(self, video_ref: str, frame_index: int, request: FrameRequest) -> Frame:
        ...


def validate_video_file(video_path: str) -> bool:
    """True if the file exists and has a supported video extension."""
    if not os.path.exists(video_path):
        return False
    return Path(video_path).suffix.lower() in SUPPORTED_VIDEO_FORMATS


def probe_video_metadata(video_path: str) -> VideoMetadata:
    """
    Read size, duration, frame rate and resolution of a video file.

    Raises:
        ExtractionError: If the file is missing or OpenCV cannot open it
    """
    if not os.path.exists(video_path):
        raise ExtractionError(f"{ERROR_MESSAGES['video_not_found']}: {video_path}")

    cap = cv2.VideoCapture(str(video_path))
    try:
        if not cap.isOpened():
            raise ExtractionError(f"{ERROR_MESSAGES['video_open_failed']}: {video_path}")

        fps = float(cap.get(cv2.CAP_PROP_FPS)) or DEFAULT_FPS
        frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
    finally:
        cap.release()

    return VideoMetadata(
        size_bytes=os.path.getsize(video_path),
        duration_seconds=frame_count / fps,
        fps=fps,
        width=width,
        height=height,
    )


class SyntheticFrameSource:
    """
    Produces random-noise frames after a fixed delay.

    Args:
        delay: Seconds to wait per frame, standing in for decode time
        fps: Frame rate used to derive timestamps
        seed: Makes frame content reproducible per index when set
        failures: Frame indices that fail with ``IOError``
    """

    def __init__(
        self,
        delay: float = SYNTHETIC_FRAME_DELAY_SECONDS,
        fps: float = DEFAULT_FPS,
        seed: int | None = None,
        failures: set[int] | None = None,
    ):
        self.delay = delay
        self.fps = fps
        self.seed = seed
        self.failures = set(failures or ())
        self.calls = 0

    async def get_frame(self, video_ref: str, frame_index: int, request: FrameRequest) -> Frame:
        self.calls += 1
        await asyncio.sleep(self.delay)

        if frame_index in self.failures:
            raise IOError(f"Synthetic read failure for {video_ref} at frame {frame_index}")

        rng = np.random.default_rng(None if self.seed is None else self.seed + frame_index)
        pixels = rng.integers(
            0, 256, size=(request.height, request.width, request.channels), dtype=np.uint8
        )
        return Frame.from_array(pixels, frame_index * (1000.0 / self.fps))


class OpenCVFrameSource:
    """
    Reads frames from local video files with ``cv2.VideoCapture``.

    Captures are opened lazily per video and reused. Blocking reads run in a
    worker thread.
    """

    def __init__(self, fps: float | None = None):
        self.fps = fps
        self._captures: dict[str, cv2.VideoCapture] = {}
        self._lock = threading.Lock()

    def _open(self, video_ref: str) -> cv2.VideoCapture:
        cap = self._captures.get(video_ref)
        if cap is None:
            cap = cv2.VideoCapture(str(video_ref))
            if not cap.isOpened():
                cap.release()
                raise IOError(f"{ERROR_MESSAGES['video_open_failed']}: {video_ref}")
            self._captures[video_ref] = cap
        return cap

    def _read(self, video_ref: str, frame_index: int, request: FrameRequest) -> Frame:
        with self._lock:
            cap = self._open(video_ref)
            cap.set(cv2.CAP_PROP_POS_FRAMES, frame_index)
            ok, bgr = cap.read()
            fps = self.fps or float(cap.get(cv2.CAP_PROP_FPS)) or DEFAULT_FPS

        if not ok or bgr is None:
            raise IOError(f"Could not read frame {frame_index} from {video_ref}")

        height, width = bgr.shape[:2]
        if request.width and request.height and (request.width, request.height) != (width, height):
            bgr = cv2.resize(bgr, (request.width, request.height), interpolation=cv2.INTER_AREA)

        if request.format == "yuv":
            pixels = cv2.cvtColor(bgr, cv2.COLOR_BGR2YUV)
        else:
            pixels = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGBA)

        return Frame.from_array(pixels, frame_index * (1000.0 / fps))

    async def get_frame(self, video_ref: str, frame_index: int, request: FrameRequest) -> Frame:
        return await asyncio.to_thread(self._read, video_ref, frame_index, request)

    def close(self) -> None:
        with self._lock:
            for cap in self._captures.values():
                cap.release()
            self._captures.clear()
