"""Shared fixtures for unit tests."""

import cv2
import numpy as np
import pytest

SAMPLE_WIDTH = 16
SAMPLE_HEIGHT = 8
SAMPLE_FRAMES = 5
SAMPLE_FPS = 10.0


@pytest.fixture
def sample_video(tmp_path):
    """Write a tiny MJPG clip and return its path."""
    path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(
        str(path), cv2.VideoWriter_fourcc(*"MJPG"), SAMPLE_FPS, (SAMPLE_WIDTH, SAMPLE_HEIGHT)
    )
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")

    for i in range(SAMPLE_FRAMES):
        frame = np.full((SAMPLE_HEIGHT, SAMPLE_WIDTH, 3), i * 40, dtype=np.uint8)
        writer.write(frame)
    writer.release()
    return path
