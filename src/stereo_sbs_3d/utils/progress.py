"""
Console progress tracking for batch conversion.
"""

from __future__ import annotations

import time

from .path_utils import format_time_duration


def calculate_eta(elapsed: float, progress: float) -> float | None:
    """
    Estimate remaining seconds from elapsed time and percent complete.

    Examples:
        >>> calculate_eta(10.0, 50.0)
        10.0
        >>> calculate_eta(10.0, 0.0) is None
        True
    """
    if progress <= 0:
        return None
    if progress >= 100:
        return 0.0
    return elapsed / progress * (100.0 - progress)


class ProgressTracker:
    """Renders a single self-overwriting progress line for a conversion run."""

    def __init__(self, total_frames: int, description: str = "Converting", stream=None):
        self.total_frames = total_frames
        self.description = description
        self.stream = stream
        self.start_time = time.time()
        self.progress = 0.0

    def __call__(self, progress: float) -> None:
        self.update(progress)

    def update(self, progress: float) -> None:
        """Record a new progress percentage (0-100) and redraw."""
        self.progress = progress
        self._display()

    def _display(self) -> None:
        elapsed = time.time() - self.start_time
        eta = calculate_eta(elapsed, self.progress)
        eta_str = f"ETA: {format_time_duration(eta)}" if eta is not None else "ETA: --"
        done = round(self.progress / 100.0 * self.total_frames)
        print(
            f"\r[SBS] {self.description} {done}/{self.total_frames} "
            f"({self.progress:.1f}%) - {eta_str}",
            end="",
            flush=True,
            file=self.stream,
        )

    def finish(self, message: str = "Processing complete") -> float:
        """Print the closing line and return the elapsed seconds."""
        elapsed = time.time() - self.start_time
        print(f"\r{message} - Total time: {elapsed:.1f}s", file=self.stream)
        return elapsed
