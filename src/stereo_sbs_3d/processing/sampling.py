"""
Memory-budgeted frame sampling.

The plan assumes every buffered frame is a full 1080p RGBA image. It does not
look at the real video resolution or file size.
"""

from __future__ import annotations

from ..core.constants import (
    BYTES_PER_MIB,
    DEFAULT_FPS,
    MAX_BUFFER_MEMORY_BYTES,
    REFERENCE_FRAME_BYTES,
)
from ..core.models import SamplingPlan
from ..utils.stereo_math import round_half_up


def _ceil_div(numerator: float, denominator: float) -> int:
    return int(-(-numerator // denominator))


def plan_sampling(
    video_size_bytes: int,
    duration_seconds: float,
    fps: float = DEFAULT_FPS,
    frame_bytes: int = REFERENCE_FRAME_BYTES,
    max_memory_bytes: int = MAX_BUFFER_MEMORY_BYTES,
) -> SamplingPlan:
    """
    Choose a frame stride that keeps buffered frames under the memory budget.

    Args:
        video_size_bytes: Container size; accepted for future use, not used
        duration_seconds: Video duration
        fps: Frames per second
        frame_bytes: Assumed bytes per decoded frame
        max_memory_bytes: Memory budget for buffered frames

    Returns:
        SamplingPlan with stride, frames kept and estimated memory in MiB

    Examples:
        >>> plan = plan_sampling(100 * 1024 * 1024, 60, 30)
        >>> plan.sampling_rate, plan.effective_frames
        (29, 63)
    """
    total_frames = max(0, round_half_up(duration_seconds * fps))
    total_memory = total_frames * frame_bytes

    sampling_rate = max(1, _ceil_div(total_memory, max_memory_bytes))
    effective_frames = _ceil_div(total_frames, sampling_rate)
    estimated_memory_mib = (total_memory / sampling_rate) / BYTES_PER_MIB

    return SamplingPlan(
        sampling_rate=sampling_rate,
        effective_frames=effective_frames,
        estimated_memory_mib=estimated_memory_mib,
        total_frames=total_frames,
    )


def sampled_frame_indices(plan: SamplingPlan, start: int = 0) -> range:
    """
    Frame indices selected by a plan, starting at ``start``.

    Examples:
        >>> list(sampled_frame_indices(SamplingPlan(3, 4, 0.0, 10)))
        [0, 3, 6, 9]
    """
    return range(start, plan.total_frames, plan.sampling_rate)
