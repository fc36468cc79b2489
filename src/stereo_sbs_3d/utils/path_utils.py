"""
Pure helpers for time ranges, frame naming and human-readable formatting.

No filesystem I/O, no external state, deterministic output.
"""

from __future__ import annotations

from ..core.constants import OUTPUT_FRAME_PREFIX, OUTPUT_IMAGE_FORMAT


def parse_time_string(time_str: str) -> float | None:
    """
    Parse "mm:ss" or "hh:mm:ss" into seconds.

    Returns:
        Seconds as float, or None for anything else

    Examples:
        >>> parse_time_string("1:30")
        90.0
        >>> parse_time_string("01:05:30")
        3930.0
        >>> parse_time_string("90") is None
        True
    """
    try:
        parts = [int(part) for part in time_str.strip().split(":")]
    except (ValueError, AttributeError):
        return None

    if len(parts) == 2:
        minutes, seconds = parts
        return float(minutes * 60 + seconds)
    if len(parts) == 3:
        hours, minutes, seconds = parts
        return float(hours * 3600 + minutes * 60 + seconds)
    return None


def calculate_frame_range(
    total_frames: int,
    fps: float,
    start_time: str | None = None,
    end_time: str | None = None,
) -> tuple[int, int]:
    """
    Turn optional start/end times into a half-open frame range.

    The range is clamped to the video and never empty for a non-empty video.

    Examples:
        >>> calculate_frame_range(1000, 30.0, "0:10", "0:20")
        (300, 600)
        >>> calculate_frame_range(100, 30.0)
        (0, 100)
    """
    start_frame = 0
    end_frame = total_frames

    start_seconds = parse_time_string(start_time) if start_time else None
    if start_seconds is not None:
        start_frame = int(start_seconds * fps)

    end_seconds = parse_time_string(end_time) if end_time else None
    if end_seconds is not None:
        end_frame = int(end_seconds * fps)

    if total_frames <= 0:
        return 0, 0

    start_frame = max(0, min(start_frame, total_frames - 1))
    end_frame = max(start_frame + 1, min(end_frame, total_frames))
    return start_frame, end_frame


def generate_frame_filename(index: int, prefix: str = OUTPUT_FRAME_PREFIX) -> str:
    """
    Examples:
        >>> generate_frame_filename(42)
        'sbs_000042.png'
    """
    return f"{prefix}_{index:06d}{OUTPUT_IMAGE_FORMAT}"


def format_file_size(size_bytes: float) -> str:
    """
    Format a byte count with binary units.

    Examples:
        >>> format_file_size(0)
        '0 B'
        >>> format_file_size(1536)
        '1.5 KB'
        >>> format_file_size(8294400)
        '7.9 MB'
    """
    if size_bytes <= 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    size = float(size_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} B"
    return f"{size:.1f} {units[unit_index]}"


def format_time_duration(seconds: float) -> str:
    """
    Format seconds as HH:MM:SS.

    Examples:
        >>> format_time_duration(90.5)
        '00:01:30'
    """
    seconds = max(0.0, seconds)
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_processing_time(seconds: float) -> str:
    """
    Compact duration such as "1h 23m 45s"; zero components are omitted.

    Examples:
        >>> format_processing_time(125)
        '2m 5s'
        >>> format_processing_time(3600)
        '1h'
        >>> format_processing_time(0)
        '0s'
    """
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)
