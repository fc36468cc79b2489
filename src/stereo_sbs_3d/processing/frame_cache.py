"""
Bounded, insertion-ordered cache of extracted frames.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Iterator

from ..core.constants import FRAME_CACHE_CAPACITY, REFERENCE_FRAME_BYTES
from ..core.models import Frame


class FrameCache:
    """
    Frame index to Frame mapping with FIFO eviction.

    Re-inserting an index that is already cached replaces the frame but keeps
    its original position in the eviction order.
    """

    def __init__(self, capacity: int = FRAME_CACHE_CAPACITY):
        if capacity < 1:
            raise ValueError(f"Cache capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._frames: OrderedDict[int, Frame] = OrderedDict()

    def __len__(self) -> int:
        return len(self._frames)

    def __contains__(self, frame_index: int) -> bool:
        return frame_index in self._frames

    def __iter__(self) -> Iterator[int]:
        return iter(self._frames)

    def keys(self) -> list[int]:
        return list(self._frames)

    def get(self, frame_index: int) -> Frame | None:
        return self._frames.get(frame_index)

    def put(self, frame_index: int, frame: Frame) -> list[int]:
        """
        Store a frame and evict the oldest entries beyond capacity.

        Returns:
            Indices that were evicted, oldest first
        """
        self._frames[frame_index] = frame
        evicted = []
        while len(self._frames) > self.capacity:
            oldest, _ = self._frames.popitem(last=False)
            evicted.append(oldest)
        return evicted

    def clear(self) -> None:
        self._frames.clear()

    def estimated_memory_bytes(self, per_frame_bytes: int = REFERENCE_FRAME_BYTES) -> int:
        return len(self._frames) * per_frame_bytes
