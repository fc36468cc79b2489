"""
Batch conversion controller.

Extracts a range of frames in strict index order, optionally turning each one
into a side-by-side stereo frame, while reporting progress and honouring a
cooperative cancellation token. Failures never escape ``process_batch``; they
end up in ``controller.state``.
"""

from __future__ import annotations

import time
from typing import Callable

from ..core.constants import ERROR_MESSAGES
from ..core.errors import CancellationError, ConversionError, EngineError, ExtractionError
from ..core.models import (
    BufferStats,
    ColorAdjustments,
    Frame,
    FrameProcessorState,
    FrameRequest,
    ProcessorStatus,
    SamplingPlan,
    StereoParameters,
    VideoMetadata,
)
from ..io.frame_sources import FrameSource
from ..utils.console import saved_to, step_complete, warning
from ..utils.image_processing import adjust_frame, create_sbs_frame
from .cancellation import CancellationToken
from .frame_cache import FrameCache
from .sampling import plan_sampling

ProgressCallback = Callable[[float], None]


class BatchConversionController:
    """
    Drives a frame source through the frame cache and stereo synthesis.

    Args:
        frame_source: Collaborator that delivers decoded frames
        frame_cache: Cache owned by this controller; a fresh one if omitted
        verbose: Print per-batch summaries
    """

    def __init__(
        self,
        frame_source: FrameSource,
        frame_cache: FrameCache | None = None,
        verbose: bool = False,
    ):
        self.frame_source = frame_source
        self.frame_cache = frame_cache if frame_cache is not None else FrameCache()
        self.verbose = verbose
        self.state = FrameProcessorState()
        self.sampling_plan: SamplingPlan | None = None
        self._token: CancellationToken | None = None
        self._cache_owner: tuple[str, FrameRequest] | None = None

    async def _extract(
        self,
        video_ref: str,
        frame_index: int,
        request: FrameRequest,
        token: CancellationToken | None = None,
    ) -> Frame:
        owner = (video_ref, request)
        if owner != self._cache_owner:
            # Cache entries are keyed by index only, so they belong to one video and request.
            self.frame_cache.clear()
            self._cache_owner = owner

        cached = self.frame_cache.get(frame_index)
        if cached is not None:
            return cached

        try:
            frame = await self.frame_source.get_frame(video_ref, frame_index, request)
        except Exception as e:
            raise ExtractionError(
                f"{ERROR_MESSAGES['extraction_failed']} at frame {frame_index}: {e}",
                frame_index=frame_index,
            ) from e

        # A superseded batch or a switch to another video may have happened during the await.
        if owner == self._cache_owner and (token is None or (self._owns(token) and not token.cancelled)):
            self.frame_cache.put(frame_index, frame)
        return frame

    async def extract_frame(
        self, video_ref: str, frame_index: int, request: FrameRequest
    ) -> Frame | None:
        """
        Return one frame, from the cache when possible.

        Returns:
            The frame, or None if the source failed (the error is in ``state.error``)
        """
        self.state.is_processing = True
        try:
            return await self._extract(video_ref, frame_index, request)
        except ExtractionError as e:
            self.state.error = e
            if self.verbose:
                print(warning(str(e)))
            return None
        finally:
            self.state.is_processing = self.state.status is ProcessorStatus.PROCESSING

    def convert_frame_to_sbs(
        self,
        frame: Frame,
        shift_percent: float,
        adjustments: ColorAdjustments | None = None,
    ) -> Frame:
        """Colour-adjust a frame, then build its side-by-side stereo pair."""
        return create_sbs_frame(adjust_frame(frame, adjustments), shift_percent)

    def _owns(self, token: CancellationToken) -> bool:
        return self._token is token

    def _begin(self, total_frames: int, start_frame: int) -> CancellationToken:
        if self._token is not None:
            self._token.cancel(ERROR_MESSAGES["processing_cancelled"])
        token = CancellationToken()
        self._token = token
        self.state = FrameProcessorState(
            status=ProcessorStatus.PROCESSING,
            is_processing=True,
            current_frame=start_frame,
            total_frames=total_frames,
        )
        return token

    def _finish(self, token: CancellationToken, status: ProcessorStatus, error: EngineError | None = None) -> None:
        if not self._owns(token):
            return
        self.state.status = status
        self.state.is_processing = False
        self.state.error = error
        self._token = None

    async def process_batch(
        self,
        video_ref: str,
        start_frame: int,
        end_frame: int,
        request: FrameRequest,
        on_progress: ProgressCallback | None = None,
        stereo: StereoParameters | None = None,
        stride: int = 1,
    ) -> list[Frame]:
        """
        Extract frames ``[start_frame, end_frame)`` in order.

        Progress after each frame is ``frames_done / frames_planned * 100``,
        which for ``stride=1`` is ``(i - start_frame + 1) / (end_frame - start_frame) * 100``.
        Cancellation is checked before every frame. A failed extraction aborts
        the rest of the batch. In every case the frames gathered so far are
        returned and ``state`` records the outcome.

        Args:
            video_ref: Locator handed to the frame source
            start_frame: First frame index (inclusive)
            end_frame: Last frame index (exclusive)
            request: Frame size and pixel format
            on_progress: Called with the percentage after each frame
            stereo: When given, each frame is converted to side-by-side
            stride: Take every ``stride``-th frame

        Returns:
            Frames (stereo frames when ``stereo`` is given) in index order
        """
        if stride < 1:
            raise ValueError(f"stride must be >= 1, got {stride}")

        indices = range(start_frame, end_frame, stride)
        total = len(indices)
        token = self._begin(total, start_frame)
        frames: list[Frame] = []
        started = time.time()

        try:
            for done, frame_index in enumerate(indices, start=1):
                token.raise_if_cancelled()
                self.state.current_frame = frame_index

                frame = await self._extract(video_ref, frame_index, request, token)
                if stereo is not None:
                    frame = self.convert_frame_to_sbs(frame, stereo.shift_percent, stereo.adjustments)
                frames.append(frame)

                progress = done / total * 100.0
                if self._owns(token):
                    self.state.current_frame = frame_index
                    self.state.progress = progress
                if on_progress is not None:
                    on_progress(progress)

            if total == 0 and self._owns(token):
                self.state.progress = 100.0
        except CancellationError as e:
            self._finish(token, ProcessorStatus.CANCELLED, e)
        except ExtractionError as e:
            self._finish(token, ProcessorStatus.FAILED, e)
        except Exception as e:
            failure = ConversionError(f"{ERROR_MESSAGES['batch_failed']}: {e}")
            failure.__cause__ = e
            self._finish(token, ProcessorStatus.FAILED, failure)
        else:
            self._finish(token, ProcessorStatus.COMPLETED)

        if self.verbose:
            self._print_summary(len(frames), total, time.time() - started)
        return frames

    async def process_video(
        self,
        video_ref: str,
        metadata: VideoMetadata,
        request: FrameRequest,
        on_progress: ProgressCallback | None = None,
        stereo: StereoParameters | None = None,
        use_sampling: bool = True,
    ) -> list[Frame]:
        """Plan sampling once for the whole video, then process it as one batch."""
        plan = plan_sampling(metadata.size_bytes, metadata.duration_seconds, metadata.fps)
        self.sampling_plan = plan
        stride = plan.sampling_rate if use_sampling else 1
        return await self.process_batch(
            video_ref, 0, plan.total_frames, request, on_progress, stereo, stride
        )

    def cancel(self) -> None:
        """Signal the running batch to stop at its next frame boundary."""
        if self._token is not None:
            self._token.cancel(ERROR_MESSAGES["processing_cancelled"])

    def buffer_stats(self) -> BufferStats:
        return BufferStats(
            cached_frames=len(self.frame_cache),
            estimated_memory_bytes=self.frame_cache.estimated_memory_bytes(),
        )

    def clear_frame_buffer(self) -> None:
        self.frame_cache.clear()
        self._cache_owner = None
        self.state.current_frame = 0
        self.state.total_frames = 0

    def _print_summary(self, processed: int, planned: int, duration: float) -> None:
        status = self.state.status.value
        print(step_complete(f"Processed {processed:04d}/{planned:04d} frames in {duration:.2f}s ({status})"))
        if self.state.error is not None:
            print(warning(str(self.state.error)))
        stats = self.buffer_stats()
        print(saved_to(f"Frame cache: {stats.cached_frames} entries"))
