"""Unit tests for the batch conversion controller."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from stereo_sbs_3d.core.constants import REFERENCE_FRAME_BYTES
from stereo_sbs_3d.core.errors import CancellationError, ConversionError, ExtractionError
from stereo_sbs_3d.core.models import (
    ColorAdjustments,
    Frame,
    FrameRequest,
    ProcessorStatus,
    StereoParameters,
    VideoMetadata,
)
from stereo_sbs_3d.io.frame_sources import SyntheticFrameSource
from stereo_sbs_3d.processing.batch_controller import BatchConversionController
from stereo_sbs_3d.processing.frame_cache import FrameCache

REQUEST = FrameRequest(8, 4)


def make_controller(**source_kwargs):
    source_kwargs.setdefault("delay", 0)
    source_kwargs.setdefault("seed", 7)
    return BatchConversionController(SyntheticFrameSource(**source_kwargs))


class PerVideoSource:
    """Returns frames filled with a per-video byte, releasing them on demand."""

    def __init__(self, fills):
        self.fills = fills
        self.release = asyncio.Event()
        self.started = asyncio.Event()
        self.calls = 0

    async def get_frame(self, video_ref, frame_index, request):
        self.calls += 1
        self.started.set()
        if video_ref == "a.mp4":
            await self.release.wait()
        size = request.width * request.height * request.channels
        return Frame(bytes([self.fills[video_ref]]) * size, request.width, request.height)


class TestBatchConversionControllerInit:
    """Test controller initialization."""

    def test_initial_state(self):
        """Test a new controller is idle."""
        controller = make_controller()
        assert controller.state.status is ProcessorStatus.IDLE
        assert controller.state.is_processing is False
        assert controller.state.progress == 0.0
        assert controller.state.error is None
        assert controller.sampling_plan is None

    def test_injected_cache(self):
        """Test an injected frame cache is used."""
        cache = FrameCache(capacity=5)
        controller = BatchConversionController(SyntheticFrameSource(delay=0), frame_cache=cache)
        assert controller.frame_cache is cache


class TestProcessBatch:
    """Test process_batch."""

    @pytest.mark.asyncio
    async def test_extracts_range_in_order(self):
        """Test frames come back in index order with derived timestamps."""
        controller = make_controller()
        frames = await controller.process_batch("video.mp4", 2, 6, REQUEST)

        assert len(frames) == 4
        assert [f.timestamp_ms for f in frames] == pytest.approx([2000 / 30, 3000 / 30, 4000 / 30, 5000 / 30])
        assert all((f.width, f.height, f.channels) == (8, 4, 4) for f in frames)
        assert controller.state.status is ProcessorStatus.COMPLETED
        assert controller.state.is_processing is False
        assert controller.state.progress == 100.0
        assert controller.state.error is None

    @pytest.mark.asyncio
    async def test_progress_reports(self):
        """Test progress after each frame is done / total * 100."""
        controller = make_controller()
        progress = []
        await controller.process_batch("video.mp4", 0, 4, REQUEST, on_progress=progress.append)
        assert progress == [25.0, 50.0, 75.0, 100.0]

    @pytest.mark.asyncio
    async def test_progress_is_monotonic(self):
        """Test progress never decreases."""
        controller = make_controller()
        progress = []
        await controller.process_batch("video.mp4", 10, 17, REQUEST, on_progress=progress.append)
        assert progress == sorted(progress)
        assert progress[-1] == pytest.approx(100.0)

    @pytest.mark.asyncio
    async def test_empty_range(self):
        """Test an empty range completes with no frames."""
        controller = make_controller()
        progress = []
        frames = await controller.process_batch("video.mp4", 5, 5, REQUEST, on_progress=progress.append)
        assert frames == []
        assert progress == []
        assert controller.state.status is ProcessorStatus.COMPLETED
        assert controller.state.progress == 100.0

    @pytest.mark.asyncio
    async def test_stride(self):
        """Test stride skips frames."""
        controller = make_controller()
        frames = await controller.process_batch("video.mp4", 0, 10, REQUEST, stride=3)
        assert [round(f.timestamp_ms * 30 / 1000) for f in frames] == [0, 3, 6, 9]
        assert controller.state.total_frames == 4

    @pytest.mark.asyncio
    async def test_invalid_stride(self):
        """Test stride below one is rejected."""
        controller = make_controller()
        with pytest.raises(ValueError):
            await controller.process_batch("video.mp4", 0, 10, REQUEST, stride=0)

    @pytest.mark.asyncio
    async def test_stereo_output(self):
        """Test stereo parameters produce double-width frames."""
        controller = make_controller()
        stereo = StereoParameters(shift_percent=6.5, adjustments=ColorAdjustments(brightness=1.2))
        frames = await controller.process_batch("video.mp4", 0, 3, REQUEST, stereo=stereo)
        assert [f.width for f in frames] == [16, 16, 16]
        assert all(f.height == 4 for f in frames)

    @pytest.mark.asyncio
    async def test_cancel_mid_batch(self):
        """Test cancelling after k frames stops the batch."""
        controller = make_controller()

        def on_progress(value):
            if value >= 30.0:
                controller.cancel()

        frames = await controller.process_batch("video.mp4", 0, 10, REQUEST, on_progress=on_progress)

        assert len(frames) == 3
        assert controller.state.status is ProcessorStatus.CANCELLED
        assert controller.state.is_processing is False
        assert isinstance(controller.state.error, CancellationError)
        assert str(controller.state.error) == "Processing cancelled"

    @pytest.mark.asyncio
    async def test_cancel_from_other_task(self):
        """Test cancel from a concurrent task stops a slow batch."""
        controller = make_controller(delay=0.01)
        task = asyncio.create_task(controller.process_batch("video.mp4", 0, 50, REQUEST))
        await asyncio.sleep(0.035)
        controller.cancel()
        frames = await task

        assert 0 < len(frames) < 50
        assert controller.state.status is ProcessorStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_extraction_failure_aborts(self):
        """Test a failing frame aborts the batch and records the error."""
        source = SyntheticFrameSource(delay=0, failures={3})
        controller = BatchConversionController(source)
        frames = await controller.process_batch("video.mp4", 0, 10, REQUEST)

        assert len(frames) == 3
        assert source.calls == 4
        assert controller.state.status is ProcessorStatus.FAILED
        assert isinstance(controller.state.error, ExtractionError)
        assert controller.state.error.frame_index == 3
        assert "at frame 3" in str(controller.state.error)

    @pytest.mark.asyncio
    async def test_unexpected_failure_wrapped(self):
        """Test other errors are wrapped in ConversionError."""
        controller = make_controller()
        stereo = StereoParameters(shift_percent=5.0)
        with patch.object(controller, "convert_frame_to_sbs", side_effect=RuntimeError("boom")):
            frames = await controller.process_batch("video.mp4", 0, 3, REQUEST, stereo=stereo)

        assert frames == []
        assert controller.state.status is ProcessorStatus.FAILED
        assert isinstance(controller.state.error, ConversionError)
        assert "boom" in str(controller.state.error)

    @pytest.mark.asyncio
    async def test_cache_hits_skip_source(self):
        """Test re-processing a range reads from the frame cache."""
        source = SyntheticFrameSource(delay=0)
        controller = BatchConversionController(source)
        first = await controller.process_batch("video.mp4", 0, 5, REQUEST)
        second = await controller.process_batch("video.mp4", 0, 5, REQUEST)

        assert source.calls == 5
        assert all(a is b for a, b in zip(first, second))

    @pytest.mark.asyncio
    async def test_cache_cleared_for_new_video(self):
        """Test switching videos discards cached frames."""
        source = SyntheticFrameSource(delay=0)
        controller = BatchConversionController(source)
        await controller.process_batch("a.mp4", 0, 3, REQUEST)
        await controller.process_batch("b.mp4", 0, 3, REQUEST)
        assert source.calls == 6

    @pytest.mark.asyncio
    async def test_new_batch_supersedes_running_one(self):
        """Test starting a batch cancels the one in flight."""
        controller = make_controller(delay=0.01)
        first = asyncio.create_task(controller.process_batch("a.mp4", 0, 50, REQUEST))
        await asyncio.sleep(0.025)
        second = await controller.process_batch("a.mp4", 100, 103, REQUEST)
        first_frames = await first

        assert len(first_frames) < 50
        assert len(second) == 3
        assert controller.state.status is ProcessorStatus.COMPLETED
        assert controller.state.total_frames == 3
        assert controller.state.error is None

    @pytest.mark.asyncio
    async def test_superseded_batch_does_not_fill_cache_for_new_video(self):
        """Test a frame finished by a superseded batch is not cached under the new video."""
        source = PerVideoSource({"a.mp4": 0x01, "b.mp4": 0x02})
        controller = BatchConversionController(source)

        first = asyncio.create_task(controller.process_batch("a.mp4", 0, 1, REQUEST))
        await source.started.wait()
        await controller.process_batch("b.mp4", 5, 6, REQUEST)
        source.release.set()
        await first

        frames = await controller.process_batch("b.mp4", 0, 1, REQUEST)
        assert frames[0].pixels == bytes([0x02]) * (8 * 4 * 4)
        assert controller.frame_cache.get(0) is frames[0]

    @pytest.mark.asyncio
    async def test_superseded_batch_does_not_fill_cache_same_video(self):
        """Test frames finished after a batch was superseded are dropped from the cache."""
        source = PerVideoSource({"a.mp4": 0x01})
        controller = BatchConversionController(source)

        first = asyncio.create_task(controller.process_batch("a.mp4", 0, 1, REQUEST))
        second = asyncio.create_task(controller.process_batch("a.mp4", 5, 6, REQUEST))
        while source.calls < 2:
            await asyncio.sleep(0)
        source.release.set()
        await first
        await second

        assert controller.state.status is ProcessorStatus.COMPLETED
        assert controller.frame_cache.get(0) is None
        assert controller.frame_cache.get(5) is not None

    @pytest.mark.asyncio
    async def test_cache_cleared_for_new_request(self):
        """Test a different frame size or format refetches frames."""
        source = SyntheticFrameSource(delay=0)
        controller = BatchConversionController(source)
        await controller.process_batch("video.mp4", 0, 3, REQUEST)
        frames = await controller.process_batch("video.mp4", 0, 3, FrameRequest(4, 2, "yuv"))

        assert source.calls == 6
        assert all((f.width, f.height, f.channels) == (4, 2, 3) for f in frames)

    @pytest.mark.asyncio
    async def test_colour_adjusting_yuv_frames_fails(self):
        """Test colour adjustments on YUV frames fail the batch."""
        controller = make_controller()
        stereo = StereoParameters(2.0, ColorAdjustments(brightness=1.2))
        frames = await controller.process_batch("video.mp4", 0, 2, FrameRequest(8, 4, "yuv"), stereo=stereo)

        assert frames == []
        assert controller.state.status is ProcessorStatus.FAILED
        assert isinstance(controller.state.error, ConversionError)
        assert "RGBA" in str(controller.state.error)

    @pytest.mark.asyncio
    async def test_mocked_source(self):
        """Test the controller only relies on get_frame."""
        frame = Frame(bytes(8 * 4 * 4), 8, 4)
        source = AsyncMock()
        source.get_frame.return_value = frame
        controller = BatchConversionController(source)

        frames = await controller.process_batch("video.mp4", 0, 2, REQUEST)
        assert frames == [frame, frame]
        source.get_frame.assert_any_await("video.mp4", 0, REQUEST)
        source.get_frame.assert_any_await("video.mp4", 1, REQUEST)


class TestProcessVideo:
    """Test whole-video processing with sampling."""

    @pytest.mark.asyncio
    async def test_short_video_keeps_all_frames(self):
        """Test a short video is processed frame by frame."""
        controller = make_controller()
        metadata = VideoMetadata(size_bytes=1000, duration_seconds=0.5, fps=30)
        frames = await controller.process_video("clip.mp4", metadata, REQUEST)

        assert controller.sampling_plan.sampling_rate == 1
        assert len(frames) == 15

    @pytest.mark.asyncio
    async def test_long_video_is_sampled(self):
        """Test a long video is strided by the sampling rate."""
        controller = make_controller()
        metadata = VideoMetadata(size_bytes=100 * 1024 * 1024, duration_seconds=60, fps=30)
        frames = await controller.process_video("clip.mp4", metadata, REQUEST)

        assert controller.sampling_plan.sampling_rate == 29
        assert len(frames) == controller.sampling_plan.effective_frames == 63


class TestExtractFrame:
    """Test single frame extraction."""

    @pytest.mark.asyncio
    async def test_returns_frame(self):
        """Test a single frame is returned and cached."""
        controller = make_controller()
        frame = await controller.extract_frame("video.mp4", 4, REQUEST)
        assert frame is not None
        assert 4 in controller.frame_cache

    @pytest.mark.asyncio
    async def test_failure_returns_none(self):
        """Test a failed read gives None and records the error."""
        controller = BatchConversionController(SyntheticFrameSource(delay=0, failures={2}))
        assert await controller.extract_frame("video.mp4", 2, REQUEST) is None
        assert isinstance(controller.state.error, ExtractionError)
        assert controller.state.is_processing is False


class TestBufferManagement:
    """Test buffer statistics and clearing."""

    @pytest.mark.asyncio
    async def test_buffer_stats(self):
        """Test stats count cached frames at the reference frame size."""
        controller = make_controller()
        await controller.process_batch("video.mp4", 0, 3, REQUEST)
        stats = controller.buffer_stats()
        assert stats.cached_frames == 3
        assert stats.estimated_memory_bytes == 3 * REFERENCE_FRAME_BYTES

    @pytest.mark.asyncio
    async def test_clear_frame_buffer(self):
        """Test clearing empties the cache and resets counters."""
        controller = make_controller()
        await controller.process_batch("video.mp4", 0, 3, REQUEST)
        controller.clear_frame_buffer()

        assert controller.buffer_stats().cached_frames == 0
        assert controller.state.current_frame == 0
        assert controller.state.total_frames == 0

    @pytest.mark.asyncio
    async def test_cache_bounded(self):
        """Test the cache never grows past capacity."""
        controller = BatchConversionController(
            SyntheticFrameSource(delay=0), frame_cache=FrameCache(capacity=4)
        )
        await controller.process_batch("video.mp4", 0, 10, REQUEST)
        assert controller.frame_cache.keys() == [6, 7, 8, 9]
