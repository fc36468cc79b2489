"""
Data model for the stereo conversion engine.

Frames carry raw pixel bytes plus geometry; everything else here is small,
derived, in-memory state. Nothing in this module is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from .constants import FRAME_FORMATS
from .errors import EngineError, ValidationError


@dataclass(frozen=True)
class ConversionOptions:
    """Viewer parameters for a 2D to SBS conversion."""

    enabled: bool = True
    pupil_distance: float = 65.0
    convergence_distance: float = 1000.0


@dataclass(frozen=True)
class ColorAdjustments:
    """Brightness, contrast and saturation multipliers (1.0 is neutral)."""

    brightness: float = 1.0
    contrast: float = 1.0
    saturation: float = 1.0

    @property
    def is_identity(self) -> bool:
        return self.brightness == 1.0 and self.contrast == 1.0 and self.saturation == 1.0


@dataclass(frozen=True)
class SBSConversionOptions:
    """
    Options for parallax-based SBS conversion.

    ``separation_strength`` (0-1) scales the eye displacement and ``parallax``
    (0-100) sets it as a share of a 10 pixel maximum at the standard pupil
    distance. The colour fields are applied to every pixel of both eyes.
    """

    pupil_distance: float = 65.0
    separation_strength: float = 1.0
    parallax: float = 50.0
    brightness: float = 1.0
    contrast: float = 1.0
    saturation: float = 1.0

    @property
    def adjustments(self) -> ColorAdjustments:
        return ColorAdjustments(self.brightness, self.contrast, self.saturation)


@dataclass(frozen=True)
class StereoParameters:
    """Per-frame synthesis parameters used by the batch controller."""

    shift_percent: float
    adjustments: ColorAdjustments = field(default_factory=ColorAdjustments)


@dataclass(frozen=True)
class FrameRequest:
    """Size and pixel format requested from a frame source."""

    width: int
    height: int
    format: str = "rgba"

    def __post_init__(self):
        if self.format not in FRAME_FORMATS:
            raise ValueError(f"Unsupported frame format: {self.format}")
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Invalid frame size: {self.width}x{self.height}")

    @property
    def channels(self) -> int:
        return FRAME_FORMATS[self.format]


@dataclass(frozen=True)
class Frame:
    """
    Immutable frame of packed pixels.

    Pixels are row-major, ``channels`` bytes per pixel (RGBA unless the frame
    source was asked for YUV).
    """

    pixels: bytes
    width: int
    height: int
    timestamp_ms: float = 0.0
    channels: int = 4

    def __post_init__(self):
        expected = self.width * self.height * self.channels
        if len(self.pixels) != expected:
            raise ValueError(
                f"Frame buffer holds {len(self.pixels)} bytes, "
                f"expected {expected} for {self.width}x{self.height}x{self.channels}"
            )

    def __repr__(self) -> str:
        return (
            f"Frame(width={self.width}, height={self.height}, "
            f"channels={self.channels}, timestamp_ms={self.timestamp_ms:.3f})"
        )

    @property
    def nbytes(self) -> int:
        return len(self.pixels)

    def to_array(self) -> np.ndarray:
        """Return a read-only (height, width, channels) uint8 view of the pixels."""
        if not self.pixels:
            return np.zeros((self.height, self.width, self.channels), dtype=np.uint8)
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(
            self.height, self.width, self.channels
        )

    @classmethod
    def from_array(cls, array: np.ndarray, timestamp_ms: float = 0.0) -> "Frame":
        """Build a frame from a (height, width, channels) array."""
        if array.ndim != 3:
            raise ValueError(f"Expected a 3D pixel array, got shape {array.shape}")
        height, width, channels = array.shape
        data = np.ascontiguousarray(array, dtype=np.uint8).tobytes()
        return cls(data, width, height, timestamp_ms, channels)


@dataclass(frozen=True)
class SamplingPlan:
    """Frame stride that keeps buffered frames under the memory budget."""

    sampling_rate: int
    effective_frames: int
    estimated_memory_mib: float
    total_frames: int = 0


@dataclass(frozen=True)
class VideoMetadata:
    """Container-level facts about a video, supplied by a probe collaborator."""

    size_bytes: int
    duration_seconds: float
    fps: float
    width: int = 0
    height: int = 0

    @property
    def frame_count(self) -> int:
        return int(round(self.duration_seconds * self.fps))


@dataclass
class ValidationReport:
    """Result of checking conversion options; a value, never an exception."""

    valid: bool
    errors: list[str] = field(default_factory=list)

    def raise_if_invalid(self) -> None:
        if not self.valid:
            raise ValidationError(self.errors)


@dataclass(frozen=True)
class BufferStats:
    cached_frames: int
    estimated_memory_bytes: int


@dataclass(frozen=True)
class ConversionResult:
    """Reference to a produced stereo artifact: the source locator annotated with the shift."""

    video_ref: str
    shift_percent: float
    uri: str


class ProcessorStatus(Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class SessionStatus(Enum):
    IDLE = "idle"
    CONVERTING = "converting"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class FrameProcessorState:
    """Observable state of a batch controller."""

    status: ProcessorStatus = ProcessorStatus.IDLE
    is_processing: bool = False
    current_frame: int = 0
    total_frames: int = 0
    progress: float = 0.0
    error: EngineError | None = None


@dataclass
class ConversionSessionState:
    """Observable state of a conversion session."""

    status: SessionStatus = SessionStatus.IDLE
    progress: int = 0
    error: str | None = None
    result: ConversionResult | None = None

    @property
    def is_converting(self) -> bool:
        return self.status is SessionStatus.CONVERTING
