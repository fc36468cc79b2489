"""Processing modules: sampling, frame caching, batch control and sessions."""

from .batch_controller import BatchConversionController
from .cancellation import CancellationToken
from .frame_cache import FrameCache
from .sampling import plan_sampling, sampled_frame_indices
from .session import DEFAULT_RESULT_CACHE, ConversionSession, ResultCache

__all__ = [
    "BatchConversionController",
    "CancellationToken",
    "ConversionSession",
    "DEFAULT_RESULT_CACHE",
    "FrameCache",
    "ResultCache",
    "plan_sampling",
    "sampled_frame_indices",
]
