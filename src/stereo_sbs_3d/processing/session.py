"""
Whole-video conversion session with a shared result cache.

A session runs at most one conversion at a time. Starting a new conversion
cancels the token of the one in flight; a superseded run finishes quietly
without touching session state.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Iterator

from ..core.constants import (
    ERROR_MESSAGES,
    PROGRESS_STEP_DELAY_SECONDS,
    PROGRESS_STEP_PERCENT,
)
from ..core.errors import CancellationError
from ..core.models import (
    ConversionOptions,
    ConversionResult,
    ConversionSessionState,
    SessionStatus,
    ValidationReport,
)
from ..utils.console import step_complete, warning
from ..utils.stereo_math import compute_shift, validate_options
from .cancellation import CancellationToken

ResultKey = tuple  # (video_ref, pupil_distance, convergence_distance)


class ResultCache:
    """Conversion results keyed by video and viewer parameters. No expiry."""

    def __init__(self):
        self._results: dict[ResultKey, ConversionResult] = {}

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, key: ResultKey) -> bool:
        return key in self._results

    @staticmethod
    def make_key(video_ref: str, options: ConversionOptions) -> ResultKey:
        return (video_ref, float(options.pupil_distance), float(options.convergence_distance))

    def get(self, key: ResultKey) -> ConversionResult | None:
        return self._results.get(key)

    def put(self, key: ResultKey, result: ConversionResult) -> None:
        self._results[key] = result

    def clear(self) -> None:
        self._results.clear()


DEFAULT_RESULT_CACHE = ResultCache()


def format_shift(shift_percent: float) -> str:
    """
    Examples:
        >>> format_shift(6.5)
        '6.5'
        >>> format_shift(10.0)
        '10'
    """
    text = repr(float(shift_percent))
    return text[:-2] if text.endswith(".0") else text


def annotate_locator(video_ref: str, shift_percent: float) -> str:
    """
    Mark a video locator as side-by-side with the given shift.

    Examples:
        >>> annotate_locator("file:///v.mp4", 6.5)
        'file:///v.mp4?sbs=true&shift=6.5'
        >>> annotate_locator("https://host/v?id=3", 10)
        'https://host/v?id=3&sbs=true&shift=10'
    """
    separator = "&" if "?" in video_ref else "?"
    return f"{video_ref}{separator}sbs=true&shift={format_shift(shift_percent)}"


def progress_steps(step_percent: int) -> Iterator[int]:
    """
    Monotonic progress values from 0 to 100 inclusive.

    Examples:
        >>> list(progress_steps(30))
        [0, 30, 60, 90, 100]
    """
    if step_percent <= 0:
        raise ValueError(f"step_percent must be positive, got {step_percent}")
    value = 0
    while value < 100:
        yield value
        value += step_percent
    yield 100


class ConversionSession:
    """
    Converts whole videos to side-by-side stereo, one run at a time.

    Args:
        result_cache: Shared cache of finished results; the process-wide
            default is used when omitted
        step_percent: Progress increment of the conversion loop
        step_delay: Seconds awaited between progress steps
        on_progress: Called with every progress value (0-100)
        verbose: Print validation warnings and completion messages
    """

    def __init__(
        self,
        result_cache: ResultCache | None = None,
        step_percent: int = PROGRESS_STEP_PERCENT,
        step_delay: float = PROGRESS_STEP_DELAY_SECONDS,
        on_progress: Callable[[int], None] | None = None,
        verbose: bool = False,
    ):
        self.result_cache = result_cache if result_cache is not None else DEFAULT_RESULT_CACHE
        self.step_percent = step_percent
        self.step_delay = step_delay
        self.on_progress = on_progress
        self.verbose = verbose
        self.state = ConversionSessionState()
        self.last_validation: ValidationReport | None = None
        self._token: CancellationToken | None = None

    def _emit(self, progress: int) -> None:
        self.state.progress = progress
        if self.on_progress is not None:
            self.on_progress(progress)

    def _supersede(self) -> None:
        if self._token is not None:
            self._token.cancel(ERROR_MESSAGES["conversion_cancelled"])
            self._token = None

    async def convert(self, video_ref: str, options: ConversionOptions) -> ConversionResult | None:
        """
        Produce (or fetch from cache) the stereo result for a video.

        Out-of-range options are reported in ``last_validation`` but do not
        stop the run. Returns None when the run is cancelled or fails; the
        reason is in ``state``.
        """
        report = validate_options(options)
        self.last_validation = report
        if not report.valid and self.verbose:
            for message in report.errors:
                print(warning(message))

        key = self.result_cache.make_key(video_ref, options)
        cached = self.result_cache.get(key)
        if cached is not None:
            self._supersede()
            self.state = ConversionSessionState(status=SessionStatus.COMPLETED, result=cached)
            self._emit(100)
            return cached

        self._supersede()
        token = CancellationToken()
        self._token = token
        self.state = ConversionSessionState(status=SessionStatus.CONVERTING)

        try:
            for progress in progress_steps(self.step_percent):
                token.raise_if_cancelled(ERROR_MESSAGES["conversion_cancelled"])
                if self._token is token:
                    self._emit(progress)
                await asyncio.sleep(self.step_delay)
            token.raise_if_cancelled(ERROR_MESSAGES["conversion_cancelled"])

            shift = compute_shift(options.pupil_distance, options.convergence_distance)
            result = ConversionResult(
                video_ref=video_ref,
                shift_percent=shift,
                uri=annotate_locator(video_ref, shift),
            )
            self.result_cache.put(key, result)
        except CancellationError as e:
            if self._token is token:
                self._token = None
                self.state = ConversionSessionState(status=SessionStatus.CANCELLED, error=str(e))
            return None
        except Exception as e:
            if self._token is token:
                self._token = None
                self.state = ConversionSessionState(
                    status=SessionStatus.FAILED,
                    error=str(e) or ERROR_MESSAGES["conversion_failed"],
                )
            return None

        if self._token is token:
            self._token = None
            self.state = ConversionSessionState(
                status=SessionStatus.COMPLETED, progress=100, result=result
            )
            if self.verbose:
                print(step_complete(f"Converted {video_ref} (shift {format_shift(shift)}%)"))
        return result

    def cancel(self) -> None:
        """Abort the run in flight and mark the session cancelled."""
        self._supersede()
        self.state = ConversionSessionState(
            status=SessionStatus.CANCELLED,
            progress=0,
            error=ERROR_MESSAGES["conversion_cancelled"],
            result=self.state.result,
        )

    def clear_cache(self) -> None:
        """Forget every cached result; an in-flight run is unaffected."""
        self.result_cache.clear()
        self.state.result = None

    def get_stats(self) -> dict:
        return {
            "cache_size": len(self.result_cache),
            "is_converting": self.state.is_converting,
            "progress": self.state.progress,
        }
