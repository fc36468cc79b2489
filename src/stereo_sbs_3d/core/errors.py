"""
Error taxonomy for the conversion engine.

Processing components capture these into their state objects rather than
letting them escape to callers; they are still real exceptions so they can be
raised and caught inside the pipeline.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all conversion engine errors."""


class ValidationError(EngineError):
    """One or more conversion options are out of range."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid options")


class CancellationError(EngineError):
    """The active cancellation token was signalled."""


class ExtractionError(EngineError):
    """The frame source failed to deliver a frame."""

    def __init__(self, message: str, frame_index: int | None = None):
        self.frame_index = frame_index
        super().__init__(message)


class ConversionError(EngineError):
    """Unexpected failure while synthesizing or caching frames."""
