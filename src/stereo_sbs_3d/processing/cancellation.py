"""
Cooperative cancellation.

A token is a shared flag polled at loop boundaries. Cancelling never
interrupts an awaited call; the owning loop stops at its next check.
"""

from __future__ import annotations

from ..core.constants import ERROR_MESSAGES
from ..core.errors import CancellationError


class CancellationToken:
    def __init__(self):
        self._cancelled = False
        self.reason: str | None = None

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str | None = None) -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    def raise_if_cancelled(self, default_message: str = ERROR_MESSAGES["processing_cancelled"]) -> None:
        if self._cancelled:
            raise CancellationError(self.reason or default_message)
