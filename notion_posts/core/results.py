"""Typed outcomes shared by the retrieval pipeline.

Every stage returns one of these instead of raising, so the post assembler
can decide in a single place how a failed run is reported.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

RETRY_EXHAUSTED = "retry_exhausted"
CANCELLED = "cancelled"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    attempts: int = 1


@dataclass(frozen=True)
class Failure:
    """Terminal remote failure (retries spent or run cancelled)."""

    label: str
    reason: str
    attempts: int = 0
    error: Optional[BaseException] = field(default=None, compare=False)

    def describe(self) -> str:
        if self.reason == CANCELLED:
            return f"{self.label}: cancelled after {self.attempts} attempt(s)"
        return f"{self.label}: {self.reason} after {self.attempts} attempt(s) ({self.error!r})"


@dataclass(frozen=True)
class Invalid:
    """Structural mismatch in an already-fetched response; never retried."""

    reason: str
    detail: str = ""

    def describe(self) -> str:
        return f"{self.reason}: {self.detail}" if self.detail else self.reason


class Cancellation:
    """External cancel signal and/or deadline checked between remote calls.

    The deadline is expressed in event-loop time (``loop.time()``).
    """

    def __init__(self, event: Optional[asyncio.Event] = None, deadline: Optional[float] = None):
        self.event = event
        self.deadline = deadline

    @classmethod
    def after(cls, seconds: Optional[float], event: Optional[asyncio.Event] = None) -> "Cancellation":
        if seconds is None:
            return cls(event=event)
        return cls(event=event, deadline=asyncio.get_running_loop().time() + seconds)

    def is_cancelled(self) -> bool:
        if self.event is not None and self.event.is_set():
            return True
        if self.deadline is not None and asyncio.get_running_loop().time() >= self.deadline:
            return True
        return False


def is_cancelled(cancellation: Optional[Cancellation]) -> bool:
    return cancellation is not None and cancellation.is_cancelled()
