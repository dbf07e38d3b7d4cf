"""Bounded retry with exponential backoff for Notion API calls."""

from __future__ import annotations

import asyncio
import re
from typing import Any, Awaitable, Callable, Optional

from notion_posts.core.logging import get_logger
from notion_posts.core.results import CANCELLED, RETRY_EXHAUSTED, Cancellation, Failure, Success, is_cancelled
from notion_posts.ingestion.client import NotionAPIError

log = get_logger("ingestion.throttle")

OVERLOAD_STATUS_CODES = frozenset({429, 502, 503, 504})
_STATUS_IN_MESSAGE = re.compile(r"\b(429|502|503|504)\b")

Operation = Callable[[], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]


def is_overload(exc: BaseException) -> bool:
    """True when the failure carries one of Notion's rate-limit/overload markers."""
    if isinstance(exc, NotionAPIError):
        return exc.status_code in OVERLOAD_STATUS_CODES
    return bool(_STATUS_IN_MESSAGE.search(str(exc)))


class ThrottledInvoker:
    """Calls an operation until it succeeds or the attempt budget is spent.

    The delay after failed attempt ``k`` is ``initial_delay_ms * 2 ** (k - 1)``.
    Overload and other failures share the same policy; they only differ in
    the log level used to report them.
    """

    def __init__(self, max_attempts: int = 10, initial_delay_ms: int = 400, sleep: Sleep = asyncio.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.initial_delay_ms = initial_delay_ms
        self.sleep = sleep

    async def invoke(
        self,
        operation: Operation,
        label: str,
        cancellation: Optional[Cancellation] = None,
    ) -> Success[Any] | Failure:
        delay_ms = self.initial_delay_ms
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_attempts + 1):
            if is_cancelled(cancellation):
                log.warning(f"{label}: cancelled before attempt {attempt}")
                return Failure(label, CANCELLED, attempt - 1, last_error)

            log.debug(f"{label}: attempt {attempt}/{self.max_attempts}")
            try:
                value = await operation()
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                if attempt == self.max_attempts:
                    break
                if is_overload(exc):
                    log.warning(f"{label}: overloaded on attempt {attempt}, retrying in {delay_ms}ms ({exc})")
                else:
                    log.error(f"{label}: attempt {attempt} failed, retrying in {delay_ms}ms ({exc!r})")
                await self.sleep(delay_ms / 1000)
                delay_ms *= 2
                continue

            if attempt > 1:
                log.info(f"{label}: succeeded on attempt {attempt}")
            return Success(value, attempt)

        failure = Failure(label, RETRY_EXHAUSTED, self.max_attempts, last_error)
        log.error(f"Retry budget exhausted: {failure.describe()}")
        return failure
