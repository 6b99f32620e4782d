"""Bounded retry for calls against external backends.

A fixed number of attempts with a fixed delay between them. Only the
exception types the caller names as transient are retried; anything else
propagates on the first attempt.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

import structlog
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = structlog.get_logger()

T = TypeVar("T")


class RetryPolicy(BaseModel, frozen=True):
    """How many times to try an operation and how long to wait in between."""

    max_attempts: int = Field(default=3, ge=1)
    delay_seconds: float = Field(default=1.0, ge=0)


class RetryExhaustedError(Exception):
    """Every attempt allowed by the policy failed with a transient error.

    Attributes:
        operation: Name of the retried operation, for logs and messages.
        attempts: How many attempts were made.

    The last transient error is chained as ``__cause__``.
    """

    def __init__(self, operation: str, attempts: int) -> None:
        self.operation = operation
        self.attempts = attempts
        super().__init__(f"{operation} failed after {attempts} attempt(s)")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    transient: tuple[type[BaseException], ...],
    name: str,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await `operation` until it succeeds or the policy is exhausted.

    `operation` is a zero-argument factory so each attempt gets a fresh
    awaitable. `sleep` is injectable so tests do not wait real time.
    """
    last_error: BaseException | None = None
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except transient as exc:
            last_error = exc
            logger.warning(
                "transient backend failure",
                operation=name,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                error=str(exc),
            )
            if attempt < policy.max_attempts:
                await sleep(policy.delay_seconds)
    raise RetryExhaustedError(name, policy.max_attempts) from last_error
