"""Fixed-delay retry policy shared by every network-calling component.

All exceptions raised by the wrapped operation are treated as retryable.
The policy holds no state between calls, so a single instance can be shared
by concurrent collectors.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from codebrief.config import Settings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded re-attempts with a fixed delay between them.

    Attributes:
        max_attempts: Total attempts, including the first one.
        delay: Seconds to wait between attempts.
    """

    max_attempts: int = 3
    delay: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay must not be negative")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RetryPolicy:
        """Build the policy from the `retry` section of the settings."""
        if settings is None:
            settings = get_settings()
        return cls(
            max_attempts=settings.retry.max_attempts,
            delay=settings.retry.delay_seconds,
        )

    async def call(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        description: str = "operation",
    ) -> T:
        """Run `operation`, retrying on any exception.

        Args:
            operation: Zero-argument coroutine factory, invoked once per attempt.
            description: Label used in log messages.

        Returns:
            The first successful result.

        Raises:
            Exception: The exception from the final attempt, unchanged.
        """
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as exc:
                if attempt >= self.max_attempts:
                    logger.error(
                        "%s failed after %d attempt(s): %s",
                        description,
                        attempt,
                        type(exc).__name__,
                    )
                    raise
                logger.warning(
                    "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                    description,
                    attempt,
                    self.max_attempts,
                    self.delay,
                    type(exc).__name__,
                )
            await asyncio.sleep(self.delay)
            attempt += 1
