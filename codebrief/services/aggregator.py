"""Concurrent news aggregation across independent collectors.

Runs every registered collector as its own asyncio task, bounded by a
semaphore and a per-task deadline, and merges the items of the collectors
that completed. A failing or slow collector is recorded and skipped; it never
aborts the batch.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from codebrief.schemas.news import NewsItem

logger = logging.getLogger(__name__)

Collector = Callable[[], Awaitable[Sequence[NewsItem]]]

DEFAULT_TASK_TIMEOUT = 60.0
DEFAULT_SHUTDOWN_GRACE = 30.0


class TaskStatus(StrEnum):
    """Terminal state of one collector task."""

    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class CollectorTask:
    """A named unit of work submitted to the aggregator."""

    name: str
    collect: Collector


@dataclass(frozen=True)
class CollectorOutcome:
    """Result of one collector task, passed back instead of raising."""

    name: str
    status: TaskStatus
    items: tuple[NewsItem, ...] = ()
    error: str | None = None
    elapsed: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status is TaskStatus.COMPLETED


@dataclass(frozen=True)
class AggregationReport:
    """Merged items plus the per-collector outcomes of one batch."""

    items: list[NewsItem] = field(default_factory=list)
    outcomes: list[CollectorOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[CollectorOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[CollectorOutcome]:
        return [o for o in self.outcomes if not o.succeeded]


class NewsAggregator:
    """Fan-out/fan-in orchestrator for a fixed set of collectors.

    Args:
        tasks: Collectors to run, one task each.
        task_timeout: Deadline in seconds for each collector.
        shutdown_grace: Seconds to wait for cancelled tasks to wind down
            when the batch is finalized.
        max_workers: Maximum collectors running at once. Defaults to the
            number of tasks.
    """

    def __init__(
        self,
        tasks: Sequence[CollectorTask],
        *,
        task_timeout: float = DEFAULT_TASK_TIMEOUT,
        shutdown_grace: float = DEFAULT_SHUTDOWN_GRACE,
        max_workers: int | None = None,
    ) -> None:
        if task_timeout <= 0:
            raise ValueError("task_timeout must be positive")
        if shutdown_grace < 0:
            raise ValueError("shutdown_grace must not be negative")
        self._tasks = list(tasks)
        self._task_timeout = task_timeout
        self._shutdown_grace = shutdown_grace
        self._max_workers = max(1, max_workers or len(self._tasks) or 1)

    @property
    def task_names(self) -> list[str]:
        return [task.name for task in self._tasks]

    async def collect_all_news(self) -> list[NewsItem]:
        """Run all collectors and return only the merged items."""
        report = await self.collect_all()
        return report.items

    async def collect_all(self) -> AggregationReport:
        """Run all collectors concurrently and merge successful results.

        Items are merged in task registration order; each collector's own
        item order is preserved.
        """
        if not self._tasks:
            logger.info("No collectors registered, nothing to collect")
            return AggregationReport()

        logger.info(
            "Starting collection from %d source(s) (timeout=%.0fs, workers=%d)",
            len(self._tasks),
            self._task_timeout,
            self._max_workers,
        )
        semaphore = asyncio.Semaphore(self._max_workers)
        running = [
            asyncio.create_task(
                self._run_task(task, semaphore), name=f"collector:{task.name}"
            )
            for task in self._tasks
        ]

        try:
            outcomes = list(await asyncio.gather(*running))
        finally:
            await self._shutdown(running)

        items: list[NewsItem] = []
        for outcome in outcomes:
            items.extend(outcome.items)

        report = AggregationReport(items=items, outcomes=outcomes)
        logger.info(
            "Collection finalized: %d item(s), %d source(s) succeeded, %d failed",
            len(items),
            len(report.succeeded),
            len(report.failed),
        )
        return report

    async def _run_task(
        self, task: CollectorTask, semaphore: asyncio.Semaphore
    ) -> CollectorOutcome:
        """Run one collector under the deadline and convert errors to an outcome."""
        async with semaphore:
            started = time.monotonic()
            deadline = asyncio.timeout(self._task_timeout)
            try:
                async with deadline:
                    collected = tuple(await task.collect())
            except TimeoutError as exc:
                elapsed = time.monotonic() - started
                if deadline.expired():
                    logger.error(
                        "Collector '%s' timed out after %.1fs", task.name, elapsed
                    )
                    return CollectorOutcome(
                        name=task.name,
                        status=TaskStatus.TIMED_OUT,
                        error=f"timed out after {self._task_timeout:.0f}s",
                        elapsed=elapsed,
                    )
                return self._failed(task, exc, elapsed)
            except Exception as exc:
                return self._failed(task, exc, time.monotonic() - started)

            elapsed = time.monotonic() - started
            logger.info(
                "Collector '%s' completed: %d item(s) in %.1fs",
                task.name,
                len(collected),
                elapsed,
            )
            return CollectorOutcome(
                name=task.name,
                status=TaskStatus.COMPLETED,
                items=collected,
                elapsed=elapsed,
            )

    @staticmethod
    def _failed(
        task: CollectorTask, exc: Exception, elapsed: float
    ) -> CollectorOutcome:
        logger.error(
            "Collector '%s' failed: %s: %s", task.name, type(exc).__name__, exc
        )
        return CollectorOutcome(
            name=task.name,
            status=TaskStatus.FAILED,
            error=f"{type(exc).__name__}: {exc}",
            elapsed=elapsed,
        )

    async def _shutdown(self, running: list[asyncio.Task[CollectorOutcome]]) -> None:
        """Cancel unfinished tasks and wait up to the grace period for them."""
        unfinished = [t for t in running if not t.done()]
        if not unfinished:
            return

        logger.warning("Cancelling %d unfinished collector task(s)", len(unfinished))
        for t in unfinished:
            t.cancel()
        _, still_pending = await asyncio.wait(
            unfinished, timeout=self._shutdown_grace
        )
        if still_pending:
            logger.error(
                "%d collector task(s) did not stop within %.0fs grace period: %s",
                len(still_pending),
                self._shutdown_grace,
                ", ".join(t.get_name() for t in still_pending),
            )
