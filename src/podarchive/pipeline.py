"""Bounded-concurrency, best-effort batch runner.

Applies an operation to every item on a thread pool. A failing item is logged
and recorded; it never aborts the rest of the batch.
"""

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_CONCURRENCY = 8

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class BatchFailure:
    """An item that failed, identified by its key."""

    key: str
    error: Exception


@dataclass
class BatchResult(Generic[R]):
    """Outputs of the items that succeeded plus the failures.

    Completion order is not input order; callers that need a stable order
    must re-sort by a key carried in the output.
    """

    succeeded: list[R] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)


class BatchObserver(Protocol):
    """Receives progress events from a running batch."""

    def started(self, total: int) -> None: ...

    def succeeded(self, key: str) -> None: ...

    def failed(self, key: str, error: Exception) -> None: ...

    def finished(self, result: BatchResult) -> None: ...


class LoggingObserver:
    """Reports batch progress through structlog."""

    def __init__(self, name: str = "batch") -> None:
        self.logger = logger.bind(component="pipeline", batch=name)

    def started(self, total: int) -> None:
        self.logger.debug("Batch started", total=total)

    def succeeded(self, key: str) -> None:
        self.logger.debug("Item completed", key=key)

    def failed(self, key: str, error: Exception) -> None:
        self.logger.warning("Item failed", key=key, error=str(error))
        if error.__cause__ is not None:
            self.logger.debug("Cause", key=key, cause=str(error.__cause__))

    def finished(self, result: BatchResult) -> None:
        self.logger.debug(
            "Batch finished",
            succeeded=len(result.succeeded),
            failed=len(result.failed),
        )


def run_batch(
    items: Iterable[T],
    operation: Callable[[T], R],
    key: Callable[[T], str] = str,
    concurrency: int = DEFAULT_CONCURRENCY,
    observer: BatchObserver | None = None,
) -> BatchResult[R]:
    """Run an operation over items with at most ``concurrency`` in flight.

    Args:
        items: Inputs to process.
        operation: Callable applied to each item; raising marks it failed.
        key: Derives the identifying key of an item for logs and failures.
        concurrency: Maximum number of operations running at once.
        observer: Progress receiver (logs through structlog if None).

    Returns:
        BatchResult with every success and every failure.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")
    observer = observer or LoggingObserver()
    items = list(items)
    result: BatchResult[R] = BatchResult()
    observer.started(len(items))
    if not items:
        observer.finished(result)
        return result

    with ThreadPoolExecutor(max_workers=min(concurrency, len(items))) as executor:
        futures = {executor.submit(operation, item): key(item) for item in items}
        for future in as_completed(futures):
            item_key = futures[future]
            try:
                output = future.result()
            except Exception as e:
                result.failed.append(BatchFailure(key=item_key, error=e))
                observer.failed(item_key, e)
                continue
            result.succeeded.append(output)
            observer.succeeded(item_key)

    observer.finished(result)
    return result
