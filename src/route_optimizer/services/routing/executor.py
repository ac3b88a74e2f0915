"""Bounded, failure-tolerant dispatch of chunk requests to a directions provider."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Sequence

from .models import Chunk, ChunkOutcome, ChunkResult

DEFAULT_MAX_CONCURRENCY = 3
CANCELLED = "cancelled"
# How often the dispatcher wakes up to look at the cancel event while calls are in flight.
_CANCEL_POLL_SECONDS = 0.05

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_retries: int = 2
    backoff_seconds: float = 0.5

    def delay(self, attempt: int) -> float:
        """Exponential backoff before retry number ``attempt`` (1-based)."""
        return self.backoff_seconds * (2 ** (attempt - 1))


def _is_cancelled(cancel_event: threading.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def _call_with_retries(
    chunk: Chunk,
    call_provider: Callable[[Chunk], ChunkResult],
    retry: RetryPolicy,
    cancel_event: threading.Event | None,
) -> ChunkOutcome:
    attempt = 0
    while True:
        attempt += 1
        try:
            result = call_provider(chunk)
            return ChunkOutcome(index=chunk.index, result=result, attempts=attempt)
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
            if attempt > retry.max_retries:
                logger.warning(f"Directions request for chunk {chunk.index} failed after {attempt} attempt(s): {reason}")
                return ChunkOutcome(index=chunk.index, error=reason, attempts=attempt)
            wait_time = retry.delay(attempt)
            logger.debug(
                f"Directions request for chunk {chunk.index} failed, retrying in {wait_time:.2f}s "
                f"(attempt {attempt}/{retry.max_retries}): {reason}"
            )
            if cancel_event is None:
                time.sleep(wait_time)
            elif cancel_event.wait(wait_time):
                return ChunkOutcome(index=chunk.index, error=CANCELLED, attempts=attempt)


def run_chunks(
    chunks: Sequence[Chunk],
    call_provider: Callable[[Chunk], ChunkResult],
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    retry: RetryPolicy | None = None,
    cancel_event: threading.Event | None = None,
) -> list[ChunkOutcome]:
    """Run ``call_provider`` for every chunk with at most ``max_concurrency`` calls in flight.

    The returned outcomes line up with ``chunks`` by position, whatever order the
    calls finish in. A failed call never stops the others; it is retried
    according to ``retry`` and then recorded with its error.

    When ``cancel_event`` is set, no further chunks are dispatched and calls still
    in flight are abandoned. Both are reported with the ``"cancelled"`` error;
    outcomes that had already completed are kept.
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
    if not chunks:
        return []

    retry = retry or RetryPolicy()
    start_time = time.time()
    outcomes: list[ChunkOutcome | None] = [None] * len(chunks)
    pending = deque(enumerate(chunks))
    in_flight: dict[Future, int] = {}
    cancelled = False

    executor = ThreadPoolExecutor(max_workers=max_concurrency, thread_name_prefix="directions")
    try:
        while pending or in_flight:
            while pending and len(in_flight) < max_concurrency:
                if _is_cancelled(cancel_event):
                    cancelled = True
                    break
                position, chunk = pending.popleft()
                future = executor.submit(_call_with_retries, chunk, call_provider, retry, cancel_event)
                in_flight[future] = position
            if cancelled:
                break

            done, _ = wait(
                in_flight,
                timeout=_CANCEL_POLL_SECONDS if cancel_event is not None else None,
                return_when=FIRST_COMPLETED,
            )
            for future in done:
                position = in_flight.pop(future)
                outcomes[position] = future.result()
            if _is_cancelled(cancel_event) and (pending or in_flight):
                cancelled = True
                break
    finally:
        executor.shutdown(wait=not cancelled, cancel_futures=cancelled)

    if cancelled:
        for future, position in in_flight.items():
            if future.done() and not future.cancelled():
                outcomes[position] = future.result()
        logger.info(
            f"Directions batch cancelled: {sum(1 for o in outcomes if o is None)}/{len(chunks)} chunk requests abandoned"
        )

    final = [
        outcome if outcome is not None else ChunkOutcome(index=chunks[position].index, error=CANCELLED)
        for position, outcome in enumerate(outcomes)
    ]

    elapsed = time.time() - start_time
    failed = sum(1 for outcome in final if not outcome.ok)
    if failed:
        logger.warning(f"Partial failure: {failed}/{len(final)} chunk requests failed ({elapsed:.2f}s)")
    else:
        logger.info(f"Completed {len(final)} chunk requests in {elapsed:.2f}s (max {max_concurrency} concurrent)")
    return final
