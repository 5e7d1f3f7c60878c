"""
Bounded worker pool for per-ticker evaluations. One failing item never cancels
the others; an overall deadline truncates the batch instead of hanging.
"""

from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable, List, Optional, Sequence, TypeVar

logger = logging.getLogger("signal_desk.pool")

T = TypeVar("T", bound=Hashable)
R = TypeVar("R")


@dataclass
class PoolOutcome:
    """results/failures keyed by item; timed_out lists items abandoned at the deadline."""
    results: Dict = field(default_factory=dict)
    failures: Dict = field(default_factory=dict)
    timed_out: List = field(default_factory=list)


def run_bounded(
    items: Sequence[T],
    fn: Callable[[T], R],
    max_workers: int = 4,
    deadline: Optional[float] = None,
) -> PoolOutcome:
    """
    Run fn(item) for each item with at most max_workers in flight.
    deadline: time limit in seconds for the whole batch (None = no limit).
    Exceptions are captured per item as failures[item] = "ExcType: message".
    """
    outcome = PoolOutcome()
    if not items:
        return outcome
    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="signal-desk")
    future_to_item = {executor.submit(fn, item): item for item in items}
    try:
        for future in as_completed(future_to_item, timeout=deadline):
            item = future_to_item[future]
            try:
                outcome.results[item] = future.result()
            except Exception as e:
                logger.warning("Evaluation failed for %s: %s", item, e)
                outcome.failures[item] = f"{type(e).__name__}: {e}"
    except FuturesTimeout:
        done = set(outcome.results) | set(outcome.failures)
        outcome.timed_out = [item for item in items if item not in done]
        logger.warning("Deadline of %.1fs reached, dropping %d pending items", deadline, len(outcome.timed_out))
    finally:
        # running work is left to finish in the background; queued work is cancelled
        executor.shutdown(wait=False, cancel_futures=True)
    return outcome
