"""Bounded retry of operations that lose optimistic-concurrency races."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from fleetview.utils.errors import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Backoff:
    """Backoff schedule for conflict retries."""

    steps: int = 5
    """Maximum number of attempts."""

    duration: float = 0.01
    """Initial sleep between attempts, in seconds."""

    factor: float = 1.0
    """Multiplier applied to the sleep after every attempt."""

    jitter: float = 0.1
    """Random extra fraction of the sleep added to each wait."""

    def delays(self) -> list[float]:
        """Sleeps between consecutive attempts (``steps - 1`` values)."""
        result = []
        duration = self.duration
        for _ in range(max(self.steps - 1, 0)):
            wait = duration
            if self.jitter > 0:
                wait += random.uniform(0, self.jitter * duration)
            result.append(wait)
            duration *= self.factor
        return result


DEFAULT_RETRY = Backoff()


def retry_on_conflict(
    fn: Callable[[], T],
    backoff: Backoff = DEFAULT_RETRY,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``fn`` until it stops raising ConflictError or attempts run out.

    Any other exception propagates immediately. When every attempt conflicts
    the last ConflictError is raised.
    """
    delays = backoff.delays()
    attempt = 0
    while True:
        attempt += 1
        try:
            return fn()
        except ConflictError as e:
            if attempt >= backoff.steps:
                logger.warning(f"Giving up after {attempt} conflicting attempts: {e}")
                raise
            logger.debug(f"Conflict on attempt {attempt}/{backoff.steps}, retrying: {e}")
            sleep(delays[attempt - 1])
