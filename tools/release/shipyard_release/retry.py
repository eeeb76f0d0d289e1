"""Bounded retry with exponential backoff for hosting calls."""

from __future__ import annotations

import logging
import time
from typing import Callable, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 1.0


def call_with_retry(
    func: Callable[[], T],
    *,
    retry_on: Tuple[Type[BaseException], ...],
    attempts: int = DEFAULT_MAX_ATTEMPTS,
    backoff: float = DEFAULT_BACKOFF_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    description: str = "operation",
) -> T:
    """Run ``func`` until it succeeds or ``attempts`` calls have failed.

    Only exceptions listed in ``retry_on`` are retried; the last one is
    re-raised once the budget is spent. The delay doubles after each failure.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        try:
            return func()
        except retry_on as exc:
            if attempt >= attempts:
                logger.error("%s failed after %d attempts: %s", description, attempts, exc)
                raise
            delay = backoff * (2 ** (attempt - 1))
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                description,
                attempt,
                attempts,
                delay,
                exc,
            )
            sleep(delay)

    raise RuntimeError("Unreachable: retry loop must return or raise")  # pragma: no cover


__all__ = ["DEFAULT_BACKOFF_SECONDS", "DEFAULT_MAX_ATTEMPTS", "call_with_retry"]
