"""RetryPolicy — reschedule or give up on a queue item that found no technician."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

DEFAULT_RETRY_DELAY = timedelta(minutes=15)


@dataclass(frozen=True)
class RetryDecision:
    retry_count: int
    exhausted: bool
    next_retry_at: datetime | None  # None when exhausted


def plan_retry(
    retry_count: int,
    max_retries: int,
    now: datetime,
    delay: timedelta = DEFAULT_RETRY_DELAY,
    multiplier: float = 1.0,
) -> RetryDecision:
    """Count one more miss and decide what happens next.

    The delay is fixed by default; a multiplier above 1 grows it
    geometrically with each retry (delay * multiplier ** (retries - 1)).
    """
    attempts = retry_count + 1
    if attempts >= max_retries:
        return RetryDecision(retry_count=attempts, exhausted=True, next_retry_at=None)

    backoff = delay * (multiplier ** (attempts - 1))
    return RetryDecision(
        retry_count=attempts,
        exhausted=False,
        next_retry_at=now + backoff,
    )
