from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    base_delay_s: float = 0.05
    max_delay_s: float = 0.25

def with_retries(
    fn: Callable[[], T],
    policy: RetryPolicy,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    """
    Caller side retry with capped exponential backoff. Transports never retry
    on their own; wrap the write you want retried, e.g.
    with_retries(lambda: client.write(line), RetryPolicy(attempts=5)).
    """
    if policy.attempts < 1:
        raise ValueError("attempts must be >= 1")
    last_exc: BaseException | None = None
    delay = policy.base_delay_s
    for attempt in range(1, policy.attempts + 1):
        try:
            return fn()
        except retry_on as e:
            last_exc = e
            logger.warning("attempt %d/%d failed: %s", attempt, policy.attempts, e)
            if attempt < policy.attempts:
                time.sleep(delay)
                delay = min(policy.max_delay_s, delay * 2)
    assert last_exc is not None
    raise last_exc
