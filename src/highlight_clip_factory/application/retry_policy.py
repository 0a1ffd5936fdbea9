from __future__ import annotations

import time
from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")


def retry(
    operation: Callable[[], T],
    retries: int,
    delay_sec: float = 1.0,
    retry_on: tuple[type[Exception], ...] = (Exception,),
) -> T:
    """Run `operation`, retrying up to `retries` times on `retry_on` errors with linear backoff.

    Errors outside `retry_on` propagate from the first attempt.
    """
    attempt = 0
    while True:
        try:
            return operation()
        except retry_on:
            if attempt >= max(0, retries):
                raise
            attempt += 1
            time.sleep(delay_sec * attempt)
