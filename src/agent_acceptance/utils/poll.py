# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

import math
import time
from typing import Callable, Optional


class PollTimeout(RuntimeError):
    pass


def wait_until(
    predicate: Callable[[], bool],
    *,
    timeout: float,
    interval: float = 1.0,
    description: str = "condition",
    on_attempt: Optional[Callable[[int], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """
    Poll *predicate* until it returns True or the timeout is used up.

    timeout: upper bound in seconds, also caps attempts at timeout/interval + 1
    interval: seconds between attempts
    on_attempt: callback(attempt) after each failed check

    Returns the number of attempts used. Raises PollTimeout otherwise.
    """
    max_attempts = max(1, math.floor(timeout / interval) + 1) if interval > 0 else 1
    deadline = clock() + timeout
    for attempt in range(1, max_attempts + 1):
        if predicate():
            return attempt
        if on_attempt:
            on_attempt(attempt)
        if attempt == max_attempts or clock() >= deadline:
            break
        sleep(interval)
    raise PollTimeout(f"{description} not reached within {timeout}s")
