"""Polling helpers"""

import time
from typing import Callable, Optional


def poll_condition(
    condition: Callable[[], bool], timeout: Optional[float] = None, interval: float = 0.5
) -> bool:
    """
    Evaluates ``condition`` every ``interval`` seconds until it returns a truthy value.

    :param condition: evaluated at least once, even if the timeout is zero
    :param timeout: seconds on the monotonic clock until polling gives up, ``None`` polls forever
    :param interval: seconds between two evaluations
    :return: True once the condition held, False if the timeout elapsed first
    """
    deadline = None if timeout is None else time.monotonic() + timeout

    while not condition():
        if deadline is None:
            time.sleep(interval)
            continue

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        time.sleep(min(interval, remaining))

    return True
