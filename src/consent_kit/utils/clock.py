"""Wall clock helpers."""

import time


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)
