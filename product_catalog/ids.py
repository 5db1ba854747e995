# product_catalog/ids.py

"""
Time-derived product ids, used by the service for created records and by
the client for records it could not create on the service.
"""

import threading
import time
from typing import Callable


class TimestampIdGenerator:
    """
    Millisecond timestamp ids, bumped when the clock has not advanced so ids
    stay increasing within one process. Separate processes can still collide.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            now = int(self._clock() * 1000)
            self._last = now if now > self._last else self._last + 1
            return str(self._last)
