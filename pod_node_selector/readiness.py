import time
from typing import Callable


class ReadinessGate:
    """Reports whether the namespace cache has finished its initial sync."""

    def __init__(self, ready_func: Callable[[], bool], poll_interval: float = 0.1) -> None:
        self._ready_func = ready_func
        self._poll_interval = poll_interval

    def is_ready(self) -> bool:
        return bool(self._ready_func())

    def wait(self, timeout: float = 0) -> bool:
        """Poll for up to ``timeout`` seconds; a zero timeout checks once."""
        deadline = time.monotonic() + max(0.0, timeout)
        while True:
            if self.is_ready():
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            time.sleep(min(self._poll_interval, remaining))
