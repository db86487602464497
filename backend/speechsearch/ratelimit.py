import threading
import time
from typing import Callable, Dict


class FixedWindowLimiter:
    """Per-client request counter over wall-clock aligned windows.

    Window ``n`` covers ``[n * window_sec, (n + 1) * window_sec)``; every
    client gets ``limit`` requests per window.
    """

    def __init__(self, limit: int = 120, window_sec: float = 60,
                 clock: Callable[[], float] = time.time):
        self.limit = limit
        self.window = window_sec
        self.clock = clock
        self.bucket: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def _window_of(self, now: float) -> int:
        return int(now // self.window)

    def allow(self, client_id: str) -> bool:
        now = self._window_of(self.clock())
        with self._lock:
            b = self.bucket.get(client_id)
            if not b or b["ts"] != now:
                self.bucket[client_id] = {"ts": now, "count": 1}
                return self.limit > 0
            if b["count"] >= self.limit:
                return False
            b["count"] += 1
            return True

    def remaining(self, client_id: str) -> int:
        now = self._window_of(self.clock())
        with self._lock:
            b = self.bucket.get(client_id)
            if not b or b["ts"] != now:
                return self.limit
            return max(0, self.limit - b["count"])

    def retry_after(self) -> float:
        """Seconds until the current window closes."""
        now = self.clock()
        return (self._window_of(now) + 1) * self.window - now

    def purge_stale(self) -> int:
        now = self._window_of(self.clock())
        with self._lock:
            stale = [k for k, b in self.bucket.items() if b["ts"] != now]
            for k in stale:
                del self.bucket[k]
        return len(stale)
