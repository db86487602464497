import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional


class QueryCache:
    """Short-lived provider payload cache.

    Entries expire ``ttl`` seconds after insertion and are dropped lazily on
    lookup. Reads never extend an entry's lifetime. ``capacity`` bounds memory
    by evicting the least recently used entry.
    """

    def __init__(self, capacity: int = 1024, ttl_sec: float = 300,
                 clock: Callable[[], float] = time.time):
        self.capacity = capacity
        self.ttl = ttl_sec
        self.clock = clock
        self.data: "OrderedDict[str, tuple[float, Any]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        now = self.clock()
        with self._lock:
            if key in self.data:
                expires_at, val = self.data[key]
                if now < expires_at:
                    self.data.move_to_end(key)
                    return val
                del self.data[key]
        return None

    def set(self, key: str, value: Any, ttl: Optional[float] = None):
        expires_at = self.clock() + (self.ttl if ttl is None else ttl)
        with self._lock:
            if key in self.data:
                self.data.move_to_end(key)
            self.data[key] = (expires_at, value)
            while len(self.data) > self.capacity:
                self.data.popitem(last=False)

    def purge_expired(self) -> int:
        now = self.clock()
        with self._lock:
            dead = [k for k, (exp, _) in self.data.items() if exp <= now]
            for k in dead:
                del self.data[k]
        return len(dead)

    def clear(self):
        with self._lock:
            self.data.clear()

    def __len__(self) -> int:
        return len(self.data)


def normalize_query(q: str) -> str:
    return q.strip().lower()


def cache_key(provider: str, q: str) -> str:
    return f"search:{provider}:{normalize_query(q)}"
