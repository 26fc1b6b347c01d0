from __future__ import annotations

import time
from threading import Lock
from typing import Callable, Dict, Iterable, Optional, Tuple

from .entities import Coordinate, UnifiedForecast


class ForecastCache:
    """In-process TTL cache for unified forecasts."""

    def __init__(self, ttl: float = 30 * 60, time_func: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._time_func = time_func
        self._storage: Dict[str, Tuple[float, UnifiedForecast]] = {}
        self._lock = Lock()

    @staticmethod
    def key_for(coordinate: Coordinate, spot_id: Optional[str] = None, providers: Iterable[str] = ()) -> str:
        key = f"forecast:{coordinate.latitude:.3f}:{coordinate.longitude:.3f}"
        if spot_id:
            key = f"{key}:{spot_id}"
        names = sorted(providers)
        if names:
            key = f"{key}:{','.join(names)}"
        return key

    def get(self, key: str) -> Optional[UnifiedForecast]:
        with self._lock:
            item = self._storage.get(key)
            if not item:
                return None
            expires_at, value = item
            if expires_at < self._time_func():
                self._storage.pop(key, None)
                return None
            return value

    def set(self, key: str, value: UnifiedForecast, ttl: Optional[float] = None) -> None:
        ttl = self.ttl if ttl is None else ttl
        with self._lock:
            self._storage[key] = (self._time_func() + ttl, value)

    def clear(self) -> None:
        with self._lock:
            self._storage.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._storage)


__all__ = ["ForecastCache"]
