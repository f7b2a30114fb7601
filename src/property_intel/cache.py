from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .geo import degree_distance

DEFAULT_TTL_S = 24 * 60 * 60
DEFAULT_EPSILON_DEG = 0.01  # roughly 1 km at the equator
DEFAULT_MAX_ENTRIES = 50


@dataclass(frozen=True)
class CacheEntry:
    latitude: float
    longitude: float
    payload: Any
    stored_at: float
    expires_at: float


class GeoCache:
    """Coordinate-keyed cache with TTL and oldest-first eviction.

    Two points are the same place when their Euclidean distance in degrees
    is below `epsilon`. One lock guards the entry list.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_S,
        epsilon: float = DEFAULT_EPSILON_DEG,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.ttl = float(ttl)
        self.epsilon = float(epsilon)
        self.max_entries = int(max_entries)
        self._clock = clock
        self._entries: List[CacheEntry] = []
        self._lock = threading.Lock()
        self._stats = {"hits": 0, "misses": 0, "evictions": 0, "expired": 0}

    def _near(self, entry: CacheEntry, lat: float, lon: float) -> bool:
        return degree_distance(entry.latitude, entry.longitude, lat, lon) < self.epsilon

    def lookup(self, lat: float, lon: float) -> Tuple[Any, bool]:
        """Return the nearest fresh entry within epsilon.

        Expired entries within epsilon are evicted in the same pass and never
        shadow a fresh one.
        """

        now = self._clock()
        with self._lock:
            best: Optional[Tuple[float, CacheEntry]] = None
            kept: List[CacheEntry] = []
            for entry in self._entries:
                dist = degree_distance(entry.latitude, entry.longitude, lat, lon)
                if dist < self.epsilon:
                    if now > entry.expires_at:
                        self._stats["expired"] += 1
                        continue
                    if best is None or dist < best[0]:
                        best = (dist, entry)
                kept.append(entry)
            self._entries = kept
            if best is None:
                self._stats["misses"] += 1
                return None, False
            self._stats["hits"] += 1
            return best[1].payload, True

    def store(self, lat: float, lon: float, payload: Any) -> None:
        now = self._clock()
        entry = CacheEntry(
            latitude=float(lat),
            longitude=float(lon),
            payload=payload,
            stored_at=now,
            expires_at=now + self.ttl,
        )
        with self._lock:
            self._entries = [e for e in self._entries if not self._near(e, lat, lon)]
            while len(self._entries) >= self.max_entries:
                oldest = min(range(len(self._entries)), key=lambda i: self._entries[i].stored_at)
                self._entries.pop(oldest)
                self._stats["evictions"] += 1
            self._entries.append(entry)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            for key in self._stats:
                self._stats[key] = 0

    def stats(self) -> Dict[str, int]:
        with self._lock:
            out = dict(self._stats)
            out["entries"] = len(self._entries)
            return out

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
