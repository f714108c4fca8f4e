from __future__ import annotations

import time
from typing import Callable, Dict, Optional, Tuple

from ..config import SETTINGS, ProxySettings


CacheEntry = Tuple[float, bytes]

MAX_ENTRIES = 16


class ResponseCache:
    """Rendered PNGs keyed by request, dropped after ``settings.cache_ttl``."""

    def __init__(
        self,
        settings: ProxySettings = SETTINGS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[bytes]:
        entry = self._entries.get(key)
        if not entry:
            return None
        timestamp, data = entry
        if self._clock() - timestamp > self._settings.cache_ttl:
            self._entries.pop(key, None)
            return None
        return data

    def put(self, key: str, data: bytes) -> None:
        if key not in self._entries and len(self._entries) >= MAX_ENTRIES:
            oldest = min(self._entries.items(), key=lambda item: item[1][0])[0]
            self._entries.pop(oldest, None)
        self._entries[key] = (self._clock(), data)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


CACHE = ResponseCache()
_last_good_png: bytes = b""


def remember_last_good(data: bytes) -> None:
    global _last_good_png
    _last_good_png = data


def last_good_png() -> Optional[bytes]:
    return _last_good_png or None
