"""Process-local cache of active promo codes"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from ...domain.entities.promo_code import PromoCode

logger = logging.getLogger(__name__)


class PromoCache:
    """Small TTL cache in front of the promo code table.

    Entries expire after ``ttl_seconds``. When full, the oldest insertion is
    evicted. Whoever increments a code's usage must call ``evict`` so the
    next checkout sees the new ``used_count``.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        max_entries: int = 100,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._timer = timer
        self._entries: "OrderedDict[str, Tuple[float, PromoCode]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, code: str) -> Optional[PromoCode]:
        key = PromoCode.normalize(code)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, promo = entry
            if self._timer() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return promo

    def put(self, promo: PromoCode) -> None:
        key = PromoCode.normalize(promo.code)
        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Promo cache full, evicted {evicted}")
            self._entries[key] = (self._timer(), promo)

    def evict(self, code: str) -> None:
        with self._lock:
            self._entries.pop(PromoCode.normalize(code), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, code: str) -> bool:
        return self.get(code) is not None
