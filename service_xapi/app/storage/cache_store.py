"""
TTL result cache over the document store.
"""

import time
from typing import TYPE_CHECKING, Any, Callable, Optional

from shared.errors import StoreUnavailableError
from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector
    from .document_store import DocumentStore


DEFAULT_TTL = 12 * 60 * 60
SHORT_TTL = 30 * 60


class CacheStore:
    """Memoizes opaque payloads under ``{entry_type}_{key}``.

    Freshness is decided at read time against the TTL the caller passes in.
    Stale entries are left in place and simply overwritten by the next write.
    """

    COLLECTION = "x_cache"

    def __init__(
        self,
        store: "DocumentStore",
        *,
        default_ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.default_ttl = default_ttl
        self.metrics = metrics
        self.logger = get_logger("x_api.storage.cache")
        self._clock = clock

    @staticmethod
    def make_id(key: str, entry_type: str) -> str:
        return f"{entry_type}_{key}"

    async def get(self, key: str, entry_type: str, ttl: Optional[float] = None) -> Optional[Any]:
        """Return the cached payload, or None when absent, stale or unreachable."""
        ttl = self.default_ttl if ttl is None else ttl
        doc_id = self.make_id(key, entry_type)

        try:
            document = await self.store.find_one(self.COLLECTION, doc_id)
        except StoreUnavailableError as e:
            self.logger.warning("Cache read degraded to miss", entry_type=entry_type, error=e.message)
            self._record(entry_type, hit=False)
            return None

        if document is None or "timestamp" not in document:
            self._record(entry_type, hit=False)
            return None

        age = self._clock() - float(document["timestamp"])
        if age > ttl:
            self.logger.debug("Cache entry stale", entry_type=entry_type, age_seconds=round(age, 3))
            self._record(entry_type, hit=False)
            return None

        self._record(entry_type, hit=True)
        return document.get("data")

    async def set(self, key: str, entry_type: str, payload: Any, ttl: Optional[float] = None) -> bool:
        """Upsert the payload with the current write time. False when the write failed."""
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()

        try:
            await self.store.upsert(
                self.COLLECTION,
                self.make_id(key, entry_type),
                {
                    "data": payload,
                    "timestamp": now,
                    "ttl": ttl,
                    "expiresAt": now + ttl,
                },
            )
        except StoreUnavailableError as e:
            self.logger.error("Cache write failed", entry_type=entry_type, error=e.message)
            return False
        except (TypeError, ValueError) as e:
            self.logger.error("Cache payload not serializable", entry_type=entry_type, error=str(e))
            return False

        return True

    def _record(self, entry_type: str, hit: bool) -> None:
        if self.metrics:
            self.metrics.record_cache_lookup(entry_type, hit)
