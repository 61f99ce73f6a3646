"""
Durable store of the last validated cookie jar per account.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from shared.errors import StoreUnavailableError
from shared.logging import get_logger

from ..auth.models import Cookie, CookieJar, jar_from_dicts, jar_to_dicts

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .document_store import DocumentStore


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionRecord:
    """Persisted session: identity, cookie jar, last update."""

    identity: str
    cookies: CookieJar
    updated_at: Optional[datetime] = None


class SessionStore:
    """Identity-keyed upsert-only cookie jar store."""

    COLLECTION = "cookies"

    def __init__(self, store: "DocumentStore", *, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.logger = get_logger("x_api.storage.sessions")
        self._clock = clock

    async def get(self, identity: str) -> Optional[SessionRecord]:
        """Return the stored record; None when absent or when the store is down."""
        try:
            document = await self.store.find_one(self.COLLECTION, identity)
        except StoreUnavailableError as e:
            self.logger.warning("Session store read degraded to miss", identity=identity, error=e.message)
            return None

        if not document or not document.get("cookies"):
            return None

        try:
            cookies = jar_from_dicts(document["cookies"])
        except (KeyError, TypeError) as e:
            self.logger.warning("Stored cookie jar is malformed", identity=identity, error=str(e))
            return None

        updated_at = document.get("updatedAt")
        try:
            updated = datetime.fromisoformat(updated_at) if updated_at else None
        except (TypeError, ValueError) as e:
            self.logger.warning("Stored session timestamp is malformed", identity=identity, error=str(e))
            updated = None

        return SessionRecord(identity=identity, cookies=cookies, updated_at=updated)

    async def put(self, identity: str, jar: Sequence[Cookie]) -> SessionRecord:
        """Upsert the jar. Raises StoreUnavailableError when the write fails."""
        record = SessionRecord(identity=identity, cookies=list(jar), updated_at=self._clock())
        await self.store.upsert(
            self.COLLECTION,
            identity,
            {
                "cookies": jar_to_dicts(record.cookies),
                "updatedAt": record.updated_at.isoformat(),
            },
        )
        self.logger.debug("Session cookies saved", identity=identity, cookie_count=len(record.cookies))
        return record
