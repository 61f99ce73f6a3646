"""
In-process session state shared by resolver invocations.

These objects are created once by the service at startup, injected into the
resolver, and cleared at shutdown. Nothing here is persisted or evicted.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Dict, Generic, Optional, TypeVar

from .models import CookieJar

if TYPE_CHECKING:  # pragma: no cover
    from ..platform.base import PlatformClient

V = TypeVar("V")


class _IdentityMap(Generic[V]):
    """Identity-keyed map; last write wins."""

    def __init__(self) -> None:
        self._entries: Dict[str, V] = {}

    def get(self, identity: str) -> Optional[V]:
        return self._entries.get(identity)

    def set(self, identity: str, value: V) -> None:
        self._entries[identity] = value

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class InstanceRegistry(_IdentityMap["PlatformClient"]):
    """Live authenticated client per identity."""


class CookieMemo(_IdentityMap[CookieJar]):
    """Last known-good cookie jar per identity, for this process only."""

    def set(self, identity: str, value: CookieJar) -> None:
        super().set(identity, list(value))


class KeyedLock:
    """One ``asyncio.Lock`` per key, dropped once nobody holds or awaits it."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}

    @asynccontextmanager
    async def acquire(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
