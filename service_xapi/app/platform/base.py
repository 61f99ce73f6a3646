"""
Boundary between the service and the platform scraping client.

The service never interprets platform wire formats; it only needs a client
that can log in, report whether it is logged in, exchange cookies, and run
the business primitives below. Results are plain JSON-serializable dicts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover
    from ..auth.models import Cookie


@dataclass(frozen=True)
class MediaAttachment:
    """Raw media uploaded alongside a post."""

    data: bytes
    media_type: str


@runtime_checkable
class PlatformClient(Protocol):
    """One platform session. Instances are bound to a single account."""

    async def login(
        self,
        username: str,
        password: str,
        email: Optional[str] = None,
        two_factor_secret: Optional[str] = None,
    ) -> None: ...

    async def is_logged_in(self) -> bool: ...

    async def get_cookies(self) -> List["Cookie"]: ...

    async def apply_cookies(self, jar: Sequence["Cookie"]) -> None: ...

    async def get_profile(self, username: str) -> Dict[str, Any]: ...

    async def get_user_tweets(self, user_id: str, count: int) -> List[Dict[str, Any]]: ...

    async def fetch_home_timeline(self, count: int) -> List[Dict[str, Any]]: ...

    async def fetch_following_timeline(self, count: int) -> List[Dict[str, Any]]: ...

    async def search_tweets(
        self,
        query: str,
        max_tweets: int,
        mode: str,
        cursor: Optional[str] = None,
    ) -> Dict[str, Any]: ...

    async def get_tweet(self, tweet_id: str) -> Dict[str, Any]: ...

    async def send_tweet(
        self,
        text: str,
        reply_to_id: Optional[str] = None,
        media: Sequence[MediaAttachment] = (),
    ) -> Dict[str, Any]: ...

    async def send_quote_tweet(
        self,
        text: str,
        quote_tweet_id: str,
        media: Sequence[MediaAttachment] = (),
    ) -> Dict[str, Any]: ...

    async def retweet(self, tweet_id: str) -> None: ...

    async def send_tweet_with_poll(
        self,
        text: str,
        options: Sequence[str],
        duration_minutes: int,
    ) -> Dict[str, Any]: ...

    async def get_following(self, user_id: str, count: int) -> List[Dict[str, Any]]: ...


ClientFactory = Callable[[], PlatformClient]
