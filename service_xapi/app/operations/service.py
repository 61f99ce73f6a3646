"""
Business operations over a resolved platform session.
"""

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

from shared.errors import AuthenticationError, OperationError, XApiException
from shared.logging import get_logger

from ..auth.models import Credentials, jar_to_dicts
from ..platform.base import MediaAttachment
from ..storage.cache_store import DEFAULT_TTL, SHORT_TTL

if TYPE_CHECKING:  # pragma: no cover
    from ..auth.resolver import CredentialResolver
    from ..platform.base import PlatformClient
    from ..storage.cache_store import CacheStore

T = TypeVar("T")

CIRCULAR_TWEET_KEYS = frozenset({"inReplyToStatus", "thread"})


def strip_keys(value: Any, keys: frozenset = CIRCULAR_TWEET_KEYS) -> Any:
    """Drop ``keys`` from every mapping nested anywhere in ``value``."""
    if isinstance(value, dict):
        return {k: strip_keys(v, keys) for k, v in value.items() if k not in keys}
    if isinstance(value, (list, tuple)):
        return [strip_keys(item, keys) for item in value]
    return value


class XOperations:
    """Profile, timeline, search, posting and follow-graph operations."""

    def __init__(
        self,
        resolver: "CredentialResolver",
        cache: "CacheStore",
        *,
        search_timeout: float = 15.0,
        short_ttl: float = SHORT_TTL,
        default_ttl: float = DEFAULT_TTL,
    ):
        self.resolver = resolver
        self.cache = cache
        self.search_timeout = search_timeout
        self.short_ttl = short_ttl
        self.default_ttl = default_ttl
        self.logger = get_logger("x_api.operations")

        self._profiles: Dict[str, Dict[str, Any]] = {}

    async def _run(self, operation: str, func: Callable[[], Awaitable[T]]) -> T:
        try:
            return await func()
        except (AuthenticationError, OperationError):
            raise
        except XApiException as e:
            self.logger.error("Operation failed", operation=operation, error=e.message)
            raise OperationError(f"Failed to {operation}: {e.message}") from e
        except Exception as e:
            self.logger.error("Operation failed", operation=operation, error=str(e))
            raise OperationError(f"Failed to {operation}: {e}") from e

    async def _client(self, credentials: Credentials) -> "PlatformClient":
        return await self.resolver.resolve_session(credentials)

    def clear(self) -> None:
        self._profiles.clear()

    async def get_profile(self, credentials: Credentials) -> Dict[str, Any]:
        """Own profile plus the session cookies, memoized per process."""
        username = credentials.username
        if username in self._profiles:
            return self._profiles[username]

        async def _fetch():
            cached = await self.cache.get(username, "profile", self.default_ttl)
            if cached:
                self._profiles[username] = cached
                return cached

            client = await self._client(credentials)
            user = await client.get_profile(username)
            profile = {
                "id": user.get("userId"),
                "username": username,
                "screenName": user.get("name") or username,
                "bio": user.get("biography") or "",
                "cookies": jar_to_dicts(await client.get_cookies()),
            }

            self._profiles[username] = profile
            await self.cache.set(username, "profile", profile, self.default_ttl)
            return profile

        return await self._run("fetch profile", _fetch)

    async def get_target_profile(self, credentials: Credentials, target: str) -> Dict[str, Any]:
        async def _fetch():
            cached = await self.cache.get(target, "target_profile", self.default_ttl)
            if cached:
                return cached

            client = await self._client(credentials)
            user = await client.get_profile(target.lstrip("@"))
            profile = {
                "id": user.get("userId"),
                "username": target,
                "screenName": user.get("name") or target,
                "bio": user.get("biography") or "",
                "followersCount": user.get("followersCount"),
                "followingCount": user.get("followingCount"),
                "tweetsCount": user.get("tweetsCount"),
                "isVerified": user.get("isVerified"),
                "isPrivate": user.get("isPrivate"),
                "joined": user.get("joined"),
                "location": user.get("location") or "",
                "website": user.get("website") or "",
            }

            await self.cache.set(target, "target_profile", profile, self.default_ttl)
            return profile

        return await self._run("fetch target profile", _fetch)

    async def get_tweet(self, credentials: Credentials, tweet_id: str) -> Dict[str, Any]:
        async def _fetch():
            client = await self._client(credentials)
            return strip_keys(await client.get_tweet(tweet_id))

        return await self._run("fetch tweet", _fetch)

    async def get_user_tweets(
        self,
        credentials: Credentials,
        user_id: str,
        count: int,
        use_cache: bool = True,
    ) -> List[Dict[str, Any]]:
        async def _fetch():
            if use_cache:
                cached = await self.cache.get(user_id, "user_tweets", self.short_ttl)
                if cached:
                    return cached

            client = await self._client(credentials)
            tweets = await client.get_user_tweets(user_id, count)

            if use_cache and tweets:
                await self.cache.set(user_id, "user_tweets", tweets, self.short_ttl)
            return tweets

        return await self._run("fetch user tweets", _fetch)

    async def fetch_timeline(
        self,
        credentials: Credentials,
        count: int,
        following: bool = False,
        use_cache: bool = True,
    ) -> List[Dict[str, Any]]:
        cache_key = f"{credentials.username}_{'following' if following else 'home'}_timeline"

        async def _fetch():
            if use_cache:
                cached = await self.cache.get(cache_key, "timeline", self.short_ttl)
                if cached:
                    return cached

            client = await self._client(credentials)
            if following:
                timeline = await client.fetch_following_timeline(count)
            else:
                timeline = await client.fetch_home_timeline(count)

            if use_cache and timeline:
                await self.cache.set(cache_key, "timeline", timeline, self.short_ttl)
            return timeline

        return await self._run("fetch home timeline", _fetch)

    async def search_tweets(
        self,
        credentials: Credentials,
        query: str,
        max_tweets: int,
        mode: str = "Latest",
        cursor: Optional[str] = None,
        use_cache: bool = True,
    ) -> Dict[str, Any]:
        """Search, bounded by ``search_timeout``. Paginated calls skip the cache."""
        cache_key = f"{query}_{mode}_{max_tweets}"
        cacheable = use_cache and not cursor

        async def _fetch():
            if cacheable:
                cached = await self.cache.get(cache_key, "search", self.short_ttl)
                if cached:
                    return cached

            client = await self._client(credentials)
            try:
                result = await asyncio.wait_for(
                    client.search_tweets(query, max_tweets, mode, cursor),
                    timeout=self.search_timeout,
                )
            except asyncio.TimeoutError:
                self.logger.warning("Search timed out", query=query, timeout_seconds=self.search_timeout)
                return {"tweets": []}

            if result is None:
                return {"tweets": []}
            if cacheable and result.get("tweets"):
                await self.cache.set(cache_key, "search", result, self.short_ttl)
            return result

        return await self._run("search tweets", _fetch)

    async def send_tweet(
        self,
        credentials: Credentials,
        text: Optional[str] = None,
        reply_to_id: Optional[str] = None,
        quote_tweet_id: Optional[str] = None,
        media: Sequence[MediaAttachment] = (),
    ) -> Dict[str, Any]:
        """Post a tweet, reply or quote. A quote id without text retweets instead."""
        async def _send():
            client = await self._client(credentials)
            if quote_tweet_id and not text:
                await client.retweet(quote_tweet_id)
                return {"retweet": True}
            if quote_tweet_id:
                return await client.send_quote_tweet(text, quote_tweet_id, media)
            return await client.send_tweet(text, reply_to_id, media)

        return await self._run("send tweet", _send)

    async def send_tweet_with_poll(
        self,
        credentials: Credentials,
        text: str,
        options: Sequence[str],
        duration_minutes: int = 120,
    ) -> Dict[str, Any]:
        async def _send():
            client = await self._client(credentials)
            return await client.send_tweet_with_poll(text, options, duration_minutes)

        return await self._run("send tweet with poll", _send)

    async def get_following(self, credentials: Credentials, user_id: str, count: int = 100) -> List[Dict[str, Any]]:
        async def _fetch():
            cached = await self.cache.get(user_id, "following", self.default_ttl)
            if cached:
                return cached

            client = await self._client(credentials)
            following = [
                {
                    "id": user.get("userId"),
                    "username": user.get("username"),
                    "name": user.get("name"),
                    "bio": user.get("biography") or "",
                    "followersCount": user.get("followersCount") or 0,
                    "followingCount": user.get("followingCount") or 0,
                    "isVerified": user.get("isVerified") or False,
                    "profileImageUrl": user.get("avatar"),
                }
                for user in await client.get_following(user_id, count)
            ]

            await self.cache.set(user_id, "following", following, self.default_ttl)
            return following

        return await self._run("fetch following users", _fetch)
