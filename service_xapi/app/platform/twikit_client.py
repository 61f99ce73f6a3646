"""
Default platform client backed by the ``twikit`` scraping library.

Everything twikit returns is flattened into plain dicts here so the rest of
the service (and the result cache) only ever sees JSON-serializable data.
"""

from typing import Any, Dict, List, Optional, Sequence

import httpx
from twikit import Client
from twikit.constants import DOMAIN
from twikit.errors import TwitterException

from shared.logging import get_logger

from ..auth.models import Cookie
from .base import MediaAttachment

QUOTE_URL = "https://twitter.com/i/status/{tweet_id}"
PLATFORM_HOSTS = ("twitter.com", "x.com")


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a twikit model or a raw dict."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def request_domain(domain: Optional[str]) -> str:
    """Scope a platform cookie domain to the host twikit sends requests to."""
    bare = (domain or "").strip().lstrip(".").lower()
    if not bare or any(bare == host or bare.endswith("." + host) for host in PLATFORM_HOSTS):
        return "." + DOMAIN
    return domain


def user_to_dict(user: Any) -> Dict[str, Any]:
    return {
        "userId": _field(user, "id"),
        "username": _field(user, "screen_name"),
        "name": _field(user, "name"),
        "biography": _field(user, "description") or "",
        "followersCount": _field(user, "followers_count", 0),
        "followingCount": _field(user, "following_count", 0),
        "tweetsCount": _field(user, "statuses_count", 0),
        "isVerified": bool(_field(user, "is_blue_verified") or _field(user, "verified")),
        "isPrivate": bool(_field(user, "protected")),
        "joined": _field(user, "created_at"),
        "location": _field(user, "location") or "",
        "website": _field(user, "url") or "",
        "avatar": _field(user, "profile_image_url"),
    }


def tweet_to_dict(tweet: Any) -> Dict[str, Any]:
    user = _field(tweet, "user")
    screen_name = _field(user, "screen_name")
    created = _field(tweet, "created_at_datetime")
    media = _field(tweet, "media") or []

    return {
        "id": _field(tweet, "id"),
        "name": _field(user, "name"),
        "username": screen_name,
        "userId": _field(user, "id"),
        "text": _field(tweet, "full_text") or _field(tweet, "text"),
        "inReplyToStatusId": _field(tweet, "in_reply_to"),
        "conversationId": _field(tweet, "conversation_id"),
        "timestamp": created.timestamp() if created else None,
        "permanentUrl": f"https://twitter.com/{screen_name}/status/{_field(tweet, 'id')}",
        "hashtags": list(_field(tweet, "hashtags") or []),
        "urls": list(_field(tweet, "urls") or []),
        "photos": [
            {
                "id": _field(item, "id") or _field(item, "id_str"),
                "url": _field(item, "media_url") or _field(item, "media_url_https"),
                "alt_text": _field(item, "ext_alt_text") or _field(item, "alt_text"),
            }
            for item in media
            if _field(item, "type") == "photo"
        ],
        "videos": [
            {"id": _field(item, "id") or _field(item, "id_str"), "type": _field(item, "type")}
            for item in media
            if _field(item, "type") in ("video", "animated_gif")
        ],
    }


class TwikitPlatformClient:
    """One twikit session bound to a single account."""

    def __init__(self, language: str = "en-US", client: Optional[Client] = None):
        self.client = client or Client(language)
        self.logger = get_logger("x_api.platform.twikit")

    async def login(
        self,
        username: str,
        password: str,
        email: Optional[str] = None,
        two_factor_secret: Optional[str] = None,
    ) -> None:
        await self.client.login(
            auth_info_1=username,
            auth_info_2=email,
            password=password,
            totp_secret=two_factor_secret,
        )

    async def is_logged_in(self) -> bool:
        try:
            user = await self.client.user()
        except (TwitterException, httpx.HTTPError, KeyError) as e:
            self.logger.debug("Login probe rejected session", error=str(e))
            return False
        return user is not None

    async def get_cookies(self) -> List[Cookie]:
        jar = []
        for item in self.client.http.cookies.jar:
            jar.append(
                Cookie(
                    key=item.name,
                    value=item.value or "",
                    domain=item.domain or None,
                    path=item.path or "/",
                    secure=bool(item.secure),
                    http_only=item.has_nonstandard_attr("HttpOnly"),
                    same_site=item.get_nonstandard_attr("SameSite"),
                )
            )
        return jar

    async def apply_cookies(self, jar: Sequence[Cookie]) -> None:
        """Load ``jar`` into the HTTP client, scoped to the host twikit calls."""
        cookies = self.client.http.cookies
        for cookie in jar:
            cookies.set(cookie.key, cookie.value, domain=request_domain(cookie.domain), path=cookie.path or "/")

    async def get_profile(self, username: str) -> Dict[str, Any]:
        user = await self.client.get_user_by_screen_name(username)
        return user_to_dict(user)

    async def get_user_tweets(self, user_id: str, count: int) -> List[Dict[str, Any]]:
        tweets = await self.client.get_user_tweets(user_id, "Tweets", count=count)
        return [tweet_to_dict(tweet) for tweet in tweets]

    async def fetch_home_timeline(self, count: int) -> List[Dict[str, Any]]:
        tweets = await self.client.get_timeline(count=count)
        return [tweet_to_dict(tweet) for tweet in tweets]

    async def fetch_following_timeline(self, count: int) -> List[Dict[str, Any]]:
        tweets = await self.client.get_latest_timeline(count=count)
        return [tweet_to_dict(tweet) for tweet in tweets]

    async def search_tweets(
        self,
        query: str,
        max_tweets: int,
        mode: str,
        cursor: Optional[str] = None,
    ) -> Dict[str, Any]:
        result = await self.client.search_tweet(query, mode, count=max_tweets, cursor=cursor)
        return {
            "tweets": [tweet_to_dict(tweet) for tweet in result],
            "next": getattr(result, "next_cursor", None),
        }

    async def get_tweet(self, tweet_id: str) -> Dict[str, Any]:
        tweet = await self.client.get_tweet_by_id(tweet_id)
        return tweet_to_dict(tweet)

    async def _upload(self, media: Sequence[MediaAttachment]) -> Optional[List[str]]:
        if not media:
            return None
        return [
            await self.client.upload_media(item.data, media_type=item.media_type)
            for item in media
        ]

    async def send_tweet(
        self,
        text: str,
        reply_to_id: Optional[str] = None,
        media: Sequence[MediaAttachment] = (),
    ) -> Dict[str, Any]:
        tweet = await self.client.create_tweet(
            text=text,
            media_ids=await self._upload(media),
            reply_to=reply_to_id,
        )
        return tweet_to_dict(tweet)

    async def send_quote_tweet(
        self,
        text: str,
        quote_tweet_id: str,
        media: Sequence[MediaAttachment] = (),
    ) -> Dict[str, Any]:
        tweet = await self.client.create_tweet(
            text=text,
            media_ids=await self._upload(media),
            attachment_url=QUOTE_URL.format(tweet_id=quote_tweet_id),
        )
        return tweet_to_dict(tweet)

    async def retweet(self, tweet_id: str) -> None:
        await self.client.retweet(tweet_id)

    async def send_tweet_with_poll(
        self,
        text: str,
        options: Sequence[str],
        duration_minutes: int,
    ) -> Dict[str, Any]:
        poll_uri = await self.client.create_poll(list(options), duration_minutes)
        tweet = await self.client.create_tweet(text=text, poll_uri=poll_uri)
        return tweet_to_dict(tweet)

    async def get_following(self, user_id: str, count: int) -> List[Dict[str, Any]]:
        users = await self.client.get_user_following(user_id, count=count)
        return [user_to_dict(user) for user in users]
