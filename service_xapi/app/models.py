"""
Request bodies for the X API routes.

Every route takes the caller's credentials in the body. Fields are optional
at the schema level so that missing values are reported with the service's
own 400 messages rather than a framework validation error.
"""

import base64
import binascii
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.errors import ValidationError

from .auth.models import Cookie, Credentials
from .platform.base import MediaAttachment


class CookieModel(BaseModel):
    """Cookie as supplied by the caller."""
    model_config = ConfigDict(populate_by_name=True)

    key: str
    value: str = ""
    domain: Optional[str] = None
    path: str = "/"
    secure: bool = False
    http_only: bool = Field(False, alias="httpOnly")
    same_site: Optional[str] = Field(None, alias="sameSite")

    def to_cookie(self) -> Cookie:
        return Cookie(
            key=self.key,
            value=self.value,
            domain=self.domain,
            path=self.path or "/",
            secure=self.secure,
            http_only=self.http_only,
            same_site=self.same_site,
        )


class MediaModel(BaseModel):
    """Base64-encoded media attached to a tweet."""
    model_config = ConfigDict(populate_by_name=True)

    data: str = Field(..., description="Base64 payload")
    media_type: str = Field("image/jpeg", alias="mediaType")

    def to_attachment(self) -> MediaAttachment:
        try:
            raw = base64.b64decode(self.data, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Media data must be base64 encoded")
        return MediaAttachment(data=raw, media_type=self.media_type)


class CredentialsRequest(BaseModel):
    """Account credentials carried by every request."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    username: Optional[str] = Field(None, description="Platform username")
    password: Optional[str] = Field(None, description="Platform password")
    email: Optional[str] = Field(None, description="Account email for login challenges")
    two_factor_secret: Optional[str] = Field(None, alias="twoFactorSecret", description="TOTP secret")
    cookies: Optional[List[CookieModel]] = Field(None, description="Previously exported session cookies")

    def to_credentials(self) -> Credentials:
        if not self.username or not self.password:
            raise ValidationError("Username and password are required")
        return Credentials(
            username=self.username,
            password=self.password,
            email=self.email,
            two_factor_secret=self.two_factor_secret,
            cookies=[cookie.to_cookie() for cookie in self.cookies] if self.cookies else None,
        )


class UserTweetsRequest(CredentialsRequest):
    count: int = Field(10, ge=1)
    use_cache: bool = Field(True, alias="useCache")


class TimelineRequest(CredentialsRequest):
    count: int = Field(10, ge=1)
    following: bool = False
    use_cache: bool = Field(True, alias="useCache")


class SearchRequest(CredentialsRequest):
    query: Optional[str] = None
    max_tweets: int = Field(10, alias="maxTweets", ge=1)
    mode: str = "Latest"
    cursor: Optional[str] = None
    use_cache: bool = Field(True, alias="useCache")

    def require_query(self) -> str:
        if not self.query:
            raise ValidationError("Query parameter is required")
        return self.query


class TweetRequest(CredentialsRequest):
    text: Optional[str] = None
    reply_to_id: Optional[str] = None
    quote_tweet_id: Optional[str] = None
    media_data: List[MediaModel] = Field(default_factory=list, alias="mediaData")

    def validate_content(self) -> None:
        if not self.text and not self.quote_tweet_id:
            raise ValidationError("Text is required")

    def attachments(self) -> List[MediaAttachment]:
        return [item.to_attachment() for item in self.media_data]


class PollRequest(CredentialsRequest):
    text: Optional[str] = None
    options: Optional[List[str]] = None
    duration_minutes: int = Field(120, alias="durationMinutes", ge=1)

    def validate_poll(self) -> None:
        if not self.text or not self.options:
            raise ValidationError("Text and options array are required")
        if not 2 <= len(self.options) <= 4:
            raise ValidationError(
                "Poll must have between 2 and 4 options",
                details={"options": len(self.options)},
            )


class FollowingRequest(CredentialsRequest):
    count: int = Field(100, ge=1)
