"""
Credential material handled by the session resolver.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence


DEFAULT_SAME_SITE = "Lax"


@dataclass(frozen=True)
class Cookie:
    """One platform session cookie."""

    key: str
    value: str
    domain: Optional[str] = None
    path: str = "/"
    secure: bool = False
    http_only: bool = False
    same_site: Optional[str] = None

    def with_domain(self, domain: Optional[str]) -> "Cookie":
        if domain == self.domain:
            return self
        return replace(self, domain=domain)

    def to_set_cookie_header(self) -> str:
        """Render as a ``Set-Cookie`` header value."""
        parts = [f"{self.key}={self.value}"]
        if self.domain:
            parts.append(f"Domain={self.domain}")
        parts.append(f"Path={self.path or '/'}")
        if self.secure:
            parts.append("Secure")
        if self.http_only:
            parts.append("HttpOnly")
        parts.append(f"SameSite={self.same_site or DEFAULT_SAME_SITE}")
        return "; ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the persisted (camelCase) cookie layout."""
        return {
            "key": self.key,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "secure": self.secure,
            "httpOnly": self.http_only,
            "sameSite": self.same_site,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Cookie":
        return cls(
            key=payload["key"],
            value=payload.get("value", ""),
            domain=payload.get("domain"),
            path=payload.get("path") or "/",
            secure=bool(payload.get("secure", False)),
            http_only=bool(payload.get("httpOnly", payload.get("http_only", False))),
            same_site=payload.get("sameSite", payload.get("same_site")),
        )


CookieJar = List[Cookie]


def jar_to_dicts(jar: Sequence[Cookie]) -> List[Dict[str, Any]]:
    return [cookie.to_dict() for cookie in jar]


def jar_from_dicts(payload: Sequence[Dict[str, Any]]) -> CookieJar:
    return [Cookie.from_dict(item) for item in payload]


@dataclass(frozen=True)
class Credentials:
    """Per-request account credentials. Never persisted."""

    username: str
    password: Optional[str] = field(default=None, repr=False)
    email: Optional[str] = None
    two_factor_secret: Optional[str] = field(default=None, repr=False)
    cookies: Optional[CookieJar] = field(default=None, repr=False)

    @property
    def identity(self) -> str:
        return self.username
