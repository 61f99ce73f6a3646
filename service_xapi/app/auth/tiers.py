"""
Resolution tiers.

Each tier is a strategy that either produces a probe-valid client for the
identity or reports a miss by returning None. Non-terminal tiers may also
raise; the resolver treats that as a soft failure and moves on.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from .cookies import CookieDomainPolicy
from .models import Cookie, CookieJar, Credentials
from .registry import CookieMemo, InstanceRegistry

if TYPE_CHECKING:  # pragma: no cover
    from ..platform.base import ClientFactory, PlatformClient
    from ..storage.session_store import SessionStore


@dataclass
class ResolutionContext:
    """Collaborators shared by all tiers of one resolver."""

    registry: InstanceRegistry
    cookie_memo: CookieMemo
    session_store: "SessionStore"
    client_factory: "ClientFactory"
    cookie_policy: CookieDomainPolicy = CookieDomainPolicy()

    def new_client(self) -> "PlatformClient":
        return self.client_factory()

    async def apply(self, client: "PlatformClient", jar: Sequence[Cookie]) -> CookieJar:
        """Normalize ``jar`` and apply it to ``client``. Returns the applied jar."""
        normalized = self.cookie_policy.normalize(jar)
        await client.apply_cookies(normalized)
        return normalized


@dataclass
class TierResult:
    """A probe-valid client and the jar that authenticated it.

    ``jar`` is None when the tier reused an already registered client, in
    which case nothing needs to be recorded.
    """

    handle: "PlatformClient"
    jar: Optional[CookieJar] = None


class SessionTier(ABC):
    """One step of the resolution cascade."""

    name: str = "tier"
    terminal: bool = False

    @abstractmethod
    async def attempt(self, credentials: Credentials, context: ResolutionContext) -> Optional[TierResult]:
        """Return a probe-valid session, or None to fall through."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class ExistingInstanceTier(SessionTier):
    name = "existing_instance"

    async def attempt(self, credentials, context):
        handle = context.registry.get(credentials.identity)
        if handle is None:
            return None
        if await handle.is_logged_in():
            return TierResult(handle=handle)
        return None


class _CookieJarTier(SessionTier):
    """Applies a jar from some source to a fresh client and probes it."""

    @abstractmethod
    async def load_jar(self, credentials: Credentials, context: ResolutionContext) -> Optional[CookieJar]:
        """Return the candidate jar for this tier, or None to skip it."""

    async def attempt(self, credentials, context):
        jar = await self.load_jar(credentials, context)
        if not jar:
            return None

        client = context.new_client()
        applied = await context.apply(client, jar)
        if await client.is_logged_in():
            return TierResult(handle=client, jar=applied)
        return None


class SuppliedCookiesTier(_CookieJarTier):
    name = "supplied_cookies"

    async def load_jar(self, credentials, context):
        return credentials.cookies


class ProcessCookiesTier(_CookieJarTier):
    name = "process_cookies"

    async def load_jar(self, credentials, context):
        return context.cookie_memo.get(credentials.identity)


class PersistedCookiesTier(_CookieJarTier):
    name = "persisted_cookies"

    async def load_jar(self, credentials, context):
        record = await context.session_store.get(credentials.identity)
        return record.cookies if record else None


class FreshLoginTier(SessionTier):
    """Full login handshake. Errors raised here end the cascade."""

    name = "fresh_login"
    terminal = True

    async def attempt(self, credentials, context):
        if not credentials.password:
            return None

        client = context.new_client()
        await client.login(
            credentials.username,
            credentials.password,
            email=credentials.email,
            two_factor_secret=credentials.two_factor_secret,
        )
        if not await client.is_logged_in():
            return None

        jar = await client.get_cookies()
        return TierResult(handle=client, jar=list(jar))
