"""
Credential resolver: walks the tier cascade for one identity.
"""

import json
from typing import TYPE_CHECKING, List, Optional, Sequence

from shared.errors import AuthenticationError, StoreUnavailableError
from shared.logging import bind_identity, get_logger

from .models import Credentials
from .registry import KeyedLock
from .tiers import (
    ExistingInstanceTier,
    FreshLoginTier,
    PersistedCookiesTier,
    ProcessCookiesTier,
    ResolutionContext,
    SessionTier,
    SuppliedCookiesTier,
    TierResult,
)

if TYPE_CHECKING:  # pragma: no cover
    from shared.metrics import MetricsCollector
    from ..platform.base import PlatformClient


DEFAULT_FAILURE_MESSAGE = "All authentication methods failed"


def default_tiers() -> List[SessionTier]:
    return [
        ExistingInstanceTier(),
        SuppliedCookiesTier(),
        ProcessCookiesTier(),
        PersistedCookiesTier(),
        FreshLoginTier(),
    ]


def extract_failure_message(error: BaseException) -> str:
    """Surface the platform's own message when the error text is a JSON error document."""
    text = str(error)
    try:
        payload = json.loads(text)
    except ValueError:
        return text

    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            if isinstance(first, dict) and first.get("message"):
                return str(first["message"])
    return text


class CredentialResolver:
    """Returns an authenticated client for the caller's identity.

    Resolutions for the same identity run one at a time, so a caller that
    waited on the lock normally finds the winner's client already registered.
    """

    def __init__(
        self,
        context: ResolutionContext,
        tiers: Optional[Sequence[SessionTier]] = None,
        *,
        metrics: Optional["MetricsCollector"] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self.context = context
        self.tiers = list(tiers) if tiers is not None else default_tiers()
        self.metrics = metrics
        self.locks = locks or KeyedLock()
        self.logger = get_logger("x_api.auth.resolver")

    async def resolve_session(self, credentials: Credentials) -> "PlatformClient":
        identity = credentials.identity
        bind_identity(identity)

        async with self.locks.acquire(identity):
            if self.metrics:
                with self.metrics.time_operation("session_resolution_duration_seconds"):
                    return await self._resolve(credentials)
            return await self._resolve(credentials)

    async def _resolve(self, credentials: Credentials) -> "PlatformClient":
        identity = credentials.identity

        for tier in self.tiers:
            try:
                result = await tier.attempt(credentials, self.context)
            except Exception as e:
                self._record(tier, "error")
                if tier.terminal:
                    message = extract_failure_message(e)
                    self.logger.error("Session resolution failed", tier=tier.name, identity=identity, error=message)
                    raise AuthenticationError(message, details={"tier": tier.name}) from e

                self.logger.warning("Session tier failed", tier=tier.name, identity=identity, error=str(e))
                continue

            if result is None:
                self._record(tier, "miss")
                if tier.terminal:
                    break
                continue

            self._record(tier, "hit")
            await self._commit(identity, tier, result)
            self.logger.info("Session resolved", tier=tier.name, identity=identity)
            return result.handle

        self.logger.error("Session resolution failed", identity=identity, error=DEFAULT_FAILURE_MESSAGE)
        raise AuthenticationError(DEFAULT_FAILURE_MESSAGE)

    async def _commit(self, identity: str, tier: SessionTier, result: TierResult) -> None:
        if result.jar is None:
            return

        self.context.cookie_memo.set(identity, result.jar)
        try:
            await self.context.session_store.put(identity, result.jar)
        except StoreUnavailableError as e:
            self.logger.warning("Could not persist session cookies", tier=tier.name, identity=identity, error=e.message)
        self.context.registry.set(identity, result.handle)

    def _record(self, tier: SessionTier, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_tier_outcome(tier.name, outcome)
