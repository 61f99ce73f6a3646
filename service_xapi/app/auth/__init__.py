"""
Session resolution for the X API service.

Resolving a session walks an ordered list of tiers (live instance, supplied
cookies, in-process cookies, persisted cookies, fresh login) and stops at the
first one whose session passes the login-state probe.
"""

from .cookies import CookieDomainPolicy
from .models import Cookie, Credentials
from .registry import CookieMemo, InstanceRegistry, KeyedLock
from .resolver import CredentialResolver
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

__all__ = [
    "Cookie",
    "CookieDomainPolicy",
    "CookieMemo",
    "Credentials",
    "CredentialResolver",
    "ExistingInstanceTier",
    "FreshLoginTier",
    "InstanceRegistry",
    "KeyedLock",
    "PersistedCookiesTier",
    "ProcessCookiesTier",
    "ResolutionContext",
    "SessionTier",
    "SuppliedCookiesTier",
    "TierResult",
]
