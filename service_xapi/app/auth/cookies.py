"""
Cookie domain normalization.

The login-state probe only recognizes cookies scoped to the platform's legacy
domain, so cookies exported from the renamed domain are rewritten before they
are applied to a client.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from .models import Cookie, CookieJar


@dataclass(frozen=True)
class CookieDomainPolicy:
    """Maps a deprecated domain (and its subdomains) onto the canonical one."""

    deprecated_domain: str = "x.com"
    canonical_domain: str = ".twitter.com"

    def matches_deprecated(self, domain: Optional[str]) -> bool:
        if not domain:
            return False
        bare = domain.strip().lstrip(".").lower()
        alias = self.deprecated_domain.lstrip(".").lower()
        return bare == alias or bare.endswith("." + alias)

    def normalize_domain(self, domain: Optional[str]) -> Optional[str]:
        if self.matches_deprecated(domain):
            return self.canonical_domain
        return domain

    def normalize(self, jar: Sequence[Cookie]) -> CookieJar:
        """Return ``jar`` with deprecated domains rewritten. Idempotent."""
        return [cookie.with_domain(self.normalize_domain(cookie.domain)) for cookie in jar]
