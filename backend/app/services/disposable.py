"""Disposable email domain detection.

Standalone utility. The validation endpoints do not consult it; the domain
list is loaded at startup so it is ready once a richer validation flow uses it.
"""

import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_DISPOSABLE_DOMAINS = frozenset({
    "tempmail.com",
    "guerrillamail.com",
    "10minutemail.com",
    "throwaway.email",
})


def extract_domain(email: str) -> Optional[str]:
    """Return the lowercased text after the first "@", or None if there is none."""
    _, sep, domain = email.partition("@")
    if not sep:
        return None
    # Stop at a second "@" the way a plain split would
    return domain.split("@", 1)[0].lower()


class DisposableDomainChecker:
    """Membership test against a fixed set of throwaway-mailbox domains."""

    def __init__(self, domains: Optional[Iterable[str]] = None):
        self.domains = frozenset(
            d.lower() for d in (domains if domains is not None else DEFAULT_DISPOSABLE_DOMAINS)
        )
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    async def load(self) -> None:
        """Load the domain list. The built-in list needs no external source."""
        logger.info(f"Disposable domains list ready ({len(self.domains)} domains, no external source)")
        self._loaded = True

    def is_disposable(self, email: str) -> bool:
        domain = extract_domain(email)
        if not domain:
            return False
        return domain in self.domains
