"""
Usage ledger for the tutor.

Tracks remaining request units per client identity. The transport checks
the ledger before any mode work starts.
"""

import logging
from typing import Optional, Protocol

from kora_tutor.tutor.errors import UsageLimitExceeded

logger = logging.getLogger(__name__)


class UsageLedger(Protocol):
    """Protocol for usage ledgers keyed by client identity."""

    def remaining(self, identity: str, authenticated: bool = False) -> Optional[int]:
        """Remaining units, or None if unlimited."""
        ...

    def consume(self, identity: str, authenticated: bool = False) -> Optional[int]:
        """
        Take one unit.

        Raises:
            UsageLimitExceeded: If no units remain
        """
        ...


class InMemoryUsageLedger:
    """
    Process-local usage ledger.

    Anonymous identities get ``anonymous_limit`` requests; authenticated
    identities get ``authenticated_limit`` (None means unlimited).

    Usage:
        ledger = InMemoryUsageLedger(anonymous_limit=3)
        ledger.consume("203.0.113.7")
    """

    def __init__(
        self,
        anonymous_limit: int = 3,
        authenticated_limit: Optional[int] = None,
    ) -> None:
        self.anonymous_limit = anonymous_limit
        self.authenticated_limit = authenticated_limit
        self._used: dict[str, int] = {}

    def _limit(self, authenticated: bool) -> Optional[int]:
        return self.authenticated_limit if authenticated else self.anonymous_limit

    def used(self, identity: str) -> int:
        return self._used.get(identity, 0)

    def remaining(self, identity: str, authenticated: bool = False) -> Optional[int]:
        limit = self._limit(authenticated)
        if limit is None:
            return None
        return max(limit - self.used(identity), 0)

    def consume(self, identity: str, authenticated: bool = False) -> Optional[int]:
        limit = self._limit(authenticated)
        remaining = self.remaining(identity, authenticated)
        if remaining is not None and remaining <= 0:
            logger.info(f"Usage limit reached for {identity} (limit={limit})")
            raise UsageLimitExceeded(
                f"Usage limit of {limit} requests reached",
                identity=identity,
                limit=limit,
            )

        self._used[identity] = self.used(identity) + 1
        return None if remaining is None else remaining - 1

    def reset(self, identity: Optional[str] = None) -> None:
        """Reset one identity, or all of them."""
        if identity is None:
            self._used.clear()
        else:
            self._used.pop(identity, None)
