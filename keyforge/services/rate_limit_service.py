"""Sliding-window request limits per identity and tier.

Counters live in a ``limits`` storage backend (``memory://`` by default,
``redis://`` in multi-process deployments). Every tier gets its own
namespace, so one identity string never shares a budget across tiers.
If the backend cannot be reached the limiter raises instead of allowing
the request.
"""
from __future__ import annotations

import logging
from typing import Mapping, Optional

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import Storage, storage_from_string
from limits.strategies import MovingWindowRateLimiter

from keyforge.models import RateLimitResult
from keyforge.tiers import TIERS, Tier, TierPolicy

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 10


class RateLimiterUnavailable(Exception):
    """The counting backend failed; the request must not be served."""


def identity_for(api_key_id: Optional[str], remote_addr: Optional[str]) -> str:
    if api_key_id:
        return f"key:{api_key_id}"
    return f"ip:{remote_addr or 'unknown'}"


class TieredRateLimiter:
    """Registry of one moving-window limit per tier over a shared storage."""

    def __init__(
        self,
        storage: Storage,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        tiers: Mapping[Tier, TierPolicy] = TIERS,
    ):
        self._storage = storage
        self._strategy = MovingWindowRateLimiter(storage)
        self._items: dict[Tier, RateLimitItem] = {
            tier: RateLimitItemPerSecond(
                policy.requests_per_window,
                window_seconds,
                namespace=f"keyforge/{tier.value}",
            )
            for tier, policy in tiers.items()
        }

    @classmethod
    def from_uri(cls, storage_uri: str, window_seconds: int = DEFAULT_WINDOW_SECONDS) -> 'TieredRateLimiter':
        return cls(storage_from_string(storage_uri), window_seconds=window_seconds)

    def limit(self, identity: str, tier: Tier) -> RateLimitResult:
        """Count one request for ``identity`` and report whether it fits the window."""
        item = self._items[tier]
        try:
            success = self._strategy.hit(item, identity)
            stats = self._strategy.get_window_stats(item, identity)
        except Exception as e:
            logger.error(f"Rate limit storage failure for {identity} ({tier.value}): {e}")
            raise RateLimiterUnavailable('Rate limit storage unavailable') from e

        result = RateLimitResult(
            success=success,
            remaining=max(0, stats.remaining),
            limit=item.amount,
            reset_at=stats.reset_time,
        )
        if not success:
            logger.warning(f"Rate limit exceeded for {identity} ({tier.value})")
        return result

    def check_storage(self) -> bool:
        try:
            return bool(self._storage.check())
        except Exception as e:
            logger.error(f"Rate limit storage check failed: {e}")
            return False
