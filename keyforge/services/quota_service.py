from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from keyforge.models import QuotaDecision
from keyforge.repositories import SubscriptionRepository
from keyforge.tiers import DEFAULT_TIER, Tier, get_tier_limit, get_tier_name

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuotaService:
    """Per-user daily key-creation quota.

    Days are UTC calendar dates (``YYYY-MM-DD``). Each operation reads the
    clock once so the reset check and the limit check agree on the day.
    """

    def __init__(self, subscription_repo: SubscriptionRepository, clock: Callable[[], datetime] = _utcnow):
        self._subscription_repo = subscription_repo
        self._clock = clock

    def today(self) -> str:
        return self._clock().astimezone(timezone.utc).strftime('%Y-%m-%d')

    def _load(self, user_id: str, today: str):
        subscription = self._subscription_repo.get_or_create(user_id, today)
        if subscription.last_reset_date != today:
            self._subscription_repo.reset_if_stale(user_id, today)
            subscription.keys_created_today = 0
            subscription.last_reset_date = today
        return subscription

    def check(self, user_id: str) -> QuotaDecision:
        subscription = self._load(user_id, self.today())
        limit = get_tier_limit(subscription.tier)
        decision = QuotaDecision(
            allowed=subscription.keys_created_today < limit,
            current=subscription.keys_created_today,
            limit=limit,
            tier=subscription.tier,
        )
        if not decision.allowed:
            logger.warning(f"Daily key quota reached for user {user_id}: {decision.current}/{limit} ({subscription.tier.value})")
        return decision

    def increment(self, user_id: str) -> int:
        return self._subscription_repo.increment(user_id, self.today())

    def set_tier(self, user_id: str, tier: Tier) -> None:
        self._subscription_repo.set_tier(user_id, tier, self.today())
        logger.info(f"Subscription tier for user {user_id} set to {tier.value}")

    def tier_for(self, user_id: Optional[str]) -> Tier:
        """Current tier of a user without creating a subscription row."""
        if not user_id:
            return DEFAULT_TIER
        subscription = self._subscription_repo.get(user_id)
        return subscription.tier if subscription else DEFAULT_TIER

    def info(self, user_id: str) -> dict:
        subscription = self._load(user_id, self.today())
        limit = get_tier_limit(subscription.tier)
        return {
            'tier': subscription.tier.value,
            'tierName': get_tier_name(subscription.tier),
            'keysCreatedToday': subscription.keys_created_today,
            'limit': limit,
            'remaining': max(0, limit - subscription.keys_created_today),
        }
