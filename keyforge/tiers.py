"""Subscription tier table.

Each tier fixes a daily key-creation quota and a request budget per
rate-limit window. Adding a tier means adding a row to ``TIERS``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Tier(str, Enum):
    FREE = 'free'
    PRO = 'pro'
    PREMIUM = 'premium'
    PREMIUM_PLUS = 'premium_plus'


@dataclass(frozen=True)
class TierPolicy:
    tier: Tier
    display_name: str
    keys_per_day: int
    requests_per_window: int


TIERS: dict[Tier, TierPolicy] = {
    Tier.FREE: TierPolicy(Tier.FREE, 'Free', keys_per_day=10, requests_per_window=3),
    Tier.PRO: TierPolicy(Tier.PRO, 'Pro', keys_per_day=50, requests_per_window=10),
    Tier.PREMIUM: TierPolicy(Tier.PREMIUM, 'Premium', keys_per_day=200, requests_per_window=50),
    Tier.PREMIUM_PLUS: TierPolicy(Tier.PREMIUM_PLUS, 'Premium+', keys_per_day=1000, requests_per_window=200),
}

DEFAULT_TIER = Tier.FREE


def parse_tier(value: object) -> Optional[Tier]:
    """Return the Tier named by ``value`` or None when it is not a known tier."""
    if isinstance(value, Tier):
        return value
    try:
        return Tier(value)
    except (TypeError, ValueError):
        return None


def get_policy(tier: Tier) -> TierPolicy:
    return TIERS[tier]


def get_tier_limit(tier: Tier) -> int:
    return TIERS[tier].keys_per_day


def get_tier_name(tier: Tier) -> str:
    return TIERS[tier].display_name
