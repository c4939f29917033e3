from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from keyforge.tiers import Tier


@dataclass
class ApiKeyRecord:
    id: str
    name: str
    period: str
    origin: str
    value: int
    hashed_key: str
    last4: str
    created_at: str
    user_id: Optional[str] = None
    image_url: Optional[str] = None
    revoked: bool = False


@dataclass
class SubscriptionRecord:
    id: str
    user_id: str
    tier: Tier
    keys_created_today: int
    last_reset_date: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    key_id: Optional[str] = None
    reason: Optional[str] = None
    user_id: Optional[str] = None


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    current: int
    limit: int
    tier: Tier


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    remaining: int
    limit: int
    reset_at: float

    def retry_after(self, now: float) -> int:
        """Seconds a denied caller should wait, never less than one."""
        return max(1, math.ceil(self.reset_at - now))
