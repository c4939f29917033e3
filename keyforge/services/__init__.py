"""Service layer for Keyforge."""
from .key_service import KeyService, KeyVerifier
from .quota_service import QuotaService
from .rate_limit_service import RateLimiterUnavailable, TieredRateLimiter, identity_for

__all__ = [
    'KeyService',
    'KeyVerifier',
    'QuotaService',
    'RateLimiterUnavailable',
    'TieredRateLimiter',
    'identity_for',
]
