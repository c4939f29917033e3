"""repositories package."""
from .api_keys import ApiKeyRepository
from .subscriptions import SubscriptionRepository

__all__ = [
    'ApiKeyRepository',
    'SubscriptionRepository',
]
