"""Routes package."""
from .demo import create_demo_blueprint
from .health import create_health_blueprint
from .keys import create_keys_blueprint
from .subscription import create_subscription_blueprint

__all__ = [
    'create_demo_blueprint',
    'create_health_blueprint',
    'create_keys_blueprint',
    'create_subscription_blueprint',
]
