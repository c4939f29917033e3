"""Application package for Keyforge."""
from __future__ import annotations

import logging
from types import SimpleNamespace
from typing import Callable, Optional

from flask import Flask, jsonify
from flask_talisman import Talisman

from keyforge import auth  # noqa: F401  registers the Flask-Login loaders
from keyforge.config import Config
from keyforge.cors import CorsGate
from keyforge.db import ensure_data_dir, init_db, make_db_factory
from keyforge.extensions import limiter, login_manager
from keyforge.repositories import ApiKeyRepository, SubscriptionRepository
from keyforge.routes import (
    create_demo_blueprint,
    create_health_blueprint,
    create_keys_blueprint,
    create_subscription_blueprint,
)
from keyforge.services import KeyService, KeyVerifier, QuotaService, TieredRateLimiter

__version__ = '1.0.0'

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _configure_security_headers(app: Flask) -> None:
    # Only enforce HTTPS if explicitly enabled (for reverse proxy setups)
    if app.config.get('FORCE_HTTPS'):
        Talisman(
            app,
            force_https=True,
            strict_transport_security=True,
            content_security_policy={'default-src': "'none'"},
        )
        return

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        return response


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(404)
    def not_found(_error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(429)
    def too_many_requests(_error):
        return jsonify({'error': 'Too many requests'}), 429

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Unhandled error: {error}")
        return jsonify({'error': 'Internal server error'}), 500


def create_app(
    config_class: type[Config] = Config,
    *,
    db_factory: Optional[Callable] = None,
    rate_limiter: Optional[TieredRateLimiter] = None,
    clock: Optional[Callable] = None,
) -> Flask:
    """Create and configure the Flask application.

    Storage and the rate limiter can be passed in; otherwise they are built
    from the configuration.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

    if not app.config.get('SECRET_KEY'):
        logger.warning("SECRET_KEY not set! Using insecure default. Generate a secure key with: python -c 'import secrets; print(secrets.token_hex(32))'")
        app.config['SECRET_KEY'] = 'dev-secret-key-change-in-production'

    login_manager.init_app(app)
    limiter.init_app(app)
    CorsGate(app.config.get('ALLOWED_ORIGINS', ()), app=app)
    _configure_security_headers(app)
    _register_error_handlers(app)

    if db_factory is None:
        database_path = app.config['DATABASE_PATH']
        ensure_data_dir(database_path)
        db_factory = make_db_factory(database_path, app.config.get('DB_TIMEOUT_SECONDS', 5.0))
    init_db(db_factory)

    if rate_limiter is None:
        rate_limiter = TieredRateLimiter.from_uri(
            app.config['RATELIMIT_STORAGE_URI'],
            window_seconds=app.config['RATE_LIMIT_WINDOW_SECONDS'],
        )

    clock_kwargs = {'clock': clock} if clock is not None else {}
    api_key_repo = ApiKeyRepository(db_factory)
    subscription_repo = SubscriptionRepository(db_factory)
    key_service = KeyService(
        api_key_repo,
        key_prefix=app.config['KEY_PREFIX'],
        key_bytes=app.config['KEY_BYTES'],
        **clock_kwargs,
    )
    quota_service = QuotaService(subscription_repo, **clock_kwargs)
    key_verifier = KeyVerifier(api_key_repo)

    app.extensions['keyforge'] = SimpleNamespace(
        db_factory=db_factory,
        key_service=key_service,
        key_verifier=key_verifier,
        quota_service=quota_service,
        rate_limiter=rate_limiter,
    )

    management_limit = f"{app.config['RATE_LIMIT_PER_MINUTE']} per minute"
    keys_blueprint = create_keys_blueprint(
        key_service=key_service,
        quota_service=quota_service,
        logger=logger,
    )
    subscription_blueprint = create_subscription_blueprint(
        quota_service=quota_service,
        logger=logger,
    )
    limiter.limit(management_limit)(keys_blueprint)
    limiter.limit(management_limit)(subscription_blueprint)

    app.register_blueprint(keys_blueprint)
    app.register_blueprint(subscription_blueprint)
    app.register_blueprint(create_demo_blueprint(
        key_verifier=key_verifier,
        key_service=key_service,
        quota_service=quota_service,
        rate_limiter=rate_limiter,
        logger=logger,
    ))
    app.register_blueprint(create_health_blueprint(db_factory, rate_limiter, __version__))

    return app
