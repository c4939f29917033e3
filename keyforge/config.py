"""Centralized configuration for Keyforge."""
from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _split_origins(raw: str | None) -> frozenset[str]:
    if not raw or not raw.strip():
        return frozenset()
    return frozenset(origin.strip() for origin in raw.split(',') if origin.strip())


class Config:
    """Base configuration loaded from environment variables."""
    SECRET_KEY = os.getenv('SECRET_KEY')
    DATABASE_PATH = os.getenv('DATABASE_PATH', '/data/keyforge.db')
    DB_TIMEOUT_SECONDS = float(os.getenv('DB_TIMEOUT_SECONDS', '5'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    FORCE_HTTPS = os.getenv('FORCE_HTTPS', 'false').lower() == 'true'
    PORT = int(os.getenv('PORT', '5000'))

    # API keys
    KEY_PREFIX = os.getenv('KEY_PREFIX', 'sk_live_')
    KEY_BYTES = int(os.getenv('KEY_BYTES', '24'))

    # Identity supplied by the upstream auth provider
    AUTH_USER_HEADER = os.getenv('AUTH_USER_HEADER', 'X-User-Id')

    # CORS
    ALLOWED_ORIGINS = _split_origins(os.getenv('ALLOWED_ORIGINS'))

    # Rate limiting
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv('RATE_LIMIT_WINDOW_SECONDS', '10'))
    RATE_LIMIT_PER_MINUTE = int(os.getenv('RATE_LIMIT_PER_MINUTE', '60'))


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key-for-testing'
    RATELIMIT_ENABLED = False
    ALLOWED_ORIGINS = frozenset({'https://app.example'})
