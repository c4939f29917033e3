"""API key generation and fingerprinting.

Pure functions: the plaintext secret only ever exists in memory and in the
single response that hands it to the caller.
"""
from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import NamedTuple

DEFAULT_KEY_PREFIX = 'sk_live_'
DEFAULT_KEY_BYTES = 24
SUFFIX_LENGTH = 4


class GeneratedKey(NamedTuple):
    key: str
    last4: str


def generate_api_key(prefix: str = DEFAULT_KEY_PREFIX, byte_length: int = DEFAULT_KEY_BYTES) -> GeneratedKey:
    """Generate a new API key"""
    key = f"{prefix}{secrets.token_urlsafe(byte_length)}"
    return GeneratedKey(key=key, last4=key[-SUFFIX_LENGTH:])


def hash_api_key(key: str) -> str:
    """Hash an API key for storage and lookup"""
    return hashlib.sha256(key.encode()).hexdigest()


def mask_api_key(last4: str, prefix: str = DEFAULT_KEY_PREFIX) -> str:
    return f"{prefix}...{last4}"


def verify_api_key(key: str, key_hash: str) -> bool:
    """Verify an API key against its hash using constant-time comparison"""
    return hmac.compare_digest(hash_api_key(key), key_hash)
