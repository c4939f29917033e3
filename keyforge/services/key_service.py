from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from keyforge.models import ApiKeyRecord, VerificationResult
from keyforge.repositories import ApiKeyRepository
from keyforge.services.key_codec import (
    DEFAULT_KEY_BYTES,
    DEFAULT_KEY_PREFIX,
    generate_api_key,
    hash_api_key,
    mask_api_key,
    verify_api_key,
)

logger = logging.getLogger(__name__)

REASON_NOT_FOUND = 'not_found'
REASON_REVOKED = 'revoked'


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyVerifier:
    """Decide whether a presented secret authorizes a request. Read only."""

    def __init__(self, api_key_repo: ApiKeyRepository):
        self._api_key_repo = api_key_repo

    def verify(self, presented_key: str) -> VerificationResult:
        key_hash = hash_api_key(presented_key or '')
        record = self._api_key_repo.find_by_hash(key_hash)
        if record is None or not verify_api_key(presented_key or '', record.hashed_key):
            return VerificationResult(valid=False, reason=REASON_NOT_FOUND)
        if record.revoked:
            return VerificationResult(valid=False, reason=REASON_REVOKED)
        return VerificationResult(valid=True, key_id=record.id, user_id=record.user_id)


class KeyService:
    """Issue, list and revoke API keys."""

    def __init__(
        self,
        api_key_repo: ApiKeyRepository,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        key_bytes: int = DEFAULT_KEY_BYTES,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._api_key_repo = api_key_repo
        self._key_prefix = key_prefix
        self._key_bytes = key_bytes
        self._clock = clock

    @property
    def key_prefix(self) -> str:
        return self._key_prefix

    def issue(
        self,
        name: str,
        period: str,
        origin: str,
        value: int,
        image_url: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> tuple[ApiKeyRecord, str]:
        """
        Create a key record and return it with the plaintext key.

        The plaintext is returned here once and never stored; the store only
        sees its hash and last four characters.
        """
        generated = generate_api_key(self._key_prefix, self._key_bytes)
        record = self._api_key_repo.create(
            key_id=str(uuid.uuid4()),
            name=name,
            period=period,
            origin=origin,
            value=value,
            hashed_key=hash_api_key(generated.key),
            last4=generated.last4,
            created_at=self._clock().isoformat(),
            user_id=user_id,
            image_url=image_url,
        )
        logger.info(f"API key created: {self.mask(record)} for user {user_id}")
        return record, generated.key

    def list_keys(self) -> List[ApiKeyRecord]:
        return self._api_key_repo.list_all()

    def get_key(self, key_id: str) -> Optional[ApiKeyRecord]:
        return self._api_key_repo.get_by_id(key_id)

    def find_by_name(self, name: str) -> List[ApiKeyRecord]:
        return self._api_key_repo.find_by_name(name)

    def revoke(self, key_id: str) -> bool:
        revoked = self._api_key_repo.revoke(key_id)
        if revoked:
            logger.info(f"API key revoked: {key_id}")
        return revoked

    def mask(self, record: ApiKeyRecord) -> str:
        return mask_api_key(record.last4, self._key_prefix)
