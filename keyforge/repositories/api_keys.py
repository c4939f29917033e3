from __future__ import annotations

import sqlite3
from typing import Callable, List, Optional

from keyforge.models import ApiKeyRecord

_COLUMNS = 'id, name, period, origin, value, hashed_key, last4, created_at, user_id, image_url, revoked'


def _to_record(row) -> ApiKeyRecord:
    return ApiKeyRecord(
        id=row[0],
        name=row[1],
        period=row[2],
        origin=row[3],
        value=row[4],
        hashed_key=row[5],
        last4=row[6],
        created_at=row[7],
        user_id=row[8],
        image_url=row[9],
        revoked=bool(row[10]),
    )


class ApiKeyRepository:
    """Repository for issued API keys."""
    def __init__(self, db_factory: Callable[[], sqlite3.Connection]):
        self._db_factory = db_factory

    def create(
        self,
        key_id: str,
        name: str,
        period: str,
        origin: str,
        value: int,
        hashed_key: str,
        last4: str,
        created_at: str,
        user_id: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> ApiKeyRecord:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(
                '''
                INSERT INTO api_keys (id, name, period, origin, value, hashed_key, last4, created_at, user_id, image_url)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ''',
                (key_id, name, period, origin, value, hashed_key, last4, created_at, user_id, image_url),
            )
            conn.commit()
        finally:
            conn.close()
        return ApiKeyRecord(
            id=key_id,
            name=name,
            period=period,
            origin=origin,
            value=value,
            hashed_key=hashed_key,
            last4=last4,
            created_at=created_at,
            user_id=user_id,
            image_url=image_url,
        )

    def list_all(self) -> List[ApiKeyRecord]:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {_COLUMNS} FROM api_keys ORDER BY created_at DESC, rowid DESC')
            return [_to_record(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_by_id(self, key_id: str) -> Optional[ApiKeyRecord]:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {_COLUMNS} FROM api_keys WHERE id = ?', (key_id,))
            row = cursor.fetchone()
            return _to_record(row) if row else None
        finally:
            conn.close()

    def find_by_hash(self, hashed_key: str) -> Optional[ApiKeyRecord]:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {_COLUMNS} FROM api_keys WHERE hashed_key = ?', (hashed_key,))
            row = cursor.fetchone()
            return _to_record(row) if row else None
        finally:
            conn.close()

    def find_by_name(self, name: str) -> List[ApiKeyRecord]:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {_COLUMNS} FROM api_keys WHERE name = ? ORDER BY created_at DESC', (name,))
            return [_to_record(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def revoke(self, key_id: str) -> bool:
        """Mark a key revoked. True when the id exists, revoked already or not."""
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute('UPDATE api_keys SET revoked = 1 WHERE id = ?', (key_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()
