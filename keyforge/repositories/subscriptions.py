from __future__ import annotations

import sqlite3
import uuid
from typing import Callable, Optional

from keyforge.models import SubscriptionRecord
from keyforge.tiers import DEFAULT_TIER, Tier, parse_tier

_COLUMNS = 'id, user_id, tier, keys_created_today, last_reset_date, created_at, updated_at'


def _to_record(row) -> SubscriptionRecord:
    return SubscriptionRecord(
        id=row[0],
        user_id=row[1],
        tier=parse_tier(row[2]) or DEFAULT_TIER,
        keys_created_today=row[3],
        last_reset_date=row[4],
        created_at=row[5],
        updated_at=row[6],
    )


class SubscriptionRepository:
    """Repository for per-user subscriptions and their daily key counters.

    Every write is a single statement so concurrent requests for the same
    user cannot lose an update.
    """
    def __init__(self, db_factory: Callable[[], sqlite3.Connection]):
        self._db_factory = db_factory

    def get(self, user_id: str) -> Optional[SubscriptionRecord]:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {_COLUMNS} FROM subscriptions WHERE user_id = ?', (user_id,))
            row = cursor.fetchone()
            return _to_record(row) if row else None
        finally:
            conn.close()

    def get_or_create(self, user_id: str, today: str) -> SubscriptionRecord:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(
                '''
                INSERT OR IGNORE INTO subscriptions (id, user_id, tier, keys_created_today, last_reset_date)
                VALUES (?, ?, ?, 0, ?)
                ''',
                (str(uuid.uuid4()), user_id, DEFAULT_TIER.value, today),
            )
            conn.commit()
            cursor.execute(f'SELECT {_COLUMNS} FROM subscriptions WHERE user_id = ?', (user_id,))
            return _to_record(cursor.fetchone())
        finally:
            conn.close()

    def reset_if_stale(self, user_id: str, today: str) -> bool:
        """Zero the counter when it belongs to an earlier day."""
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(
                '''
                UPDATE subscriptions
                SET keys_created_today = 0, last_reset_date = ?, updated_at = CURRENT_TIMESTAMP
                WHERE user_id = ? AND last_reset_date != ?
                ''',
                (today, user_id, today),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def increment(self, user_id: str, today: str) -> int:
        """Count one key creation for ``today`` and return the new total.

        A stale counter restarts at 1 inside the same statement, so the reset
        can never be lost to a concurrent increment.
        """
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(
                '''
                INSERT INTO subscriptions (id, user_id, tier, keys_created_today, last_reset_date)
                VALUES (?, ?, ?, 1, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    keys_created_today = CASE
                        WHEN subscriptions.last_reset_date = excluded.last_reset_date
                        THEN subscriptions.keys_created_today + 1
                        ELSE 1
                    END,
                    last_reset_date = excluded.last_reset_date,
                    updated_at = CURRENT_TIMESTAMP
                ''',
                (str(uuid.uuid4()), user_id, DEFAULT_TIER.value, today),
            )
            conn.commit()
            cursor.execute('SELECT keys_created_today FROM subscriptions WHERE user_id = ?', (user_id,))
            return cursor.fetchone()[0]
        finally:
            conn.close()

    def set_tier(self, user_id: str, tier: Tier, today: str) -> None:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(
                '''
                INSERT INTO subscriptions (id, user_id, tier, keys_created_today, last_reset_date)
                VALUES (?, ?, ?, 0, ?)
                ON CONFLICT(user_id) DO UPDATE SET tier = excluded.tier, updated_at = CURRENT_TIMESTAMP
                ''',
                (str(uuid.uuid4()), user_id, tier.value, today),
            )
            conn.commit()
        finally:
            conn.close()

