from __future__ import annotations

import logging
import os
import sqlite3
from typing import Callable

logger = logging.getLogger(__name__)

DbFactory = Callable[[], sqlite3.Connection]


def make_db_factory(database_path: str, timeout: float = 5.0) -> DbFactory:
    """Build a connection factory bound to one database file."""
    def get_db() -> sqlite3.Connection:
        return sqlite3.connect(database_path, timeout=timeout)
    return get_db


def init_db(db_factory: DbFactory) -> None:
    """Initialize SQLite database."""
    conn = db_factory()
    try:
        cursor = conn.cursor()

        # Issued keys; the plaintext secret is never stored
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS api_keys (
                id TEXT PRIMARY KEY,
                user_id TEXT,
                name TEXT NOT NULL,
                period TEXT NOT NULL,
                origin TEXT NOT NULL,
                value INTEGER NOT NULL,
                image_url TEXT,
                hashed_key TEXT NOT NULL,
                last4 TEXT NOT NULL,
                created_at TEXT NOT NULL,
                revoked INTEGER NOT NULL DEFAULT 0
            )
        ''')

        # One subscription row per user
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS subscriptions (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL UNIQUE,
                tier TEXT NOT NULL DEFAULT 'free',
                keys_created_today INTEGER NOT NULL DEFAULT 0,
                last_reset_date TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('CREATE UNIQUE INDEX IF NOT EXISTS idx_api_keys_hashed_key ON api_keys(hashed_key)')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_api_keys_created_at ON api_keys(created_at DESC)')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_api_keys_user_id ON api_keys(user_id)')

        conn.commit()
    finally:
        conn.close()
    logger.info('Database initialized')


def ensure_data_dir(database_path: str) -> None:
    data_dir = os.path.dirname(database_path) or '.'
    os.makedirs(data_dir, exist_ok=True)
