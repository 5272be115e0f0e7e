"""SQLite key/value storage for provider settings."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

SETTINGS_KEYS = ("api_key", "provider", "model", "base_url")


class SettingsStore:
    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")

    def init_db(self) -> None:
        """Create the settings table."""
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )
        self._conn.commit()

    def load(self, defaults: dict[str, str]) -> dict[str, str]:
        """Return stored settings layered over ``defaults``."""
        settings = dict(defaults)
        rows = self._conn.execute("SELECT key, value FROM settings").fetchall()
        for row in rows:
            settings[row["key"]] = row["value"]
        return settings

    def save(self, settings: dict[str, str | None]) -> None:
        """Upsert the known settings keys; ``None`` clears a key."""
        now = datetime.now(timezone.utc).isoformat()
        for key in SETTINGS_KEYS:
            if key not in settings:
                continue
            value = settings[key]
            if value is None:
                self._conn.execute("DELETE FROM settings WHERE key = ?", (key,))
            else:
                self._conn.execute(
                    "INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                    (key, value, now),
                )
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()
