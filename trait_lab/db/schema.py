from __future__ import annotations

import sqlite3
from typing import Iterable


MIGRATIONS: list[Iterable[str]] = [
    (
        """
        CREATE TABLE IF NOT EXISTS collections (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            canvas_width INTEGER NOT NULL DEFAULT 512,
            canvas_height INTEGER NOT NULL DEFAULT 512,
            categories_json TEXT NOT NULL,
            created_at INTEGER NOT NULL DEFAULT (strftime('%s', 'now')),
            updated_at INTEGER NOT NULL DEFAULT (strftime('%s', 'now'))
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS generated_items (
            id TEXT NOT NULL,
            collection_id TEXT NOT NULL,
            position INTEGER NOT NULL,
            image_data TEXT NOT NULL,
            traits_json TEXT NOT NULL,
            created_at INTEGER NOT NULL DEFAULT (strftime('%s', 'now')),
            PRIMARY KEY(collection_id, position),
            FOREIGN KEY(collection_id) REFERENCES collections(id) ON DELETE CASCADE
        )
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_generated_items_id ON generated_items(id)
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_collections_created_at ON collections(created_at)
        """,
    ),
]


def apply_migrations(conn: sqlite3.Connection) -> None:
    """Bring *conn* up to the latest schema version using ``user_version``."""

    current = conn.execute("PRAGMA user_version").fetchone()[0]
    for version, statements in enumerate(MIGRATIONS, start=1):
        if version <= current:
            continue
        for statement in statements:
            conn.execute(statement)
        conn.execute(f"PRAGMA user_version = {version}")
    conn.commit()


__all__ = ["MIGRATIONS", "apply_migrations"]
