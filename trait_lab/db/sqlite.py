from __future__ import annotations

import json
import logging
import sqlite3
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Sequence

from ..items import GeneratedItem
from .interfaces import (
    CollectionNotFoundError,
    CollectionRecord,
    CollectionStoreProtocol,
    CollectionSummary,
)
from .schema import apply_migrations

LOGGER = logging.getLogger("traitlab.db")

DEFAULT_CANVAS = 512


def _json_dumps(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False)


def _json_loads(raw: str | None) -> Any:
    if raw is None:
        return None
    return json.loads(raw)


@dataclass
class SQLiteCollectionStore(CollectionStoreProtocol):
    """Collection store backed by an SQLite database file."""

    db_path: Path

    def __post_init__(self) -> None:
        self.db_path = Path(self.db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.transaction() as conn:
            apply_migrations(conn)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ------------------------------------------------------------------
    def save(
        self,
        name: str,
        canvas_width: int,
        canvas_height: int,
        categories: Sequence[Mapping[str, Any]],
        items: Sequence[GeneratedItem],
    ) -> str:
        if not name or not str(name).strip():
            raise ValueError("collection name is required")
        collection_id = str(uuid.uuid4())
        now = int(time.time())
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO collections(
                    id, name, canvas_width, canvas_height, categories_json, created_at, updated_at
                ) VALUES(?,?,?,?,?,?,?)
                """,
                (
                    collection_id,
                    str(name).strip(),
                    int(canvas_width or DEFAULT_CANVAS),
                    int(canvas_height or DEFAULT_CANVAS),
                    _json_dumps(list(categories)),
                    now,
                    now,
                ),
            )
            conn.executemany(
                """
                INSERT INTO generated_items(
                    id, collection_id, position, image_data, traits_json, created_at
                ) VALUES(?,?,?,?,?,?)
                """,
                [
                    (
                        item.id,
                        collection_id,
                        position,
                        item.data_uri(),
                        _json_dumps([triple.as_dict() for triple in item.traits]),
                        now,
                    )
                    for position, item in enumerate(items)
                ],
            )
        LOGGER.info("saved collection %s (%s) with %d items", collection_id, name, len(items))
        return collection_id

    def list(self) -> List[CollectionSummary]:
        with self.transaction() as conn:
            rows = conn.execute(
                """
                SELECT c.id, c.name, c.canvas_width, c.canvas_height, c.created_at,
                       (SELECT COUNT(*) FROM generated_items g WHERE g.collection_id = c.id)
                FROM collections c
                ORDER BY c.created_at DESC, c.rowid DESC
                """
            ).fetchall()
        return [
            CollectionSummary(
                id=row[0],
                name=row[1],
                canvas_width=row[2] or DEFAULT_CANVAS,
                canvas_height=row[3] or DEFAULT_CANVAS,
                item_count=row[5],
                created_at=row[4],
            )
            for row in rows
        ]

    def get(self, collection_id: str) -> CollectionRecord:
        with self.transaction() as conn:
            row = conn.execute(
                """
                SELECT id, name, canvas_width, canvas_height, categories_json, created_at, updated_at
                FROM collections WHERE id=?
                """,
                (collection_id,),
            ).fetchone()
            if row is None:
                raise CollectionNotFoundError(collection_id)
            item_rows = conn.execute(
                """
                SELECT id, image_data, traits_json FROM generated_items
                WHERE collection_id=? ORDER BY position
                """,
                (collection_id,),
            ).fetchall()
        items = [
            GeneratedItem.from_dict({"id": item_id, "dataUrl": image_data, "traits": _json_loads(traits) or []})
            for item_id, image_data, traits in item_rows
        ]
        return CollectionRecord(
            id=row[0],
            name=row[1],
            canvas_width=row[2] or DEFAULT_CANVAS,
            canvas_height=row[3] or DEFAULT_CANVAS,
            categories=_json_loads(row[4]) or [],
            items=items,
            created_at=row[5],
            updated_at=row[6],
        )

    def delete(self, collection_id: str) -> None:
        with self.transaction() as conn:
            cursor = conn.execute("DELETE FROM collections WHERE id=?", (collection_id,))
            if cursor.rowcount == 0:
                raise CollectionNotFoundError(collection_id)
        LOGGER.info("deleted collection %s", collection_id)


__all__ = ["SQLiteCollectionStore"]
