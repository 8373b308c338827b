"""Document store on SQLite.

Collections of JSON documents keyed by id, the shape the drill engine expects
from its backing store: filtered reads, field-level merges, write-once
appends, counts and a transactional read-modify-write for single documents.
"""
import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Optional

from vocab_drill.db import DEFAULT_DB_PATH, get_connection, init_db
from vocab_drill.errors import RecordNotFound, StoreUnavailable
from vocab_drill.models import UNCLASSIFIED_TIER

logger = logging.getLogger(__name__)

VOCABULARY = "vocabulary"
USERS = "users"


def weak_words_collection(user_id: str) -> str:
    return f"users/{user_id}/weak_words"


def learning_logs_collection(user_id: str) -> str:
    return f"users/{user_id}/learning_logs"


def _now() -> str:
    return datetime.now().isoformat()


def _load(row: sqlite3.Row) -> dict:
    data = json.loads(row["data"])
    data["id"] = row["doc_id"]
    return data


def _dump(data: dict) -> str:
    body = {k: v for k, v in data.items() if k != "id"}
    return json.dumps(body, ensure_ascii=False, sort_keys=True)


class DocumentStore:
    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    def init(self) -> "DocumentStore":
        try:
            init_db(self.db_path)
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailable(f"Cannot initialize store at {self.db_path}: {e}") from e
        return self

    @contextmanager
    def _connect(self):
        try:
            conn = get_connection(self.db_path)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Cannot open store at {self.db_path}: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise StoreUnavailable(str(e)) from e
        finally:
            conn.close()

    @contextmanager
    def _transaction(self):
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def _fetch(self, conn, collection: str, doc_id: str) -> Optional[dict]:
        row = conn.execute(
            "SELECT doc_id, data FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id),
        ).fetchone()
        return _load(row) if row else None

    def _write(self, conn, collection: str, doc_id: str, data: dict) -> None:
        now = _now()
        conn.execute(
            """INSERT INTO documents (collection, doc_id, data, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(collection, doc_id) DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at""",
            (collection, doc_id, _dump(data), now, now),
        )

    def query_by_tier(self, max_tier: int) -> list[dict]:
        """All vocabulary documents with tier <= max_tier (untiered count as unclassified)."""
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT doc_id, data FROM documents
                WHERE collection = ? AND COALESCE(json_extract(data, '$.tier'), ?) <= ?
                ORDER BY rowid""",
                (VOCABULARY, UNCLASSIFIED_TIER, max_tier),
            ).fetchall()
        return [_load(r) for r in rows]

    def read_all(self, collection: str, limit: Optional[int] = None) -> list[dict]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT doc_id, data FROM documents WHERE collection = ? ORDER BY rowid LIMIT ?",
                (collection, -1 if limit is None else limit),
            ).fetchall()
        return [_load(r) for r in rows]

    def read(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._connect() as conn:
            return self._fetch(conn, collection, doc_id)

    def upsert_merge(self, collection: str, doc_id: str, partial: dict) -> dict:
        """Create the document or merge top-level fields into it."""
        with self._transaction() as conn:
            current = self._fetch(conn, collection, doc_id) or {}
            merged = {**current, **partial}
            self._write(conn, collection, doc_id, merged)
        merged["id"] = doc_id
        return merged

    def update(self, collection: str, doc_id: str, partial: dict) -> dict:
        with self._transaction() as conn:
            current = self._fetch(conn, collection, doc_id)
            if current is None:
                raise RecordNotFound(collection, doc_id)
            merged = {**current, **partial}
            self._write(conn, collection, doc_id, merged)
        merged["id"] = doc_id
        return merged

    def delete(self, collection: str, doc_id: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            )

    def append(self, collection: str, doc_id: str, record: dict) -> None:
        """Write-once insert; an existing id is an error."""
        now = _now()
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO documents (collection, doc_id, data, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                (collection, doc_id, _dump(record), now, now),
            )

    def count(self, collection: str) -> int:
        with self._connect() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM documents WHERE collection = ?", (collection,)
            ).fetchone()[0]

    def modify(
        self,
        collection: str,
        doc_id: str,
        fn: Callable[[Optional[dict]], Optional[dict]],
    ) -> Optional[dict]:
        """Read-modify-write one document inside a single transaction.

        ``fn`` gets the current document (or None) and returns the new one;
        returning None deletes the document.
        """
        with self._transaction() as conn:
            current = self._fetch(conn, collection, doc_id)
            updated = fn(dict(current) if current is not None else None)
            if updated is None:
                if current is not None:
                    conn.execute(
                        "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                        (collection, doc_id),
                    )
                    logger.debug("Deleted %s/%s", collection, doc_id)
            elif updated != current:
                self._write(conn, collection, doc_id, updated)
        if updated is not None:
            updated["id"] = doc_id
        return updated
