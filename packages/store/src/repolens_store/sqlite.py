"""SQLiteStore: local file-based store for single-developer use.

The default backend: review history works with zero configuration. The
partition_id column lets several tools or teams share one file.

Schema:
  reviews  — one row per review record; comments are stored as a JSON
             column to keep the document shape intact (no sub-table).
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import uuid

from repolens_store.base import DEFAULT_PARTITION, BaseStore, StoreError
from repolens_store.models import ReviewRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS reviews (
    id              TEXT PRIMARY KEY,
    partition_id    TEXT NOT NULL,
    owner           TEXT NOT NULL,
    repo            TEXT NOT NULL,
    branch          TEXT,
    created_at      TEXT,
    ai_summary      TEXT DEFAULT '',
    project_kind    TEXT,
    comments_json   TEXT DEFAULT '[]'
);
CREATE INDEX IF NOT EXISTS idx_reviews_partition ON reviews (partition_id);
CREATE INDEX IF NOT EXISTS idx_reviews_repo      ON reviews (partition_id, owner, repo);
"""

_UPSERT = """
INSERT OR REPLACE INTO reviews
  (id, partition_id, owner, repo, branch, created_at, ai_summary, project_kind, comments_json)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class SQLiteStore(BaseStore):
    """Stores review history in a local SQLite database file.

    The database file path defaults to `.repolens.db` in the current working
    directory. Configure via .repolens.yml: `store_path: /path/to/repolens.db`.

    The session calls the store from worker threads, so the connection is
    shared across threads and every statement runs under one lock.

    update() writes the record whether or not the id already exists, the
    same overwrite semantics a document store's set() has.
    """

    def __init__(self, db_path: str = ".repolens.db", partition: str = DEFAULT_PARTITION):
        super().__init__(partition)
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Could not open review database {db_path}: {e}") from e

    def save(self, record: ReviewRecord) -> str:
        record_id = uuid.uuid4().hex
        self._write(record_id, record)
        return record_id

    def update(self, record_id: str, record: ReviewRecord) -> None:
        if not record_id:
            raise StoreError("Cannot update a review without an id")
        self._write(record_id, record)

    def delete(self, record_id: str) -> None:
        try:
            with self._lock:
                cursor = self._conn.execute(
                    "DELETE FROM reviews WHERE id=? AND partition_id=?",
                    (record_id, self.partition),
                )
                self._conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Could not delete review {record_id}: {e}") from e
        if cursor.rowcount == 0:
            raise StoreError(f"No review with id {record_id!r}")

    def list_reviews(self, repo: str | None = None) -> list[ReviewRecord]:
        try:
            with self._lock:
                if repo is not None:
                    owner, _, name = repo.partition("/")
                    rows = self._conn.execute(
                        "SELECT * FROM reviews WHERE partition_id=? AND owner=? AND repo=?",
                        (self.partition, owner, name),
                    ).fetchall()
                else:
                    rows = self._conn.execute(
                        "SELECT * FROM reviews WHERE partition_id=?",
                        (self.partition,),
                    ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Could not read review history: {e}") from e

        return [self._row_to_record(r) for r in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _write(self, record_id: str, record: ReviewRecord) -> None:
        payload = record.to_dict()
        try:
            with self._lock:
                self._conn.execute(
                    _UPSERT,
                    (
                        record_id,
                        self.partition,
                        payload["owner"],
                        payload["repo"],
                        payload["branch"],
                        payload["created_at"],
                        payload["ai_summary"],
                        payload["project_kind"],
                        json.dumps(payload["comments"]),
                    ),
                )
                self._conn.commit()
        except sqlite3.Error as e:
            logger.warning("SQLiteStore write of %s failed: %s", record_id, e)
            raise StoreError(f"Could not save review: {e}") from e

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> ReviewRecord:
        return ReviewRecord.from_dict(
            row["id"],
            {
                "owner": row["owner"],
                "repo": row["repo"],
                "branch": row["branch"] or "",
                "created_at": row["created_at"],
                "ai_summary": row["ai_summary"] or "",
                "project_kind": row["project_kind"],
                "comments": json.loads(row["comments_json"] or "[]"),
            },
        )
