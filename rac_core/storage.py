"""
rac_core/storage.py — RoyaltyAutoClaim SQLite Storage Region

Tables:
- meta:        Namespace slot id and schema version of this region
- config:      Role and contract configuration (owner, admin, token, ...)
- reviewers:   Reviewer membership
- submissions: Per-title submission records
- reviews:     (title, reviewer) dedup flags
- events:      Append-only, hash-chained event log

The connection runs in autocommit mode; atomicity comes from savepoints
opened by Runtime.frame().  The outermost savepoint commits on release,
nested ones roll back only their own frame on failure.
"""

from __future__ import annotations

import hashlib
import itertools
import json
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from .config import SCHEMA_VERSION, STORAGE_NAMESPACE
from .record import LedgerEvent, Submission, SubmissionStatus


def storage_slot(namespace: str) -> str:
    """Deterministic, collision-resistant slot id for a namespace.

    SHA-256(SHA-256(namespace) - 1) with the last byte cleared.
    """
    inner = int.from_bytes(hashlib.sha256(namespace.encode("utf-8")).digest(), "big")
    outer = bytearray(hashlib.sha256((inner - 1).to_bytes(32, "big")).digest())
    outer[-1] = 0
    return bytes(outer).hex()


class StorageNamespaceMismatch(ValueError):
    """The database belongs to another namespace or a newer schema."""


class Storage:
    """SQLite storage region for one RoyaltyAutoClaim contract.

    Owns all persistent contract state; nothing outside this class holds
    a reference to the underlying rows.
    """

    def __init__(
        self,
        db_path: str = ":memory:",
        namespace: str = STORAGE_NAMESPACE,
    ):
        self.db_path = db_path
        self.namespace = namespace
        self.slot = storage_slot(namespace)
        self.conn = sqlite3.connect(db_path, isolation_level=None)
        self.conn.row_factory = sqlite3.Row
        self._savepoint_ids = itertools.count()
        self._create_tables()
        self._check_namespace()

    def _create_tables(self) -> None:
        """Create tables if they don't exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS reviewers (
                address TEXT PRIMARY KEY,
                is_reviewer INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS submissions (
                title TEXT PRIMARY KEY,
                royalty_recipient TEXT NOT NULL,
                total_royalty_level INTEGER NOT NULL DEFAULT 0,
                review_count INTEGER NOT NULL DEFAULT 0,
                status TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS reviews (
                title TEXT NOT NULL,
                reviewer TEXT NOT NULL,
                PRIMARY KEY (title, reviewer)
            );

            CREATE TABLE IF NOT EXISTS events (
                sequence_number INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                event_hash TEXT NOT NULL,
                previous_hash TEXT,
                data TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_events_name
                ON events(name);
        """)

    def _check_namespace(self) -> None:
        """Stamp a fresh region, or refuse one that belongs elsewhere."""
        rows = {
            row["key"]: row["value"]
            for row in self.conn.execute("SELECT key, value FROM meta")
        }
        if not rows:
            self.conn.executemany(
                "INSERT INTO meta (key, value) VALUES (?, ?)",
                [("slot", self.slot), ("schema_version", str(SCHEMA_VERSION))],
            )
            return
        if rows.get("slot") != self.slot:
            raise StorageNamespaceMismatch(
                f"Storage slot {rows.get('slot')} does not match namespace "
                f"{self.namespace!r} ({self.slot})"
            )
        if int(rows.get("schema_version", "0")) > SCHEMA_VERSION:
            raise StorageNamespaceMismatch(
                f"Schema version {rows['schema_version']} is newer than "
                f"supported version {SCHEMA_VERSION}"
            )

    # ------------------------------------------------------------------
    # Atomic frames
    # ------------------------------------------------------------------

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        """All-or-nothing scope; nests."""
        name = f"frame_{next(self._savepoint_ids)}"
        self.conn.execute(f"SAVEPOINT {name}")
        try:
            yield
        except BaseException:
            self.conn.execute(f"ROLLBACK TO {name}")
            self.conn.execute(f"RELEASE {name}")
            raise
        else:
            self.conn.execute(f"RELEASE {name}")

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def get_config(self, key: str) -> Optional[str]:
        row = self.conn.execute(
            "SELECT value FROM config WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set_config(self, key: str, value: str) -> None:
        self.conn.execute(
            """INSERT INTO config (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
            (key, value),
        )

    # ------------------------------------------------------------------
    # Reviewers
    # ------------------------------------------------------------------

    def set_reviewer(self, address: str, is_reviewer: bool) -> None:
        self.conn.execute(
            """INSERT INTO reviewers (address, is_reviewer) VALUES (?, ?)
               ON CONFLICT(address) DO UPDATE SET
                   is_reviewer = excluded.is_reviewer""",
            (address, int(is_reviewer)),
        )

    def is_reviewer(self, address: str) -> bool:
        row = self.conn.execute(
            "SELECT is_reviewer FROM reviewers WHERE address = ?", (address,)
        ).fetchone()
        return bool(row and row["is_reviewer"])

    def get_reviewers(self) -> list[str]:
        """All current reviewers, sorted by address."""
        rows = self.conn.execute(
            "SELECT address FROM reviewers WHERE is_reviewer = 1 "
            "ORDER BY address"
        ).fetchall()
        return [row["address"] for row in rows]

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    def get_submission(self, title: str) -> Submission:
        """Stored record for title, or the zero-valued NOT_EXIST record."""
        row = self.conn.execute(
            "SELECT * FROM submissions WHERE title = ?", (title,)
        ).fetchone()
        if row is None:
            return Submission.missing(title)
        return Submission(
            title=row["title"],
            royalty_recipient=row["royalty_recipient"],
            total_royalty_level=row["total_royalty_level"],
            review_count=row["review_count"],
            status=SubmissionStatus(row["status"]),
        )

    def put_submission(self, submission: Submission) -> None:
        self.conn.execute(
            """INSERT INTO submissions
               (title, royalty_recipient, total_royalty_level,
                review_count, status)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(title) DO UPDATE SET
                   royalty_recipient = excluded.royalty_recipient,
                   total_royalty_level = excluded.total_royalty_level,
                   review_count = excluded.review_count,
                   status = excluded.status""",
            (
                submission.title,
                submission.royalty_recipient,
                submission.total_royalty_level,
                submission.review_count,
                submission.status.value,
            ),
        )

    def delete_submission(self, title: str) -> None:
        self.conn.execute("DELETE FROM submissions WHERE title = ?", (title,))

    def list_submissions(self) -> list[Submission]:
        rows = self.conn.execute(
            "SELECT title FROM submissions ORDER BY title"
        ).fetchall()
        return [self.get_submission(row["title"]) for row in rows]

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def has_reviewed(self, title: str, reviewer: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM reviews WHERE title = ? AND reviewer = ?",
            (title, reviewer),
        ).fetchone()
        return row is not None

    def mark_reviewed(self, title: str, reviewer: str) -> None:
        self.conn.execute(
            "INSERT INTO reviews (title, reviewer) VALUES (?, ?)",
            (title, reviewer),
        )

    # ------------------------------------------------------------------
    # Event log
    # ------------------------------------------------------------------

    def last_event(self) -> Optional[LedgerEvent]:
        row = self.conn.execute(
            "SELECT data FROM events ORDER BY sequence_number DESC LIMIT 1"
        ).fetchone()
        if row:
            return LedgerEvent.model_validate_json(row["data"])
        return None

    def save_event(self, event: LedgerEvent) -> None:
        """Persist a sealed event."""
        self.conn.execute(
            """INSERT INTO events
               (sequence_number, name, timestamp, event_hash,
                previous_hash, data)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                event.sequence_number,
                event.name,
                event.timestamp.isoformat(),
                event.event_hash,
                event.previous_hash,
                json.dumps(event.model_dump(mode="json"), ensure_ascii=False),
            ),
        )

    def get_events(self, name: str = "") -> list[LedgerEvent]:
        """All events in sequence order, optionally filtered by name."""
        query = "SELECT data FROM events"
        params: list = []
        if name:
            query += " WHERE name = ?"
            params.append(name)
        query += " ORDER BY sequence_number"
        rows = self.conn.execute(query, params).fetchall()
        return [LedgerEvent.model_validate_json(row["data"]) for row in rows]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
