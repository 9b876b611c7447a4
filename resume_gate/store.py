"""
Request store: request id → RequestRecord, with TTL expiry.

Two backends share the RequestStore interface:

    InMemoryRequestStore  - dict + lock; used by tests and single-process dev
    SqliteRequestStore    - one key/value table in a local SQLite file

Keys are namespaced as "resume_request:{id}" so the table can share a file
with other data.

Expiry
------
Every put() takes a ttl in seconds and stores an absolute expires_at. Expired
entries are invisible to get() and every put() purges all expired entries. The
service never deletes records itself; the TTL bounds storage for denied
requests and requests whose links were never clicked.

Conditional write
-----------------
put_if_status(id, expected, record, ttl) stores record only when the stored
record still has status == expected. The decision handler uses it to move a
request out of pending so two racing decisions cannot both win. SQLite does
this with a single UPDATE ... WHERE status = ?; the memory store holds its
lock across the read and the write.
"""
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable

from resume_gate.models import RECORD_TTL_SECONDS, RequestRecord, RequestStatus

Clock = Callable[[], float]


def request_key(request_id: str) -> str:
    return f"resume_request:{request_id}"


class RequestStore(ABC):
    @abstractmethod
    def put(self, request_id: str, record: RequestRecord, ttl: int = RECORD_TTL_SECONDS) -> None:
        """Insert or overwrite the record for request_id."""

    @abstractmethod
    def get(self, request_id: str) -> RequestRecord | None:
        """Return the live record, or None if absent or expired."""

    @abstractmethod
    def put_if_status(
        self,
        request_id: str,
        expected: RequestStatus,
        record: RequestRecord,
        ttl: int = RECORD_TTL_SECONDS,
    ) -> bool:
        """Store record only if the live record's status equals expected."""


class InMemoryRequestStore(RequestStore):
    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        self._items: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def _live(self, key: str) -> RequestRecord | None:
        item = self._items.get(key)
        if item is None:
            return None
        raw, expires_at = item
        if self._clock() >= expires_at:
            del self._items[key]
            return None
        return RequestRecord.from_json(raw)

    def _purge(self, now: float) -> None:
        for key in [k for k, (_, expires_at) in self._items.items() if expires_at <= now]:
            del self._items[key]

    def put(self, request_id, record, ttl=RECORD_TTL_SECONDS):
        with self._lock:
            now = self._clock()
            self._purge(now)
            self._items[request_key(request_id)] = (record.to_json(), now + ttl)

    def get(self, request_id):
        with self._lock:
            return self._live(request_key(request_id))

    def put_if_status(self, request_id, expected, record, ttl=RECORD_TTL_SECONDS):
        key = request_key(request_id)
        with self._lock:
            current = self._live(key)
            if current is None or current.status != expected:
                return False
            now = self._clock()
            self._purge(now)
            self._items[key] = (record.to_json(), now + ttl)
            return True


class SqliteRequestStore(RequestStore):
    """
    SQLite-backed store. Opens a short-lived connection per operation so the
    store is safe to share across FastAPI's worker threads.

    The status column duplicates the value inside the JSON blob so the
    conditional write can compare it without parsing JSON in SQL.
    """

    def __init__(self, db_path: str, clock: Clock = time.time):
        self._db_path = db_path
        self._clock = clock
        self.init_db()

    @contextmanager
    def _db(self):
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create the table. Safe to call on every startup."""
        with self._db() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS kv_requests (
                    key        TEXT PRIMARY KEY,
                    status     TEXT NOT NULL,
                    value      TEXT NOT NULL,
                    expires_at REAL NOT NULL
                );
                CREATE INDEX IF NOT EXISTS kv_requests_expires
                    ON kv_requests (expires_at);
            """)

    def put(self, request_id, record, ttl=RECORD_TTL_SECONDS):
        now = self._clock()
        with self._db() as conn:
            conn.execute("DELETE FROM kv_requests WHERE expires_at <= ?", (now,))
            conn.execute(
                """INSERT INTO kv_requests (key, status, value, expires_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                       status = excluded.status,
                       value = excluded.value,
                       expires_at = excluded.expires_at""",
                (request_key(request_id), record.status.value, record.to_json(), now + ttl),
            )

    def get(self, request_id):
        with self._db() as conn:
            row = conn.execute(
                "SELECT value FROM kv_requests WHERE key = ? AND expires_at > ?",
                (request_key(request_id), self._clock()),
            ).fetchone()
        if not row:
            return None
        return RequestRecord.from_json(row["value"])

    def put_if_status(self, request_id, expected, record, ttl=RECORD_TTL_SECONDS):
        now = self._clock()
        with self._db() as conn:
            cursor = conn.execute(
                """UPDATE kv_requests
                   SET status = ?, value = ?, expires_at = ?
                   WHERE key = ? AND status = ? AND expires_at > ?""",
                (record.status.value, record.to_json(), now + ttl,
                 request_key(request_id), expected.value, now),
            )
            return cursor.rowcount == 1


def build_store(settings) -> RequestStore:
    if settings.store_backend == "memory":
        return InMemoryRequestStore()
    if settings.store_backend == "sqlite":
        return SqliteRequestStore(settings.db_path)
    raise ValueError(f"Unknown RESUME_STORE backend: {settings.store_backend!r}")
