"""
Row store integration for Vocab Buddy.

The workflow only ever needs four operation shapes against a named table:

- insert(table, record) -> stored record (with ``id`` and ``created_at``)
- select(table, where, any_of, order_by, descending) -> records
- update(table, where, patch) -> number of rows changed
- delete(table, where, any_of) -> number of rows removed

``where`` is an AND of equality checks and ``any_of`` an OR of equality
checks, which is enough for "this user's words in this language, counting
the legacy target-language field".

Two backends implement them:
- FirestoreRowStore: Firebase Firestore, one top-level collection per table
- MemoryRowStore: process-local rows for tests and ``VOCAB_BUDDY_STORE=memory``

Collection structure (Firestore):
- words/{id}              -> Word
- learning_sessions/{id}  -> LearningSession
- test_results/{id}       -> TestResult
"""

import copy
import itertools
import os
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.auth.exceptions import TransportError
from google.cloud.firestore_v1.base_query import FieldFilter, Or

from .config import Settings, STORE_MEMORY, settings as default_settings
from .errors import NetworkError, PersistenceError
from .logger import logger, Timer
from .models import utc_now_iso

Filter = Optional[Dict[str, Any]]

_NETWORK_ERRORS = (
    google_exceptions.DeadlineExceeded,
    google_exceptions.ServiceUnavailable,
    google_exceptions.RetryError,
    TransportError,
)


class RowStore(ABC):
    """Generic row-oriented persistence used by every workflow component."""

    @abstractmethod
    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def select(
        self,
        table: str,
        where: Filter = None,
        any_of: Filter = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def update(self, table: str, where: Dict[str, Any], patch: Dict[str, Any]) -> int:
        ...

    @abstractmethod
    def delete(self, table: str, where: Dict[str, Any], any_of: Filter = None) -> int:
        ...

    @staticmethod
    def _new_row(record: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", utc_now_iso())
        return row


# ---------------------------------------------------------------------------
# Memory backend
# ---------------------------------------------------------------------------

class MemoryRowStore(RowStore):
    """
    Process-local row store.

    Rows are deep-copied on the way in and out so callers can never mutate
    stored state by accident. Ties on the ordering column fall back to
    insertion order, which keeps "newest first" stable when several rows share
    a timestamp.
    """

    def __init__(self):
        self._tables: Dict[str, List[Dict[str, Any]]] = {}
        self._seq = itertools.count()
        self._order: Dict[str, int] = {}

    @staticmethod
    def _matches(row: Dict[str, Any], where: Filter, any_of: Filter) -> bool:
        if where and any(row.get(k) != v for k, v in where.items()):
            return False
        if any_of and not any(row.get(k) == v for k, v in any_of.items()):
            return False
        return True

    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        row = self._new_row(record)
        self._tables.setdefault(table, []).append(copy.deepcopy(row))
        self._order[row["id"]] = next(self._seq)
        logger.db_write(table, "insert")
        return copy.deepcopy(row)

    def select(self, table, where=None, any_of=None, order_by=None, descending=False):
        rows = [r for r in self._tables.get(table, []) if self._matches(r, where, any_of)]
        if order_by:
            rows.sort(
                key=lambda r: (r.get(order_by) or "", self._order.get(r["id"], 0)),
                reverse=descending,
            )
        logger.db(f"select {table}: {len(rows)} row(s)")
        return copy.deepcopy(rows)

    def update(self, table, where, patch):
        changed = 0
        for row in self._tables.get(table, []):
            if self._matches(row, where, None):
                row.update(copy.deepcopy(patch))
                changed += 1
        logger.db_write(table, f"update ({changed})")
        return changed

    def delete(self, table, where, any_of=None):
        rows = self._tables.get(table, [])
        keep = [r for r in rows if not self._matches(r, where, any_of)]
        removed = len(rows) - len(keep)
        self._tables[table] = keep
        logger.db_write(table, f"delete ({removed})")
        return removed


# ---------------------------------------------------------------------------
# Firestore backend
# ---------------------------------------------------------------------------

class FirestoreRowStore(RowStore):
    """
    Firebase Firestore implementation of the row store.

    Every call carries a bounded timeout and ``retry=None``: a failed write is
    reported to the caller instead of being replayed behind its back.
    """

    def __init__(self, client, timeout: float = 10.0):
        self.db = client
        self.timeout = timeout

    def _fail(self, exc: Exception, table: str, action: str) -> PersistenceError:
        message = f"{action} on {table} failed: {exc}"
        logger.db_error(message)
        if isinstance(exc, _NETWORK_ERRORS):
            return NetworkError(message, table=table)
        return PersistenceError(message, table=table)

    def _query(self, table: str, where: Filter, any_of: Filter):
        query = self.db.collection(table)
        for key, value in (where or {}).items():
            query = query.where(filter=FieldFilter(key, "==", value))
        if any_of:
            query = query.where(
                filter=Or([FieldFilter(key, "==", value) for key, value in any_of.items()])
            )
        return query

    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        row = self._new_row(record)
        try:
            with Timer() as timer:
                self.db.collection(table).document(row["id"]).set(
                    row, retry=None, timeout=self.timeout
                )
        except (google_exceptions.GoogleAPIError, TransportError) as e:
            raise self._fail(e, table, "insert") from e
        logger.db_write(table, "insert", duration_ms=timer.duration_ms)
        return row

    def select(self, table, where=None, any_of=None, order_by=None, descending=False):
        query = self._query(table, where, any_of)
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        try:
            with Timer() as timer:
                rows = []
                for doc in query.stream(retry=None, timeout=self.timeout):
                    row = doc.to_dict() or {}
                    row.setdefault("id", doc.id)
                    rows.append(row)
        except (google_exceptions.GoogleAPIError, TransportError) as e:
            raise self._fail(e, table, "select") from e
        logger.db(f"select {table}: {len(rows)} row(s) ({timer.duration_ms:.0f}ms)")
        return rows

    def update(self, table, where, patch):
        try:
            with Timer() as timer:
                changed = 0
                for doc in self._query(table, where, None).stream(retry=None, timeout=self.timeout):
                    doc.reference.update(patch, retry=None, timeout=self.timeout)
                    changed += 1
        except (google_exceptions.GoogleAPIError, TransportError) as e:
            raise self._fail(e, table, "update") from e
        logger.db_write(table, f"update ({changed})", duration_ms=timer.duration_ms)
        return changed

    def delete(self, table, where, any_of=None):
        try:
            with Timer() as timer:
                removed = 0
                for doc in self._query(table, where, any_of).stream(retry=None, timeout=self.timeout):
                    doc.reference.delete(retry=None, timeout=self.timeout)
                    removed += 1
        except (google_exceptions.GoogleAPIError, TransportError) as e:
            raise self._fail(e, table, "delete") from e
        logger.db_write(table, f"delete ({removed})", duration_ms=timer.duration_ms)
        return removed


def connect_firestore(credentials_path: Optional[str], timeout: float) -> FirestoreRowStore:
    """
    Initialize the Firebase app (once per process) and return a Firestore store.

    Raises:
        PersistenceError: credentials are missing or Firebase refused them.
    """
    logger.separator("Database Initialization")

    if not credentials_path:
        logger.warning("[DB] FIREBASE_CREDENTIALS_PATH not set in .env file")
        logger.warning("[DB] Add: FIREBASE_CREDENTIALS_PATH=./your-credentials.json")
        raise PersistenceError("Firebase credentials path is not configured")

    if not os.path.exists(credentials_path):
        logger.error(f"[DB] Credentials file not found at: {credentials_path}")
        raise PersistenceError(f"Firebase credentials file not found: {credentials_path}")

    try:
        firebase_admin.get_app()
        logger.debug("[DB] Firebase app already initialized, reusing it")
    except ValueError:
        logger.debug(f"[DB] Loading Firebase credentials from {credentials_path}")
        try:
            firebase_admin.initialize_app(credentials.Certificate(credentials_path))
        except (ValueError, IOError) as e:
            logger.db_error(f"Failed to initialize Firebase: {e}")
            raise PersistenceError(f"Failed to initialize Firebase: {e}") from e

    store = FirestoreRowStore(firestore.client(), timeout=timeout)
    logger.success("[DB] Firebase Firestore connected successfully!")
    return store


# ---------------------------------------------------------------------------
# Global Database Instance
# ---------------------------------------------------------------------------

_store: Optional[RowStore] = None


def initialize_database(config: Optional[Settings] = None) -> RowStore:
    """Create the process-wide row store for the configured backend."""
    global _store
    config = config or default_settings

    if config.store_backend == STORE_MEMORY:
        logger.env("Using in-memory row store (data is lost on exit)")
        _store = MemoryRowStore()
    else:
        _store = connect_firestore(config.firebase_credentials_path, config.request_timeout)
    return _store


def get_db() -> RowStore:
    """Get the process-wide row store, creating it on first use."""
    if _store is None:
        return initialize_database()
    return _store
