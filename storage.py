import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, List

from flask import g, current_app

from errors import PersistenceFailure, ValidationError
from models import COLLECTIONS, ROOMS, STUDENTS, TRANSACTIONS
from seed_data import seed_rooms, seed_students, seed_transactions
from students import refresh_all

FALLBACKS: Dict[str, Callable[[], List[Dict]]] = {
    STUDENTS: seed_students,
    TRANSACTIONS: seed_transactions,
    ROOMS: seed_rooms,
}

# One lock per collection per process. A read-modify-write on a collection
# must hold its lock so concurrent requests cannot interleave.
_locks = {name: threading.RLock() for name in COLLECTIONS}


class CollectionStore:
    """
    Whole-collection key/value storage on top of sqlite.

    Each collection is stored as one JSON document. Reads that fail or find
    nothing fall back to the seed dataset; failed writes are logged and
    reported as False. Neither ever raises to the caller.
    """

    def __init__(self, db_path: str):
        self.logger = logging.getLogger(__name__)
        self.db_path = db_path
        self._conn = None

    def connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS collections (
                    name TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
            """)
            self._conn.commit()
        return self._conn

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _check_name(self, name: str):
        if name not in COLLECTIONS:
            raise ValidationError(f"Unknown collection {name!r}")

    @contextmanager
    def locked(self, name: str):
        """Hold the collection lock across a load/modify/save cycle."""
        self._check_name(name)
        with _locks[name]:
            yield

    def _read(self, name: str):
        try:
            row = self.connect().execute(
                "SELECT payload FROM collections WHERE name = ?", (name,)
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Could not read {name}: {e}")
        if row is None:
            return None
        try:
            records = json.loads(row[0])
        except json.JSONDecodeError as e:
            raise PersistenceFailure(f"Stored {name} is not valid JSON: {e}")
        if not isinstance(records, list):
            raise PersistenceFailure(f"Stored {name} is not a list")
        return records

    def _write(self, name: str, records: List[Dict]):
        try:
            payload = json.dumps(records)
            conn = self.connect()
            conn.execute(
                "INSERT OR REPLACE INTO collections (name, payload, updated_at) VALUES (?, ?, ?)",
                (name, payload, datetime.now().isoformat()),
            )
            conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise PersistenceFailure(f"Could not save {name}: {e}")

    def load(self, name: str) -> List[Dict]:
        self._check_name(name)
        try:
            records = self._read(name)
        except PersistenceFailure as e:
            self.logger.warning(f"{e.message}; using default {name}")
            records = None

        if records is not None and name == STUDENTS:
            # Derived fields are recomputed so stale stored values never leak out
            try:
                records = refresh_all(records)
            except (KeyError, TypeError, AttributeError) as e:
                self.logger.warning(f"Stored students are malformed ({e}); using default students")
                records = None

        if records is None:
            return FALLBACKS[name]()
        return records

    def save(self, name: str, records: List[Dict]) -> bool:
        self._check_name(name)
        try:
            self._write(name, records)
            return True
        except PersistenceFailure as e:
            self.logger.error(e.message)
            return False

    def reset(self) -> bool:
        """Restore every collection to the seed dataset."""
        ok = True
        for name in COLLECTIONS:
            with self.locked(name):
                ok = self.save(name, FALLBACKS[name]()) and ok
        return ok


def get_store() -> CollectionStore:
    """Get the store bound to the current application context"""
    if 'store' not in g:
        g.store = CollectionStore(current_app.config['DATABASE'])
    return g.store


def close_store(e=None):
    store = g.pop('store', None)
    if store is not None:
        store.close()


def init_store():
    """Create the storage table for the configured database"""
    get_store().connect()
