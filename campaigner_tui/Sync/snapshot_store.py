# snapshot_store.py
# Description: Persistent key/value storage of the last-known-good value of each tracked collection.
#
# The store is a continuity optimisation, never a source of truth: reads never
# raise (corrupt, expired or foreign entries read as absent) and writes never
# surface failures to the caller.
#
# Imports
import json
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Union
#
# Third-Party Imports
#
# Local Imports
from ..Constants import ALL_SNAPSHOT_KEYS, DEFAULT_SNAPSHOT_TTL_SECONDS
#
#######################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)

UserIdProvider = Callable[[], Optional[int]]


class SnapshotStore:
    """
    Base class holding the envelope logic. Backends only move raw strings.

    Each value is stored as {"data": ..., "timestamp": <epoch ms>, "user_id": <int|None>}.
    """

    def __init__(self,
                 ttl_seconds: Optional[float] = DEFAULT_SNAPSHOT_TTL_SECONDS,
                 user_id_provider: Optional[UserIdProvider] = None,
                 clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self.user_id_provider = user_id_provider
        self._clock = clock

    # --- Backend hooks ---

    def _get_raw(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _set_raw(self, key: str, raw: str) -> None:
        raise NotImplementedError

    def _delete_raw(self, key: str) -> None:
        raise NotImplementedError

    # --- Public API ---

    def _current_user_id(self) -> Optional[int]:
        if self.user_id_provider is None:
            return None
        try:
            return self.user_id_provider()
        except Exception as e:
            logger.warning(f"user_id_provider failed: {e}")
            return None

    def read(self, key: str) -> Optional[Any]:
        """Returns the stored value, or None for missing/corrupt/expired/foreign entries."""
        try:
            raw = self._get_raw(key)
        except Exception as e:
            logger.error(f"Failed to read snapshot '{key}': {e}", exc_info=True)
            return None
        if raw is None:
            return None

        try:
            envelope = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding corrupt snapshot '{key}': {e}")
            self._safe_delete(key)
            return None
        if not isinstance(envelope, dict) or "data" not in envelope:
            logger.warning(f"Discarding snapshot '{key}' with unexpected layout")
            self._safe_delete(key)
            return None

        timestamp = envelope.get("timestamp")
        if self.ttl_seconds and isinstance(timestamp, (int, float)):
            age_seconds = self._clock() - (timestamp / 1000.0)
            if age_seconds > self.ttl_seconds:
                logger.debug(f"Snapshot '{key}' expired ({age_seconds:.0f}s old)")
                self._safe_delete(key)
                return None

        stored_user = envelope.get("user_id")
        current_user = self._current_user_id()
        if stored_user is not None and current_user is not None and stored_user != current_user:
            logger.info(f"Snapshot '{key}' belongs to another user; discarding")
            self._safe_delete(key)
            return None

        return envelope["data"]

    def write(self, key: str, value: Any) -> None:
        """Fire-and-forget: serialisation or storage failures are logged and swallowed."""
        envelope = {
            "data": value,
            "timestamp": int(self._clock() * 1000),
            "user_id": self._current_user_id(),
        }
        try:
            raw = json.dumps(envelope)
        except (TypeError, ValueError) as e:
            logger.error(f"Snapshot '{key}' is not JSON serialisable, not persisted: {e}")
            return
        try:
            self._set_raw(key, raw)
        except Exception as e:
            logger.error(f"Failed to persist snapshot '{key}': {e}", exc_info=True)

    def clear(self, key: str) -> None:
        self._safe_delete(key)

    def clear_all(self, keys: Optional[Iterable[str]] = None) -> None:
        for key in (list(keys) if keys is not None else ALL_SNAPSHOT_KEYS):
            self._safe_delete(key)

    def _safe_delete(self, key: str) -> None:
        try:
            self._delete_raw(key)
        except Exception as e:
            logger.error(f"Failed to delete snapshot '{key}': {e}", exc_info=True)


class InMemorySnapshotStore(SnapshotStore):
    """Keeps serialised envelopes in a dict. Used by tests and as a no-persistence fallback."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._data: Dict[str, str] = {}

    def _get_raw(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _set_raw(self, key: str, raw: str) -> None:
        self._data[key] = raw

    def _delete_raw(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileSnapshotStore(SnapshotStore):
    """One `<key>.json` file per snapshot key inside a directory."""

    def __init__(self, directory: Union[str, Path], **kwargs):
        super().__init__(**kwargs)
        self.directory = Path(directory).expanduser()

    def _path_for(self, key: str) -> Path:
        safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
        return self.directory / f"{safe_name}.json"

    def _get_raw(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _set_raw(self, key: str, raw: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(raw, encoding="utf-8")
        tmp_path.replace(path)

    def _delete_raw(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)


class SQLiteSnapshotStore(SnapshotStore):
    """A single `snapshots` table in an SQLite file."""

    _SCHEMA = "CREATE TABLE IF NOT EXISTS snapshots (key TEXT PRIMARY KEY, payload TEXT NOT NULL)"

    def __init__(self, db_path: Union[str, Path], **kwargs):
        super().__init__(**kwargs)
        self.db_path = Path(db_path).expanduser() if str(db_path) != ":memory:" else db_path
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.execute(self._SCHEMA)
            self._conn.commit()
        return self._conn

    def _get_raw(self, key: str) -> Optional[str]:
        with self._lock:
            row = self._connection().execute(
                "SELECT payload FROM snapshots WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def _set_raw(self, key: str, raw: str) -> None:
        with self._lock:
            conn = self._connection()
            with conn:
                conn.execute(
                    "INSERT INTO snapshots (key, payload) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET payload = excluded.payload",
                    (key, raw),
                )

    def _delete_raw(self, key: str) -> None:
        with self._lock:
            conn = self._connection()
            with conn:
                conn.execute("DELETE FROM snapshots WHERE key = ?", (key,))

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

#
# End of snapshot_store.py
########################################################################################################################
