"""Durable storage for the filter selection.

The selection is written as a versioned JSON blob:

    {"version": 1, "state": {...FilterSelection.to_dict()...}}

Blobs written before versioning (camelCase keys, optionally wrapped as
``{"state": ..., "version": 0}``) are migrated on load. Storage failures never
propagate: they are logged and the selection falls back to empty defaults.
"""

import asyncio
import json
from typing import Any, Callable, Dict, Optional, Protocol
from pathlib import Path
import sys

import duckdb

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config, FILTER_SCHEMA_VERSION
from config.logging_config import get_logger
from src.database.schema import CREATE_KV_STORE
from src.filters.selection import FilterSelection
from src.filters.state import FilterState

logger = get_logger("filters.persistence")


class PersistenceError(Exception):
    """Raised when stored filter state cannot be read or written."""

    pass


class KeyValueStore(Protocol):
    """Durable string key-value storage."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """In-process store, used for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class DuckDBKeyValueStore:
    """Key-value store backed by the ``kv_store`` table."""

    def __init__(self, conn: duckdb.DuckDBPyConnection):
        """
        Args:
            conn: Open connection; the table is created if missing.
        """
        self.conn = conn
        self.conn.execute(CREATE_KV_STORE)

    def get(self, key: str) -> Optional[str]:
        row = self.conn.execute("SELECT value FROM kv_store WHERE key = ?", [key]).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)",
            [key, value],
        )

    def remove(self, key: str) -> None:
        self.conn.execute("DELETE FROM kv_store WHERE key = ?", [key])


# =============================================================================
# Schema Migration
# =============================================================================

# Pre-versioning camelCase keys -> current keys
LEGACY_FIELD_NAMES = {
    "filterCategories": "category_flags",
    "selectedRooms": "rooms",
    "selectedFurnitureTypes": "furniture_types",
    "selectedBrands": "brands",
    "minPrice": "min_price",
    "maxPrice": "max_price",
    "priceSort": "price_sort",
    "discountSort": "discount_sort",
    "navigationType": "navigation_marker",
}


def _migrate_legacy(state: Dict[str, Any]) -> Dict[str, Any]:
    """Rename pre-versioning fields; values are validated by FilterSelection.from_dict."""
    migrated = {}
    for old_name, new_name in LEGACY_FIELD_NAMES.items():
        if old_name in state:
            migrated[new_name] = state[old_name]
    return migrated


def migrate_payload(payload: Any) -> Dict[str, Any]:
    """
    Upgrade a stored blob to the current state dictionary.

    Args:
        payload: Decoded JSON blob.

    Returns:
        State dictionary in the current schema.

    Raises:
        PersistenceError: If the blob is unusable or from a newer schema.
    """
    if not isinstance(payload, dict):
        raise PersistenceError(f"Stored filter state is not an object: {type(payload).__name__}")

    version = payload.get("version", 0)
    if not isinstance(version, int) or isinstance(version, bool):
        raise PersistenceError(f"Invalid filter state version: {version!r}")

    if version > FILTER_SCHEMA_VERSION:
        raise PersistenceError(
            f"Filter state version {version} is newer than supported version {FILTER_SCHEMA_VERSION}"
        )

    state = payload.get("state", payload)
    if not isinstance(state, dict):
        raise PersistenceError("Stored filter state has no state object")

    if version < 1:
        logger.info("Migrating unversioned filter state to version 1")
        state = _migrate_legacy(state)

    return state


def serialize_selection(selection: FilterSelection) -> str:
    return json.dumps(
        {"version": FILTER_SCHEMA_VERSION, "state": selection.to_dict()},
        sort_keys=True,
    )


def deserialize_selection(raw: str) -> FilterSelection:
    """
    Decode a stored blob.

    Raises:
        PersistenceError: If the blob cannot be decoded or migrated.
    """
    try:
        payload = json.loads(raw)
    except (ValueError, TypeError) as e:
        raise PersistenceError(f"Stored filter state is not valid JSON: {e}")
    return FilterSelection.from_dict(migrate_payload(payload))


# =============================================================================
# Persistence
# =============================================================================

class FilterPersistence:
    """Reads and writes a FilterState's selection through a KeyValueStore."""

    def __init__(self, store: KeyValueStore, key: Optional[str] = None):
        self.store = store
        self.key = key or config.app.storage_key

    def load(self) -> FilterSelection:
        """Stored selection, or empty defaults when nothing usable is stored."""
        try:
            raw = self.store.get(self.key)
            if raw is None:
                return FilterSelection()
            return deserialize_selection(raw)
        except PersistenceError as e:
            logger.warning(f"Ignoring stored filter state: {e}")
        except Exception as e:
            logger.error(f"Failed to read filter state: {e}")
        return FilterSelection()

    def save(self, selection: FilterSelection) -> bool:
        """
        Write the selection.

        Returns:
            True if the write succeeded.
        """
        try:
            self.store.set(self.key, serialize_selection(selection))
            return True
        except Exception as e:
            logger.error(f"Failed to persist filter state: {e}")
            return False

    def schedule_save(self, selection: FilterSelection) -> None:
        """Write without blocking the caller when an event loop is running."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.save(selection)
            return
        loop.call_soon(self.save, selection)

    def clear(self) -> None:
        try:
            self.store.remove(self.key)
        except Exception as e:
            logger.error(f"Failed to remove filter state: {e}")

    def rehydrate(self, state: FilterState) -> FilterSelection:
        """Load the stored selection into a FilterState."""
        selection = self.load()
        state.load(selection)
        logger.debug(f"Rehydrated filter state: {selection.to_dict()}")
        return selection

    def attach(self, state: FilterState) -> Callable[[], None]:
        """Persist every change of the FilterState. Returns the unsubscribe callable."""
        return state.subscribe(self.schedule_save)
