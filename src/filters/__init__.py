"""Filter state, local predicates, ordering and persistence."""

from .selection import FilterSelection
from .predicates import compile_predicate
from .sorting import derive_comparator, sort_products
from .summary import summarize, summary_text
from .state import FilterState, ValidationError, parse_price_input
from .persistence import (
    PersistenceError,
    KeyValueStore,
    MemoryKeyValueStore,
    DuckDBKeyValueStore,
    FilterPersistence,
    migrate_payload,
    serialize_selection,
    deserialize_selection,
)

__all__ = [
    "FilterSelection",
    "compile_predicate",
    "derive_comparator",
    "sort_products",
    "summarize",
    "summary_text",
    "FilterState",
    "ValidationError",
    "parse_price_input",
    "PersistenceError",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "DuckDBKeyValueStore",
    "FilterPersistence",
    "migrate_payload",
    "serialize_selection",
    "deserialize_selection",
]
