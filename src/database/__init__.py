"""Database module for the local DuckDB catalog."""

from .connection import (
    DatabaseConnection,
    get_connection,
    get_memory_connection,
)
from .schema import (
    FURNITURE_COLUMNS,
    CREATE_KV_STORE,
    initialize_database,
    create_all_tables,
    create_all_indexes,
    get_schema_version,
    get_table_counts,
    load_products,
)

__all__ = [
    # Connection
    "DatabaseConnection",
    "get_connection",
    "get_memory_connection",
    # Schema
    "FURNITURE_COLUMNS",
    "CREATE_KV_STORE",
    "initialize_database",
    "create_all_tables",
    "create_all_indexes",
    "get_schema_version",
    "get_table_counts",
    "load_products",
]
