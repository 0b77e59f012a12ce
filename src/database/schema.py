"""DuckDB schema definitions for the local furniture catalog.

Mirrors the hosted backend's ``furniture`` table closely enough that the same
QueryDescriptor yields the same rows locally and remotely.
"""

from typing import Iterable, List, Mapping, Any, Optional
import duckdb
import pandas as pd
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging_config import get_logger

logger = get_logger("schema")

# Schema version for migrations
SCHEMA_VERSION = "1.0"

# =============================================================================
# FURNITURE TABLE
# =============================================================================

CREATE_FURNITURE = """
CREATE TABLE IF NOT EXISTS furniture (
    id VARCHAR PRIMARY KEY,
    name VARCHAR NOT NULL,
    description VARCHAR,
    brand VARCHAR,
    furniture_type VARCHAR,
    room_type VARCHAR,
    current_price DOUBLE CHECK (current_price IS NULL OR current_price >= 0),
    regular_price DOUBLE CHECK (regular_price IS NULL OR regular_price >= 0),
    discount_percent DOUBLE,
    new_product BOOLEAN DEFAULT FALSE,
    on_clearance BOOLEAN DEFAULT FALSE,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    image_url VARCHAR
)
"""

FURNITURE_COLUMNS: List[str] = [
    "id",
    "name",
    "description",
    "brand",
    "furniture_type",
    "room_type",
    "current_price",
    "regular_price",
    "discount_percent",
    "new_product",
    "on_clearance",
    "created_at",
    "image_url",
]

NUMERIC_COLUMNS = ["current_price", "regular_price", "discount_percent"]
TEXT_COLUMNS = ["id", "name", "description", "brand", "furniture_type", "room_type", "image_url"]

# =============================================================================
# KEY-VALUE / SETTINGS TABLES
# =============================================================================

CREATE_KV_STORE = """
CREATE TABLE IF NOT EXISTS kv_store (
    key VARCHAR PRIMARY KEY,
    value VARCHAR NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

CREATE_APP_SETTINGS = """
CREATE TABLE IF NOT EXISTS app_settings (
    key VARCHAR PRIMARY KEY,
    value VARCHAR
)
"""

CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_furniture_brand ON furniture(brand)",
    "CREATE INDEX IF NOT EXISTS idx_furniture_created ON furniture(created_at)",
    "CREATE INDEX IF NOT EXISTS idx_furniture_price ON furniture(current_price)",
]

TABLES = [
    ("furniture", CREATE_FURNITURE),
    ("kv_store", CREATE_KV_STORE),
    ("app_settings", CREATE_APP_SETTINGS),
]


def create_all_tables(conn: duckdb.DuckDBPyConnection) -> None:
    """
    Create all database tables.

    Args:
        conn: DuckDB connection.
    """
    for table_name, create_sql in TABLES:
        try:
            conn.execute(create_sql)
            logger.info(f"Created table: {table_name}")
        except Exception as e:
            logger.error(f"Error creating table {table_name}: {e}")
            raise


def create_all_indexes(conn: duckdb.DuckDBPyConnection) -> None:
    """
    Create all database indexes.

    Args:
        conn: DuckDB connection.
    """
    for index_sql in CREATE_INDEXES:
        try:
            conn.execute(index_sql)
        except duckdb.Error as e:
            # Index might already exist
            logger.debug(f"Index creation note: {e}")

    logger.info(f"Created {len(CREATE_INDEXES)} indexes")


def initialize_database(conn: duckdb.DuckDBPyConnection) -> None:
    """
    Initialize the database with all tables and indexes.

    Args:
        conn: DuckDB connection.
    """
    logger.info("Initializing database schema...")
    create_all_tables(conn)
    create_all_indexes(conn)

    conn.execute(
        "INSERT OR REPLACE INTO app_settings (key, value) VALUES ('schema_version', ?)",
        [SCHEMA_VERSION]
    )

    logger.info("Database initialization complete")


def get_schema_version(conn: duckdb.DuckDBPyConnection) -> Optional[str]:
    """
    Get the current schema version.

    Returns:
        Schema version string or None.
    """
    try:
        result = conn.execute(
            "SELECT value FROM app_settings WHERE key = 'schema_version'"
        ).fetchone()
        return result[0] if result else None
    except duckdb.Error:
        return None


def get_table_counts(conn: duckdb.DuckDBPyConnection) -> dict:
    """
    Get row counts for all tables.

    Returns:
        Dictionary mapping table names to row counts.
    """
    counts = {}
    for table, _ in TABLES:
        try:
            result = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
            counts[table] = result[0] if result else 0
        except duckdb.Error:
            counts[table] = 0

    return counts


def load_products(
    conn: duckdb.DuckDBPyConnection,
    rows: Iterable[Mapping[str, Any]],
) -> int:
    """
    Insert or replace furniture rows.

    Args:
        conn: DuckDB connection with the schema initialized.
        rows: Backend-shaped row mappings; missing columns become NULL.

    Returns:
        Number of rows written.
    """
    df = pd.DataFrame(list(rows), columns=FURNITURE_COLUMNS)
    if df.empty:
        return 0

    df["created_at"] = pd.to_datetime(df["created_at"], utc=True).dt.tz_localize(None)
    for flag in ("new_product", "on_clearance"):
        df[flag] = df[flag].fillna(False).astype(bool)
    for column in NUMERIC_COLUMNS:
        df[column] = pd.to_numeric(df[column], errors="coerce")
    for column in TEXT_COLUMNS:
        df[column] = df[column].astype(object).where(df[column].notna(), None)

    # NaN lands as NULL
    select_list = [
        f"NULLIF({c}, 'NaN'::DOUBLE)" if c in NUMERIC_COLUMNS else c
        for c in FURNITURE_COLUMNS
    ]

    conn.register("_furniture_load", df)
    try:
        conn.execute(
            f"INSERT OR REPLACE INTO furniture ({', '.join(FURNITURE_COLUMNS)}) "
            f"SELECT {', '.join(select_list)} FROM _furniture_load"
        )
    finally:
        conn.unregister("_furniture_load")

    logger.info(f"Loaded {len(df)} furniture rows")
    return len(df)
