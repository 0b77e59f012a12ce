"""DuckDB connection management for the local catalog."""

import duckdb
from pathlib import Path
from typing import Optional, Union
from contextlib import contextmanager
import sys

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config
from config.logging_config import get_logger
from src.database.schema import initialize_database

logger = get_logger("database")

MEMORY = ":memory:"


class DatabaseConnection:
    """Owns one DuckDB connection to the catalog file (or an in-memory catalog)."""

    def __init__(
        self,
        db_path: Optional[Union[Path, str]] = None,
        read_only: bool = False,
        initialize: bool = False,
    ):
        """
        Args:
            db_path: Catalog file, or ":memory:". Defaults to FURNISH_DB_PATH.
            read_only: Open the catalog read-only. The file must already exist.
            initialize: Create the furniture and settings tables on connect.
        """
        self.db_path = MEMORY if db_path == MEMORY else Path(db_path or config.database.path)
        self.read_only = read_only
        self.initialize = initialize
        self._connection: Optional[duckdb.DuckDBPyConnection] = None

    @property
    def in_memory(self) -> bool:
        return self.db_path == MEMORY

    def connect(self) -> duckdb.DuckDBPyConnection:
        """
        Open the catalog, once.

        Raises:
            FileNotFoundError: Read-only access to a catalog that was never seeded.
        """
        if self._connection is not None:
            return self._connection

        if not self.in_memory:
            if self.read_only and not self.db_path.exists():
                raise FileNotFoundError(f"No catalog at {self.db_path}; run furnish-load first")
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = duckdb.connect(str(self.db_path), read_only=self.read_only)
        self._connection.execute(f"SET memory_limit = '{config.database.memory_limit}'")
        if config.database.threads > 0:
            self._connection.execute(f"SET threads = {config.database.threads}")

        if self.initialize and not self.read_only:
            initialize_database(self._connection)

        logger.info(f"Opened catalog: {self.db_path}")
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.debug(f"Closed catalog: {self.db_path}")

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        """Current connection, opening it if needed."""
        return self.connect()

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


@contextmanager
def get_connection(
    db_path: Optional[Union[Path, str]] = None,
    read_only: bool = False,
    initialize: bool = False,
) -> duckdb.DuckDBPyConnection:
    """
    Context manager for catalog connections.

    Example:
        with get_connection(initialize=True) as conn:
            service = DuckDBQueryService(conn)
    """
    db = DatabaseConnection(db_path, read_only, initialize)
    try:
        yield db.connect()
    finally:
        db.close()


def get_memory_connection(initialize: bool = False) -> duckdb.DuckDBPyConnection:
    """In-memory catalog, optionally with the schema already created."""
    return DatabaseConnection(MEMORY, initialize=initialize).connect()
