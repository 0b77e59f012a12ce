"""Catalog query service over a local DuckDB furniture table."""

import asyncio
from typing import List, Optional, Tuple
from pathlib import Path
import sys

import duckdb
import pandas as pd

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging_config import get_logger
from src.catalog.models import Page, Product
from src.query.descriptor import QueryDescriptor
from src.query.sql import build_count_sql, build_sql
from src.remote.base import RemoteQueryError, page_number

logger = get_logger("remote.duckdb")


def frame_to_products(df: pd.DataFrame) -> List[Product]:
    """Convert a result frame to Products, mapping NaN/NaT to None."""
    if df.empty:
        return []
    records = df.astype(object).where(pd.notna(df), None).to_dict("records")
    return [Product.from_record(record) for record in records]


class DuckDBQueryService:
    """
    Executes QueryDescriptors against the local catalog.

    Usage:
        service = DuckDBQueryService(conn)
        page = await service.fetch(compile_query(selection).paginate(1, 10))
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection, table: str = "furniture"):
        self.conn = conn
        self.table = table
        self.request_count = 0

    def query_frame(
        self,
        query: QueryDescriptor,
        conn: Optional[duckdb.DuckDBPyConnection] = None,
    ) -> pd.DataFrame:
        """Rows for a descriptor as a DataFrame."""
        sql, params = build_sql(query, self.table)
        return (conn or self.conn).execute(sql, params).fetchdf()

    def count(self, query: QueryDescriptor, conn: Optional[duckdb.DuckDBPyConnection] = None) -> int:
        sql, params = build_count_sql(query, self.table)
        result = (conn or self.conn).execute(sql, params).fetchone()
        return result[0] if result else 0

    def _run(self, query: QueryDescriptor) -> Tuple[pd.DataFrame, int]:
        # One cursor per worker thread; a DuckDB connection is not shared across threads
        cursor = self.conn.cursor()
        try:
            return self.query_frame(query, cursor), self.count(query, cursor)
        finally:
            cursor.close()

    async def fetch(self, query: QueryDescriptor) -> Page:
        """Run the page and count queries in a worker thread."""
        self.request_count += 1
        try:
            df, total = await asyncio.to_thread(self._run, query)
        except duckdb.Error as e:
            logger.error(f"Catalog query failed: {e}")
            raise RemoteQueryError(str(e), retryable=False) from e

        logger.debug(f"Fetched {len(df)} of {total} rows (offset {query.offset})")
        return Page(
            items=frame_to_products(df),
            total_count=total,
            page=page_number(query),
            page_size=query.limit or len(df),
        )
