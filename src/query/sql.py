"""
Catalog SQL builder.

Translates QueryDescriptors into parameterized DuckDB SQL against the
furniture table. Column names are checked against the catalog schema so a
descriptor can never inject an identifier.

Usage:
    query, params = (
        CatalogQueryBuilder()
        .select("furniture")
        .where_equal("new_product", True)
        .where_any_like([("room_type", "%bedroom%")])
        .where_range("current_price", 100, 500)
        .order_by("current_price", desc=False)
        .paginate(1, 10)
        .build()
    )
"""

from typing import Any, Iterable, List, Optional, Sequence, Tuple
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.database.schema import FURNITURE_COLUMNS
from src.query.descriptor import QueryDescriptor


class CatalogQueryBuilder:
    """Parameterized SELECT/COUNT builder for the catalog table."""

    def __init__(self, allowed_columns: Optional[Iterable[str]] = None):
        self.allowed_columns = set(allowed_columns or FURNITURE_COLUMNS)
        self._reset()

    def _reset(self):
        """Reset builder state for new query."""
        self._table: Optional[str] = None
        self._columns: List[str] = []
        self._conditions: List[Tuple[str, List[Any]]] = []
        self._order_by: List[str] = []
        self._limit_val: Optional[int] = None
        self._offset_val: Optional[int] = None

    def _column(self, name: str) -> str:
        if name not in self.allowed_columns:
            raise ValueError(f"Unknown catalog column: {name}")
        return name

    def select(self, table: str, columns: Optional[Sequence[str]] = None) -> "CatalogQueryBuilder":
        """Start a SELECT on a table; all catalog columns when none are given."""
        self._reset()
        if not table.isidentifier():
            raise ValueError(f"Invalid table name: {table}")
        self._table = table
        self._columns = [self._column(c) for c in (columns or sorted(self.allowed_columns))]
        return self

    # -------------------------------------------------------------------------
    # WHERE Conditions
    # -------------------------------------------------------------------------

    def where_equal(self, column: str, value: Any) -> "CatalogQueryBuilder":
        """Add WHERE column = value condition."""
        self._conditions.append((f"{self._column(column)} = ?", [value]))
        return self

    def where_any_like(self, patterns: Sequence[Tuple[str, str]]) -> "CatalogQueryBuilder":
        """Add (col1 ILIKE ? OR col2 ILIKE ? ...) for (column, pattern) pairs, backslash-escaped."""
        if not patterns:
            return self
        parts = [f"{self._column(column)} ILIKE ? ESCAPE '\\'" for column, _ in patterns]
        self._conditions.append((f"({' OR '.join(parts)})", [p for _, p in patterns]))
        return self

    def where_range(self, column: str, lower: Optional[float] = None,
                    upper: Optional[float] = None) -> "CatalogQueryBuilder":
        """Add WHERE lower <= column <= upper; a None bound is open."""
        col = self._column(column)
        if lower is not None:
            self._conditions.append((f"{col} >= ?", [lower]))
        if upper is not None:
            self._conditions.append((f"{col} <= ?", [upper]))
        return self

    def where_not_null(self, column: str) -> "CatalogQueryBuilder":
        """Add WHERE column IS NOT NULL condition."""
        self._conditions.append((f"{self._column(column)} IS NOT NULL", []))
        return self

    # -------------------------------------------------------------------------
    # ORDER BY, LIMIT
    # -------------------------------------------------------------------------

    def order_by(self, column: str, desc: bool = False,
                 nulls_last: bool = True) -> "CatalogQueryBuilder":
        """Add ORDER BY clause."""
        direction = "DESC" if desc else "ASC"
        nulls = "NULLS LAST" if nulls_last else "NULLS FIRST"
        self._order_by.append(f"{self._column(column)} {direction} {nulls}")
        return self

    def paginate(self, page: int, page_size: int) -> "CatalogQueryBuilder":
        """Add pagination (LIMIT and OFFSET)."""
        self._limit_val = page_size
        self._offset_val = (page - 1) * page_size
        return self

    def limit(self, limit: Optional[int], offset: int = 0) -> "CatalogQueryBuilder":
        self._limit_val = limit
        self._offset_val = offset
        return self

    # -------------------------------------------------------------------------
    # Build Methods
    # -------------------------------------------------------------------------

    def _where(self) -> Tuple[List[str], List[Any]]:
        if not self._table:
            raise ValueError("No table specified. Call select() first.")
        clauses = [sql for sql, _ in self._conditions]
        params = [p for _, cond_params in self._conditions for p in cond_params]
        if clauses:
            return [f"WHERE {' AND '.join(clauses)}"], params
        return [], params

    def build(self) -> Tuple[str, List[Any]]:
        """
        Build the final SQL query and parameters.

        Returns:
            Tuple of (sql_query, parameters)
        """
        where, params = self._where()
        parts = [f"SELECT {', '.join(self._columns)}", f"FROM {self._table}"] + where

        # id keeps page boundaries stable when sort values tie
        order = self._order_by + ["id ASC"]
        parts.append(f"ORDER BY {', '.join(order)}")

        if self._limit_val is not None:
            parts.append(f"LIMIT {int(self._limit_val)}")
        if self._offset_val:
            parts.append(f"OFFSET {int(self._offset_val)}")

        return "\n".join(parts), params

    def build_count(self) -> Tuple[str, List[Any]]:
        """
        Build a COUNT(*) query using the same conditions.

        Returns:
            Tuple of (count_query, parameters)
        """
        where, params = self._where()
        parts = ["SELECT COUNT(*) as count", f"FROM {self._table}"] + where
        return "\n".join(parts), params


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def builder_for(descriptor: QueryDescriptor, table: str = "furniture") -> CatalogQueryBuilder:
    """Builder with every clause of a descriptor applied."""
    builder = CatalogQueryBuilder().select(table)

    for clause in descriptor.equals:
        builder.where_equal(clause.column, clause.value)

    for group in descriptor.pattern_groups:
        builder.where_any_like([(c.column, c.pattern) for c in group.clauses])

    if descriptor.price_range:
        builder.where_range(
            descriptor.price_range.column,
            descriptor.price_range.lower,
            descriptor.price_range.upper,
        )

    if descriptor.search:
        pattern = descriptor.search.pattern
        builder.where_any_like([(column, pattern) for column in descriptor.search.columns])

    for column in descriptor.not_null:
        builder.where_not_null(column)

    builder.order_by(
        descriptor.order.column,
        desc=descriptor.order.descending,
        nulls_last=descriptor.order.nulls_last,
    )
    builder.limit(descriptor.limit, descriptor.offset)
    return builder


def build_sql(descriptor: QueryDescriptor, table: str = "furniture") -> Tuple[str, List[Any]]:
    """Page query for a descriptor."""
    return builder_for(descriptor, table).build()


def build_count_sql(descriptor: QueryDescriptor, table: str = "furniture") -> Tuple[str, List[Any]]:
    """Total-count query for a descriptor (paging ignored)."""
    return builder_for(descriptor, table).build_count()
