"""Remote query descriptors and their translations."""

from .descriptor import (
    EqualityClause,
    PatternClause,
    PatternGroup,
    RangeClause,
    SearchClause,
    OrderClause,
    QueryDescriptor,
    DEFAULT_ORDER,
    escape_like,
)
from .compiler import compile_query, fingerprint
from .sql import CatalogQueryBuilder, build_sql, build_count_sql

__all__ = [
    "EqualityClause",
    "PatternClause",
    "PatternGroup",
    "RangeClause",
    "SearchClause",
    "OrderClause",
    "QueryDescriptor",
    "DEFAULT_ORDER",
    "escape_like",
    "compile_query",
    "fingerprint",
    "CatalogQueryBuilder",
    "build_sql",
    "build_count_sql",
]
