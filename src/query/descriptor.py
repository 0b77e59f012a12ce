"""
Structured remote-query descriptor.

A QueryDescriptor is a plain, immutable value describing one catalog query:
equality clauses, OR-groups of pattern clauses, a price range, an optional
text search, ordering and paging. It is translated to SQL (``sql.py``) or
PostgREST parameters (``src/remote/postgrest.py``) by the backends.

Its canonical JSON form, without paging, is the query fingerprint used for
caching, request coalescing and pagination resets.
"""

from dataclasses import dataclass, replace
import hashlib
import json
from typing import Any, Dict, Optional, Tuple

# Escape character for literal %, _ and \ inside LIKE patterns
LIKE_ESCAPE = "\\"


def escape_like(text: str) -> str:
    """Make ``text`` match itself literally inside a LIKE pattern."""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


@dataclass(frozen=True)
class EqualityClause:
    """column = value"""
    column: str
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"column": self.column, "value": self.value}


@dataclass(frozen=True)
class PatternClause:
    """Case-insensitive LIKE with ``\\`` as escape. No wildcard means equality."""
    column: str
    pattern: str

    def to_dict(self) -> Dict[str, Any]:
        return {"column": self.column, "pattern": self.pattern}


@dataclass(frozen=True)
class PatternGroup:
    """Clauses of one facet; a row matches when any clause matches."""
    facet: str
    clauses: Tuple[PatternClause, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"facet": self.facet, "clauses": [c.to_dict() for c in self.clauses]}


@dataclass(frozen=True)
class RangeClause:
    """lower <= column [<= upper]"""
    column: str
    lower: float = 0
    upper: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"column": self.column, "lower": self.lower, "upper": self.upper}


@dataclass(frozen=True)
class SearchClause:
    """Substring search over several text columns."""
    text: str
    columns: Tuple[str, ...] = ("name", "description")

    @property
    def pattern(self) -> str:
        return f"%{escape_like(self.text)}%"

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "columns": list(self.columns)}


@dataclass(frozen=True)
class OrderClause:
    column: str
    descending: bool = True
    nulls_last: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"column": self.column, "descending": self.descending, "nulls_last": self.nulls_last}


DEFAULT_ORDER = OrderClause(column="created_at", descending=True)


@dataclass(frozen=True)
class QueryDescriptor:
    """A compiled catalog query."""

    equals: Tuple[EqualityClause, ...] = ()
    pattern_groups: Tuple[PatternGroup, ...] = ()
    price_range: Optional[RangeClause] = None
    search: Optional[SearchClause] = None
    not_null: Tuple[str, ...] = ()
    order: OrderClause = DEFAULT_ORDER
    limit: Optional[int] = None
    offset: int = 0

    def to_dict(self, include_paging: bool = True) -> Dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        data: Dict[str, Any] = {
            "equals": [c.to_dict() for c in self.equals],
            "pattern_groups": [g.to_dict() for g in self.pattern_groups],
            "price_range": self.price_range.to_dict() if self.price_range else None,
            "search": self.search.to_dict() if self.search else None,
            "not_null": list(self.not_null),
            "order": self.order.to_dict(),
        }
        if include_paging:
            data["limit"] = self.limit
            data["offset"] = self.offset
        return data

    def to_json(self, include_paging: bool = True) -> str:
        return json.dumps(self.to_dict(include_paging), sort_keys=True, separators=(",", ":"))

    def fingerprint(self) -> str:
        """Stable key identifying the query regardless of which page is requested."""
        return hashlib.md5(self.to_json(include_paging=False).encode()).hexdigest()

    def cache_key(self) -> str:
        """Key for one page of this query."""
        return f"{self.fingerprint()}:{self.offset}:{self.limit}"

    def paginate(self, page: int, page_size: int) -> "QueryDescriptor":
        """
        Copy limited to one page.

        Args:
            page: 1-based page number.
            page_size: Rows per page.

        Returns:
            Descriptor covering rows [(page-1)*page_size, page*page_size).
        """
        if page < 1:
            raise ValueError(f"Page numbers start at 1, got {page}")
        return replace(self, limit=page_size, offset=(page - 1) * page_size)
