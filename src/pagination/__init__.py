"""Paged loading of catalog results."""

from .cache import PageCache
from .controller import (
    LoadFailure,
    LoadStatus,
    PaginatedResult,
    PaginationController,
)

__all__ = [
    "PageCache",
    "LoadFailure",
    "LoadStatus",
    "PaginatedResult",
    "PaginationController",
]
