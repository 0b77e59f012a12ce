"""Catalog query services."""

from .base import RemoteQueryError, RemoteQueryService, page_number
from .duckdb_service import DuckDBQueryService, frame_to_products
from .postgrest import PostgrestQueryService, build_postgrest_params, parse_content_range

__all__ = [
    "RemoteQueryError",
    "RemoteQueryService",
    "page_number",
    "DuckDBQueryService",
    "frame_to_products",
    "PostgrestQueryService",
    "build_postgrest_params",
    "parse_content_range",
]
