"""Configuration module for Furnish.

All filter defaults are empty: no facet is pre-selected.
"""

from .settings import config, DatabaseConfig, BackendConfig, AppConfig, Config
from .constants import (
    # Paging / limits
    DEFAULT_PAGE_SIZE,
    MAX_PRICE_INPUT,
    FILTER_SCHEMA_VERSION,
    EXACT_MATCH_FURNITURE_TYPE,
    # Lookup tables
    CATEGORY_NAMES,
    CATEGORY_ALIASES,
    CATEGORY_COLUMNS,
    ROOM_MATCH_TERMS,
    FURNITURE_TYPE_CANONICAL,
    BRAND_TITLES,
    SORT_NAMES,
    # Helper functions
    get_category_name,
    get_brand_title,
    get_room_match_term,
    get_furniture_type_canonical,
    get_sort_name,
)

__all__ = [
    "config",
    "DatabaseConfig",
    "BackendConfig",
    "AppConfig",
    "Config",
    "DEFAULT_PAGE_SIZE",
    "MAX_PRICE_INPUT",
    "FILTER_SCHEMA_VERSION",
    "EXACT_MATCH_FURNITURE_TYPE",
    "CATEGORY_NAMES",
    "CATEGORY_ALIASES",
    "CATEGORY_COLUMNS",
    "ROOM_MATCH_TERMS",
    "FURNITURE_TYPE_CANONICAL",
    "BRAND_TITLES",
    "SORT_NAMES",
    "get_category_name",
    "get_brand_title",
    "get_room_match_term",
    "get_furniture_type_canonical",
    "get_sort_name",
]
