"""Catalog vocabularies and records."""

from .taxonomy import (
    InvalidFacetError,
    parse_facet,
    CategoryFlag,
    Room,
    FurnitureType,
    Brand,
    PriceSort,
    DiscountSort,
    NavigationMarker,
)
from .models import Product, Page

__all__ = [
    "InvalidFacetError",
    "parse_facet",
    "CategoryFlag",
    "Room",
    "FurnitureType",
    "Brand",
    "PriceSort",
    "DiscountSort",
    "NavigationMarker",
    "Product",
    "Page",
]
