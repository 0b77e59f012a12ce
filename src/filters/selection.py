"""Immutable snapshot of the user's facet selection."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Type, TypeVar
from enum import Enum
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging_config import get_logger
from src.catalog.taxonomy import (
    InvalidFacetError,
    CategoryFlag,
    Room,
    FurnitureType,
    Brand,
    PriceSort,
    DiscountSort,
    NavigationMarker,
)

logger = get_logger("filters.selection")

E = TypeVar("E", bound=Enum)


def sorted_ids(values: Iterable[Enum]) -> List[str]:
    """Sorted string ids of a facet set, for stable serialization."""
    return sorted(v.value for v in values)


def parse_facet_list(enum_cls: Type[E], values: Optional[Iterable[Any]]) -> FrozenSet[E]:
    """
    Parse a list of facet ids, dropping the ones outside the vocabulary.

    Args:
        enum_cls: Facet enumeration with a ``parse`` classmethod.
        values: Ids or members; None is treated as empty.

    Returns:
        Frozen set of parsed members.
    """
    parsed = set()
    for value in values or []:
        try:
            parsed.add(enum_cls.parse(value))
        except InvalidFacetError as e:
            logger.warning(f"Dropping stored facet value: {e}")
    return frozenset(parsed)


@dataclass(frozen=True)
class FilterSelection:
    """Current facet selection."""

    category_flags: FrozenSet[CategoryFlag] = field(default_factory=frozenset)
    rooms: FrozenSet[Room] = field(default_factory=frozenset)
    furniture_types: FrozenSet[FurnitureType] = field(default_factory=frozenset)
    brands: FrozenSet[Brand] = field(default_factory=frozenset)
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    price_sort: PriceSort = PriceSort.NONE
    discount_sort: DiscountSort = DiscountSort.NONE
    navigation_marker: Optional[NavigationMarker] = None

    @property
    def has_price_range(self) -> bool:
        return self.min_price is not None or self.max_price is not None

    @property
    def has_sort(self) -> bool:
        return self.price_sort != PriceSort.NONE or self.discount_sort != DiscountSort.NONE

    @property
    def is_empty(self) -> bool:
        """Check if nothing narrows or reorders the catalog."""
        return (
            not self.category_flags
            and not self.rooms
            and not self.furniture_types
            and not self.brands
            and not self.has_sort
            and not self.has_price_range
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "category_flags": sorted_ids(self.category_flags),
            "rooms": sorted_ids(self.rooms),
            "furniture_types": sorted_ids(self.furniture_types),
            "brands": sorted_ids(self.brands),
            "min_price": self.min_price,
            "max_price": self.max_price,
            "price_sort": self.price_sort.value,
            "discount_sort": self.discount_sort.value,
            "navigation_marker": self.navigation_marker.value if self.navigation_marker else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterSelection":
        """
        Create from dictionary.

        Unknown facet ids are dropped. Invariants that the stored data breaks
        are repaired: discount sort yields to price sort, and an inverted
        price range loses its lower bound.
        """
        price_sort = _parse_optional(PriceSort, data.get("price_sort"), PriceSort.NONE)
        discount_sort = _parse_optional(DiscountSort, data.get("discount_sort"), DiscountSort.NONE)
        if price_sort != PriceSort.NONE:
            discount_sort = DiscountSort.NONE

        min_price = _parse_bound(data.get("min_price"))
        max_price = _parse_bound(data.get("max_price"))
        if min_price is not None and max_price is not None and min_price > max_price:
            min_price = None

        return cls(
            category_flags=parse_facet_list(CategoryFlag, data.get("category_flags")),
            rooms=parse_facet_list(Room, data.get("rooms")),
            furniture_types=parse_facet_list(FurnitureType, data.get("furniture_types")),
            brands=parse_facet_list(Brand, data.get("brands")),
            min_price=min_price,
            max_price=max_price,
            price_sort=price_sort,
            discount_sort=discount_sort,
            navigation_marker=_parse_optional(NavigationMarker, data.get("navigation_marker"), None),
        )


def _parse_optional(enum_cls, value, default):
    if value is None:
        return default
    try:
        return enum_cls.parse(value)
    except InvalidFacetError as e:
        logger.warning(f"Dropping stored facet value: {e}")
        return default


def _parse_bound(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (ValueError, TypeError):
        return None
    return number if number >= 0 else None
