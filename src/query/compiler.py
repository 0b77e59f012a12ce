"""Compile a filter selection into a QueryDescriptor.

``compile_query`` is pure: equal selections (however they were built) and the
same search text always produce equal descriptors with equal fingerprints.
"""

from typing import List, Optional
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.catalog.taxonomy import CategoryFlag, Room, FurnitureType, Brand, PriceSort, DiscountSort
from src.filters.selection import FilterSelection, sorted_ids
from src.query.descriptor import (
    DEFAULT_ORDER,
    EqualityClause,
    OrderClause,
    PatternClause,
    PatternGroup,
    QueryDescriptor,
    RangeClause,
    SearchClause,
    escape_like,
)

PRICE_COLUMN = "current_price"
DISCOUNT_COLUMN = "discount_percent"


def _room_group(rooms: List[Room]) -> PatternGroup:
    patterns = sorted({f"%{escape_like(room.match_term)}%" for room in rooms})
    return PatternGroup("rooms", tuple(PatternClause("room_type", p) for p in patterns))


def _furniture_type_group(types: List[FurnitureType]) -> PatternGroup:
    patterns = set()
    for furniture_type in types:
        if furniture_type.exact_match:
            patterns.add(escape_like(furniture_type.canonical))
        else:
            patterns.add(f"%{escape_like(furniture_type.canonical)}%")
    clauses = tuple(PatternClause("furniture_type", p) for p in sorted(patterns))
    return PatternGroup("furniture_types", clauses)


def _brand_group(brands: List[Brand]) -> PatternGroup:
    titles = sorted({brand.title for brand in brands})
    return PatternGroup("brands", tuple(PatternClause("brand", escape_like(t)) for t in titles))


def _order_for(selection: FilterSelection) -> OrderClause:
    if selection.price_sort is PriceSort.HIGH_TO_LOW:
        return OrderClause(PRICE_COLUMN, descending=True)
    if selection.price_sort is PriceSort.LOW_TO_HIGH:
        return OrderClause(PRICE_COLUMN, descending=False)
    if selection.discount_sort is DiscountSort.HIGHEST_FIRST:
        return OrderClause(DISCOUNT_COLUMN, descending=True)
    return DEFAULT_ORDER


def compile_query(selection: FilterSelection, search_text: Optional[str] = None) -> QueryDescriptor:
    """
    Build the remote query for a selection.

    Args:
        selection: Facet selection.
        search_text: Optional free text matched against name and description.

    Returns:
        QueryDescriptor without paging.
    """
    equals = tuple(
        EqualityClause(CategoryFlag(flag_id).column, True)
        for flag_id in sorted_ids(selection.category_flags)
    )

    groups = []
    if selection.rooms:
        groups.append(_room_group([Room(r) for r in sorted_ids(selection.rooms)]))
    if selection.furniture_types:
        groups.append(_furniture_type_group(
            [FurnitureType(t) for t in sorted_ids(selection.furniture_types)]
        ))
    if selection.brands:
        groups.append(_brand_group([Brand(b) for b in sorted_ids(selection.brands)]))

    price_range = None
    if selection.has_price_range:
        price_range = RangeClause(
            PRICE_COLUMN,
            lower=selection.min_price or 0,
            upper=selection.max_price,
        )

    search = None
    if search_text and search_text.strip():
        search = SearchClause(search_text.strip())

    not_null = ()
    if selection.price_sort is PriceSort.NONE and selection.discount_sort is DiscountSort.HIGHEST_FIRST:
        not_null = (DISCOUNT_COLUMN,)

    return QueryDescriptor(
        equals=equals,
        pattern_groups=tuple(groups),
        price_range=price_range,
        search=search,
        not_null=not_null,
        order=_order_for(selection),
    )


def fingerprint(selection: FilterSelection, search_text: Optional[str] = None) -> str:
    """Fingerprint of the query a selection compiles to."""
    return compile_query(selection, search_text).fingerprint()
