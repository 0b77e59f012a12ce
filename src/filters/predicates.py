"""Compile a filter selection into a product predicate.

Facets combine with OR inside a facet and AND across facets. Category flags
are the exception: every selected flag must hold, so choosing both New and
Clearance only keeps products that are both.
"""

from typing import Callable, List, Optional
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.catalog.models import Product
from src.catalog.taxonomy import CategoryFlag, Room, FurnitureType, Brand
from src.filters.selection import FilterSelection, sorted_ids

Predicate = Callable[[Product], bool]


def _lower(value: Optional[str]) -> str:
    return (value or "").lower()


def category_predicate(flag: CategoryFlag) -> Predicate:
    if flag is CategoryFlag.NEW:
        return lambda product: product.new_product is True
    if flag is CategoryFlag.CLEARANCE:
        return lambda product: product.on_clearance is True
    raise ValueError(f"Unhandled category flag: {flag}")


def room_predicate(rooms: List[Room]) -> Predicate:
    terms = [room.match_term.lower() for room in rooms]

    def matches(product: Product) -> bool:
        room_type = _lower(product.room_type)
        return any(term in room_type for term in terms)

    return matches


def furniture_type_predicate(types: List[FurnitureType]) -> Predicate:
    exact = {t.canonical.lower() for t in types if t.exact_match}
    partial = [t.canonical.lower() for t in types if not t.exact_match]

    def matches(product: Product) -> bool:
        furniture_type = _lower(product.furniture_type)
        if furniture_type in exact:
            return True
        return any(term in furniture_type for term in partial)

    return matches


def brand_predicate(brands: List[Brand]) -> Predicate:
    names = set()
    for brand in brands:
        names.add(brand.title.lower())
        names.add(brand.value)

    return lambda product: _lower(product.brand) in names


def price_predicate(min_price: Optional[int], max_price: Optional[int]) -> Predicate:
    lower = min_price or 0

    def matches(product: Product) -> bool:
        # Unpriced products never satisfy a range, same as SQL NULL comparisons
        price = product.current_price
        if price is None or price < lower:
            return False
        return max_price is None or price <= max_price

    return matches


def compile_predicate(selection: FilterSelection) -> Optional[Predicate]:
    """
    Build the product predicate for a selection.

    Args:
        selection: Facet selection to compile.

    Returns:
        Predicate, or None when no facet is active (accept everything).
    """
    clauses: List[Predicate] = []

    # Iterate in id order so repeated compiles evaluate identically
    for flag_id in sorted_ids(selection.category_flags):
        clauses.append(category_predicate(CategoryFlag(flag_id)))

    if selection.rooms:
        clauses.append(room_predicate([Room(r) for r in sorted_ids(selection.rooms)]))

    if selection.furniture_types:
        clauses.append(furniture_type_predicate(
            [FurnitureType(t) for t in sorted_ids(selection.furniture_types)]
        ))

    if selection.brands:
        clauses.append(brand_predicate([Brand(b) for b in sorted_ids(selection.brands)]))

    if selection.has_price_range:
        clauses.append(price_predicate(selection.min_price, selection.max_price))

    if not clauses:
        return None

    return lambda product: all(clause(product) for clause in clauses)
