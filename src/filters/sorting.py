"""Client-side ordering derived from a filter selection."""

from functools import cmp_to_key
from typing import Callable, List, Optional, Sequence
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.catalog.models import Product
from src.catalog.taxonomy import PriceSort, DiscountSort
from src.filters.selection import FilterSelection

Comparator = Callable[[Product, Product], int]


def _compare(a: float, b: float) -> int:
    return (a > b) - (a < b)


def _price(product: Product) -> float:
    return product.current_price or 0


def derive_comparator(selection: FilterSelection) -> Optional[Comparator]:
    """
    Comparator for the selection's sort mode.

    Returns:
        Comparator, or None when no sort is active and the incoming order
        must be kept.
    """
    if selection.price_sort is PriceSort.HIGH_TO_LOW:
        return lambda a, b: _compare(_price(b), _price(a))
    if selection.price_sort is PriceSort.LOW_TO_HIGH:
        return lambda a, b: _compare(_price(a), _price(b))
    if selection.discount_sort is DiscountSort.HIGHEST_FIRST:
        return lambda a, b: _compare(b.discount_percent, a.discount_percent)
    return None


def sort_products(items: Sequence[Product], selection: FilterSelection) -> List[Product]:
    """Stable sort of products by the selection's sort mode."""
    comparator = derive_comparator(selection)
    if comparator is None:
        return list(items)
    return sorted(items, key=cmp_to_key(comparator))
