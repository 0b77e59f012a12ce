"""Filter state store for catalog browsing.

Owns the single mutable facet selection of a browse session. All changes go
through the mutators below; each one keeps the selection's invariants and
notifies subscribers with the new snapshot.
"""

from dataclasses import replace
import re
from typing import Any, Callable, FrozenSet, List, Optional, Sequence, TypeVar
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config
from config.logging_config import get_logger
from src.catalog.models import Product
from src.catalog.taxonomy import (
    CategoryFlag,
    Room,
    FurnitureType,
    Brand,
    PriceSort,
    DiscountSort,
    NavigationMarker,
)
from src.filters.selection import FilterSelection
from src.filters.predicates import compile_predicate
from src.filters.sorting import sort_products
from src.filters.summary import summarize

logger = get_logger("filters.state")

Listener = Callable[[FilterSelection], None]
T = TypeVar("T")

_NON_DIGITS = re.compile(r"[^0-9]")


class ValidationError(Exception):
    """Raised for price input that cannot be accepted."""

    pass


def parse_price_input(value: Any, limit: int) -> Optional[int]:
    """
    Normalize a price bound typed by the user.

    Strings are stripped of every non-digit character first, so "$1,200"
    becomes 1200 and an all-symbol string clears the bound. Numbers must be
    whole: 12.0 is accepted as 12, 12.7 is rejected.

    Args:
        value: int, str or None.
        limit: Largest accepted value.

    Returns:
        Parsed price, or None to clear the bound.

    Raises:
        ValidationError: If the value is negative, fractional, not a number, or above limit.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Not a price: {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"Price must be a whole number: {value!r}")
    if isinstance(value, (int, float)):
        try:
            number = int(value)
        except (ValueError, OverflowError):
            raise ValidationError(f"Not a price: {value!r}")
        if number < 0:
            raise ValidationError(f"Price cannot be negative: {value!r}")
    else:
        digits = _NON_DIGITS.sub("", str(value))
        if not digits:
            return None
        number = int(digits)

    if number > limit:
        raise ValidationError(f"Max value is {limit:,}")
    return number


class FilterState:
    """
    Mutable facet selection with observer notifications.

    Usage:
        state = FilterState()
        unsubscribe = state.subscribe(lambda selection: print(selection))
        state.add_room("bedroom")
        state.set_price_sort(PriceSort.LOW_TO_HIGH)
    """

    def __init__(
        self,
        selection: Optional[FilterSelection] = None,
        price_limit: Optional[int] = None,
    ):
        """
        Initialize the store.

        Args:
            selection: Starting selection (empty when omitted).
            price_limit: Largest accepted price bound. Defaults to config.
        """
        self._selection = selection or FilterSelection()
        self.price_limit = price_limit if price_limit is not None else config.app.max_price
        self._listeners: List[Listener] = []

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    def snapshot(self) -> FilterSelection:
        """Current selection (immutable)."""
        return self._selection

    @property
    def category_flags(self) -> FrozenSet[CategoryFlag]:
        return self._selection.category_flags

    @property
    def rooms(self) -> FrozenSet[Room]:
        return self._selection.rooms

    @property
    def furniture_types(self) -> FrozenSet[FurnitureType]:
        return self._selection.furniture_types

    @property
    def brands(self) -> FrozenSet[Brand]:
        return self._selection.brands

    @property
    def min_price(self) -> Optional[int]:
        return self._selection.min_price

    @property
    def max_price(self) -> Optional[int]:
        return self._selection.max_price

    @property
    def price_sort(self) -> PriceSort:
        return self._selection.price_sort

    @property
    def discount_sort(self) -> DiscountSort:
        return self._selection.discount_sort

    @property
    def navigation_marker(self) -> Optional[NavigationMarker]:
        return self._selection.navigation_marker

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with the new selection after each change.

        Returns:
            Callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        selection = self._selection
        for listener in list(self._listeners):
            try:
                listener(selection)
            except Exception as e:
                logger.error(f"Filter listener {listener!r} failed: {e}", exc_info=True)

    def _update(self, **changes: Any) -> bool:
        updated = replace(self._selection, **changes)
        if updated == self._selection:
            return False
        self._selection = updated
        self._notify()
        return True

    def load(self, selection: FilterSelection) -> None:
        """Replace the whole selection, e.g. after rehydrating from storage."""
        if selection.price_sort != PriceSort.NONE:
            selection = replace(selection, discount_sort=DiscountSort.NONE)
        self._update(**{name: getattr(selection, name) for name in selection.__dataclass_fields__})

    # -------------------------------------------------------------------------
    # Set facets
    # -------------------------------------------------------------------------

    @staticmethod
    def _with(values: FrozenSet[T], value: T) -> FrozenSet[T]:
        return values | {value}

    @staticmethod
    def _without(values: FrozenSet[T], value: T) -> FrozenSet[T]:
        return values - {value}

    def add_category(self, category: Any) -> None:
        self._update(category_flags=self._with(self.category_flags, CategoryFlag.parse(category)))

    def remove_category(self, category: Any) -> None:
        self._update(category_flags=self._without(self.category_flags, CategoryFlag.parse(category)))

    def add_room(self, room: Any) -> None:
        self._update(rooms=self._with(self.rooms, Room.parse(room)))

    def remove_room(self, room: Any) -> None:
        self._update(rooms=self._without(self.rooms, Room.parse(room)))

    def add_furniture_type(self, furniture_type: Any) -> None:
        self._update(
            furniture_types=self._with(self.furniture_types, FurnitureType.parse(furniture_type))
        )

    def remove_furniture_type(self, furniture_type: Any) -> None:
        self._update(
            furniture_types=self._without(self.furniture_types, FurnitureType.parse(furniture_type))
        )

    def add_brand(self, brand: Any) -> None:
        self._update(brands=self._with(self.brands, Brand.parse(brand)))

    def remove_brand(self, brand: Any) -> None:
        self._update(brands=self._without(self.brands, Brand.parse(brand)))

    # -------------------------------------------------------------------------
    # Price bounds
    # -------------------------------------------------------------------------

    def set_min_price(self, value: Any) -> bool:
        """
        Set the lower price bound.

        Rejected input leaves the previous bound in place.

        Returns:
            True if the value was accepted.
        """
        try:
            price = parse_price_input(value, self.price_limit)
            if price is not None and self.max_price is not None and price > self.max_price:
                raise ValidationError(f"Min price {price} is above max price {self.max_price}")
        except ValidationError as e:
            logger.warning(f"Rejected min price {value!r}: {e}")
            return False
        self._update(min_price=price)
        return True

    def set_max_price(self, value: Any) -> bool:
        """
        Set the upper price bound.

        Rejected input leaves the previous bound in place.

        Returns:
            True if the value was accepted.
        """
        try:
            price = parse_price_input(value, self.price_limit)
            if price is not None and self.min_price is not None and price < self.min_price:
                raise ValidationError(f"Max price {price} is below min price {self.min_price}")
        except ValidationError as e:
            logger.warning(f"Rejected max price {value!r}: {e}")
            return False
        self._update(max_price=price)
        return True

    # -------------------------------------------------------------------------
    # Sorting
    # -------------------------------------------------------------------------

    def set_price_sort(self, mode: Any) -> None:
        """Set price ordering; any active price sort switches discount sort off."""
        price_sort = PriceSort.parse(mode)
        if price_sort != PriceSort.NONE:
            self._update(price_sort=price_sort, discount_sort=DiscountSort.NONE)
        else:
            self._update(price_sort=price_sort)

    def set_discount_sort(self, mode: Any) -> None:
        """Set discount ordering; any active discount sort switches price sort off."""
        discount_sort = DiscountSort.parse(mode)
        if discount_sort != DiscountSort.NONE:
            self._update(discount_sort=discount_sort, price_sort=PriceSort.NONE)
        else:
            self._update(discount_sort=discount_sort)

    def clear_sorting(self) -> None:
        self._update(price_sort=PriceSort.NONE, discount_sort=DiscountSort.NONE)

    def set_navigation_marker(self, marker: Any) -> None:
        self._update(navigation_marker=None if marker is None else NavigationMarker.parse(marker))

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    def clear_filters(self) -> None:
        """Reset facets and sorting. Navigation marker and price bounds stay."""
        self._update(
            category_flags=frozenset(),
            rooms=frozenset(),
            furniture_types=frozenset(),
            brands=frozenset(),
            price_sort=PriceSort.NONE,
            discount_sort=DiscountSort.NONE,
        )

    def clear_all(self) -> None:
        """Reset everything, including navigation marker and price bounds."""
        self._update(**{
            name: getattr(FilterSelection(), name)
            for name in FilterSelection.__dataclass_fields__
        })

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def has_active_filters(self) -> bool:
        return not self._selection.is_empty

    def get_filter_summary(self) -> List[str]:
        return summarize(self._selection)

    def get_filter_function(self) -> Optional[Callable[[Product], bool]]:
        """Compiled predicate for the current selection, None meaning accept all."""
        return compile_predicate(self._selection)

    def filter_products(self, items: Sequence[Product]) -> List[Product]:
        """Apply the current facets and sort order to products already in memory."""
        predicate = compile_predicate(self._selection)
        matched = [item for item in items if predicate(item)] if predicate else list(items)
        return sort_products(matched, self._selection)
