"""Closed facet vocabularies for catalog browsing.

Every facet value the filter store accepts is a member of one of these
enumerations. String ids coming from the UI or from persisted state are
parsed here, so everything downstream can match exhaustively.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Type, TypeVar
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import (
    CATEGORY_ALIASES,
    CATEGORY_COLUMNS,
    EXACT_MATCH_FURNITURE_TYPE,
    get_brand_title,
    get_category_name,
    get_furniture_type_canonical,
    get_room_match_term,
    get_sort_name,
)

E = TypeVar("E", bound=Enum)


class InvalidFacetError(ValueError):
    """Raised when a facet id is not part of its vocabulary."""

    def __init__(self, facet: str, value: Any):
        self.facet = facet
        self.value = value
        super().__init__(f"Unknown {facet}: {value!r}")


def parse_facet(enum_cls: Type[E], value: Any) -> E:
    """
    Parse an enum member or its string id.

    Args:
        enum_cls: Target enumeration.
        value: Member or id string (case-insensitive, surrounding whitespace ignored).

    Returns:
        The matching member.

    Raises:
        InvalidFacetError: If the value is not in the vocabulary.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        for member in enum_cls:
            if member.value == key:
                return member
    raise InvalidFacetError(enum_cls.__name__, value)


class CategoryFlag(Enum):
    """Boolean product categories."""
    NEW = "new"
    CLEARANCE = "clearance"

    @classmethod
    def parse(cls, value: Any) -> "CategoryFlag":
        if isinstance(value, str):
            value = CATEGORY_ALIASES.get(value.strip().lower(), value)
        return parse_facet(cls, value)

    @property
    def label(self) -> str:
        return get_category_name(self.value)

    @property
    def column(self) -> str:
        """Backend boolean column for this flag."""
        return CATEGORY_COLUMNS[self.value]


class Room(Enum):
    """Rooms a product can be shopped by."""
    LIVING_ROOM = "living-room"
    BEDROOM = "bedroom"
    DINING_ROOM = "dining-room"
    OFFICE = "office"
    OUTDOOR = "outdoor"

    @classmethod
    def parse(cls, value: Any) -> "Room":
        return parse_facet(cls, value)

    @property
    def match_term(self) -> str:
        """Substring looked for in a product's room_type."""
        return get_room_match_term(self.value)

    @property
    def label(self) -> str:
        return " ".join(word.capitalize() for word in self.value.split("-"))


class FurnitureType(Enum):
    """Furniture types offered in the type filter."""
    SECTIONALS = "sectionals"
    DAYBEDS = "daybeds"
    ACCENT_CHAIRS = "accent chairs"
    SWIVEL_CHAIRS = "swivel chairs"
    COFFEE_TABLES = "coffee tables"
    CONSOLE_TABLES = "console tables"
    SIDE_TABLES = "side tables"
    MEDIA_CONSOLES = "media consoles"
    OTTOMANS = "ottomans"
    DINING_TABLES = "dining tables"
    DINING_CHAIRS = "dining chairs"
    COUNTER_STOOLS = "counter stools"
    BAR_STOOLS = "bar stools"
    CREDENZAS = "credenzas"
    BAR_CABINETS = "bar cabinets"
    NIGHTSTANDS = "nightstands"
    BEDROOM_BENCHES = "bedroom benches"
    MATTRESSES = "mattresses"
    BOOKCASES = "bookcases"
    STORAGE_CABINETS = "storage cabinets"
    DESKS = "desks"
    DESK_CHAIRS = "desk chairs"
    OFFICE_CHAIRS = "office chairs"
    ENTRYWAY_CABINETS = "entryway cabinets"
    LOUNGE_CHAIRS = "lounge chairs"
    LOVESEATS = "loveseats"
    OUTDOOR_CHAIRS = "outdoor chairs"
    OUTDOOR_SOFAS = "outdoor sofas"
    ARMCHAIRS = "armchairs"
    SOFA_BEDS = "sofa beds"
    END_AND_SIDE_TABLES = "end and side tables"
    BAR_AND_COUNTER_STOOLS = "bar & counter stools"
    OUTDOOR_TABLES = "outdoor tables"
    DRESSERS = "dressers"
    CHAIRS = "chairs"
    SOFAS = "sofas"
    BENCHES = "benches"
    STOOLS = "stools"
    CABINETS = "cabinets"
    PLATFORM_BEDS = "platform beds"
    HEADBOARDS = "headboards"
    BEDS = "beds"
    SEATING = "seating"
    TABLES = "tables"
    STORAGE = "storage"

    @classmethod
    def parse(cls, value: Any) -> "FurnitureType":
        return parse_facet(cls, value)

    @property
    def canonical(self) -> str:
        """Value stored in the backend's furniture_type column."""
        return get_furniture_type_canonical(self.value)

    @property
    def exact_match(self) -> bool:
        return self.canonical == EXACT_MATCH_FURNITURE_TYPE

    @property
    def label(self) -> str:
        return self.value.title()


class Brand(Enum):
    """Brands carried by the catalog."""
    WEST_ELM = "west-elm"
    ARHAUS = "arhaus"
    CB2 = "cb2"
    CRATE_BARREL = "crate-barrel"
    IKEA = "ikea"
    RESTORATION_HARDWARE = "restoration-hardware"
    POTTERY_BARN = "pottery-barn"
    ARTICLE = "article"
    ALL_MODERN = "all-modern"
    ROOM_BOARD = "room-board"
    ANTHROPOLOGIE = "anthropologie"
    URBAN = "urban"
    SERENA = "serena"
    DESIGN_WITHIN = "design-within"
    CASTLERY = "castlery"
    BURROW = "burrow"

    @classmethod
    def parse(cls, value: Any) -> "Brand":
        return parse_facet(cls, value)

    @property
    def title(self) -> str:
        """Brand name as stored in the backend's brand column."""
        return get_brand_title(self.value)


class PriceSort(Enum):
    """Price ordering."""
    NONE = "none"
    HIGH_TO_LOW = "high-to-low"
    LOW_TO_HIGH = "low-to-high"

    @classmethod
    def parse(cls, value: Any) -> "PriceSort":
        if value is None:
            return cls.NONE
        return parse_facet(cls, value)

    @property
    def label(self) -> str:
        return get_sort_name(self.value)


class DiscountSort(Enum):
    """Discount ordering."""
    NONE = "none"
    HIGHEST_FIRST = "highest-first"

    @classmethod
    def parse(cls, value: Any) -> "DiscountSort":
        if value is None:
            return cls.NONE
        return parse_facet(cls, value)

    @property
    def label(self) -> str:
        return get_sort_name(self.value)


class NavigationMarker(Enum):
    """Top-level browse path the user entered through."""
    TYPE = "type"
    ROOM = "room"
    BRAND = "brand"

    @classmethod
    def parse(cls, value: Any) -> "NavigationMarker":
        return parse_facet(cls, value)
