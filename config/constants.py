"""Constants for the Furnish catalog.

Static lookup tables for the browse facets. Ids are the values stored in the
filter selection and persisted to durable storage; titles and match terms are
what the backend data actually contains.
"""

from typing import Dict


# =============================================================================
# Paging / Limits
# =============================================================================

DEFAULT_PAGE_SIZE = 10
MAX_PRICE_INPUT = 999_999
FILTER_SCHEMA_VERSION = 1

# Furniture-type canonical value that must match exactly ("bed" would
# otherwise match "daybed" and "sofa bed")
EXACT_MATCH_FURNITURE_TYPE = "bed"


# =============================================================================
# Category Flags
# =============================================================================

CATEGORY_NAMES: Dict[str, str] = {
    "new": "New Arrivals",
    "clearance": "Clearance",
}

# Legacy ids written by older clients
CATEGORY_ALIASES: Dict[str, str] = {
    "deals": "clearance",
}

# Backend boolean column for each category flag
CATEGORY_COLUMNS: Dict[str, str] = {
    "new": "new_product",
    "clearance": "on_clearance",
}


# =============================================================================
# Rooms
# =============================================================================

# room id -> substring matched against the product's room_type
ROOM_MATCH_TERMS: Dict[str, str] = {
    "living-room": "living",
    "bedroom": "bedroom",
    "dining-room": "dining",
    "office": "office",
    "outdoor": "outdoor",
}


# =============================================================================
# Furniture Types
# =============================================================================

# furniture type id -> canonical furniture_type value
FURNITURE_TYPE_CANONICAL: Dict[str, str] = {
    "sectionals": "sectional",
    "daybeds": "daybed",
    "accent chairs": "accent chair",
    "swivel chairs": "swivel chair",
    "coffee tables": "coffee table",
    "console tables": "console table",
    "side tables": "side table",
    "media consoles": "media console",
    "ottomans": "ottoman",
    "dining tables": "dining table",
    "dining chairs": "dining chair",
    "counter stools": "counter stool",
    "bar stools": "bar stool",
    "credenzas": "credenza",
    "bar cabinets": "bar cabinet",
    "nightstands": "nightstand",
    "bedroom benches": "bedroom bench",
    "mattresses": "mattress",
    "bookcases": "bookcase",
    "storage cabinets": "storage cabinet",
    "desks": "desk",
    "desk chairs": "desk chair",
    "office chairs": "office chair",
    "entryway cabinets": "entryway cabinet",
    "lounge chairs": "lounge chair",
    "loveseats": "loveseat",
    "outdoor chairs": "outdoor chair",
    "outdoor sofas": "outdoor sofa",
    "armchairs": "armchair",
    "sofa beds": "sofa bed",
    "end and side tables": "side table",
    "bar & counter stools": "stool",
    "outdoor tables": "outdoor table",
    "dressers": "dresser",
    "chairs": "chair",
    "sofas": "sofa",
    "benches": "bench",
    "stools": "stool",
    "cabinets": "cabinet",
    "platform beds": "bed",
    "headboards": "headboard",
    "beds": "bed",
    "seating": "seating",
    "tables": "tables",
    "storage": "storage",
}


# =============================================================================
# Brands
# =============================================================================

BRAND_TITLES: Dict[str, str] = {
    "west-elm": "West Elm",
    "arhaus": "ARHAUS",
    "cb2": "CB2",
    "crate-barrel": "Crate & Barrel",
    "ikea": "IKEA",
    "restoration-hardware": "Restoration Hardware",
    "pottery-barn": "Pottery Barn",
    "article": "Article",
    "all-modern": "All Modern",
    "room-board": "Room & Board",
    "anthropologie": "Anthropologie",
    "urban": "Urban Outfitters",
    "serena": "Serena & Lily",
    "design-within": "Design Within Reach",
    "castlery": "Castlery",
    "burrow": "Burrow",
}


# =============================================================================
# Sorting
# =============================================================================

SORT_NAMES: Dict[str, str] = {
    "none": "None",
    "high-to-low": "Price: High to Low",
    "low-to-high": "Price: Low to High",
    "highest-first": "Highest Discount First",
}


# =============================================================================
# Helper Functions
# =============================================================================

def get_category_name(category_id: str) -> str:
    """Get display name for a category flag id."""
    return CATEGORY_NAMES.get(category_id, category_id.title())


def get_brand_title(brand_id: str) -> str:
    """Get display title for a brand id."""
    return BRAND_TITLES.get(brand_id, brand_id)


def get_room_match_term(room_id: str) -> str:
    """Get the room_type substring for a room id."""
    return ROOM_MATCH_TERMS.get(room_id, room_id)


def get_furniture_type_canonical(type_id: str) -> str:
    """Get the canonical furniture_type value for a furniture type id."""
    return FURNITURE_TYPE_CANONICAL.get(type_id, type_id)


def get_sort_name(sort_id: str) -> str:
    """Get display name for a sort mode id."""
    return SORT_NAMES.get(sort_id, sort_id)
