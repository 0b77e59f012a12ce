"""Human-readable labels for the active filters."""

from typing import List
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.catalog.taxonomy import CategoryFlag, Room, FurnitureType, Brand
from src.filters.selection import FilterSelection, sorted_ids


def summarize(selection: FilterSelection) -> List[str]:
    """
    One label per selected facet value.

    Order: categories, rooms, furniture types, brands. Display only.
    """
    labels = [CategoryFlag(c).label for c in sorted_ids(selection.category_flags)]
    labels.extend(Room(r).label for r in sorted_ids(selection.rooms))
    labels.extend(FurnitureType(t).label for t in sorted_ids(selection.furniture_types))
    labels.extend(Brand(b).title for b in sorted_ids(selection.brands))
    return labels


def summary_text(selection: FilterSelection, separator: str = " | ") -> str:
    """Single-line summary, "All Products" when nothing is selected."""
    labels = summarize(selection)
    return separator.join(labels) if labels else "All Products"
