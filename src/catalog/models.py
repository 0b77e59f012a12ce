"""Product and page records returned by catalog queries."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    # NaN from pandas frames
    if number != number:
        return None
    return number


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime()
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class Product:
    """A furniture product as stored by the backend."""

    id: str
    name: str = ""
    description: Optional[str] = None
    brand: Optional[str] = None
    furniture_type: Optional[str] = None
    room_type: Optional[str] = None
    current_price: Optional[float] = None
    regular_price: Optional[float] = None
    stored_discount_percent: Optional[float] = None
    new_product: bool = False
    on_clearance: bool = False
    created_at: Optional[datetime] = None
    image_url: Optional[str] = None

    @property
    def discount_percent(self) -> float:
        """Stored discount if present, else derived from the two prices."""
        if self.stored_discount_percent is not None:
            return self.stored_discount_percent
        regular = self.regular_price or 0
        if regular > 0:
            return (regular - (self.current_price or 0)) / regular * 100
        return 0.0

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Product":
        """
        Create from a backend row.

        Args:
            record: Row mapping using backend column names.

        Returns:
            Product populated from the row.
        """
        return cls(
            id=str(record["id"]),
            name=record.get("name") or "",
            description=record.get("description"),
            brand=record.get("brand"),
            furniture_type=record.get("furniture_type"),
            room_type=record.get("room_type"),
            current_price=_to_float(record.get("current_price")),
            regular_price=_to_float(record.get("regular_price")),
            stored_discount_percent=_to_float(record.get("discount_percent")),
            new_product=bool(record.get("new_product") or False),
            on_clearance=bool(record.get("on_clearance") or False),
            created_at=_to_datetime(record.get("created_at")),
            image_url=record.get("image_url"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a backend-shaped row."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "brand": self.brand,
            "furniture_type": self.furniture_type,
            "room_type": self.room_type,
            "current_price": self.current_price,
            "regular_price": self.regular_price,
            "discount_percent": self.stored_discount_percent,
            "new_product": self.new_product,
            "on_clearance": self.on_clearance,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "image_url": self.image_url,
        }


@dataclass
class Page:
    """One page of query results."""

    items: List[Product] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total_count

    @property
    def total_pages(self) -> int:
        if self.total_count == 0:
            return 1
        return (self.total_count + self.page_size - 1) // self.page_size
