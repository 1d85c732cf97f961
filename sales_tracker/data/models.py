"""
Data models for persistence and business logic.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union


def parse_date(value: Union[str, date, datetime]) -> date:
    """Coerce an ISO date string, datetime or date to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # Timestamps from the REST API may carry a time component
    return date.fromisoformat(value[:10])


@dataclass(frozen=True)
class Item:
    """Model representing a sellable item (reference data)."""

    id: str
    name: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert the model to a dictionary."""
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Item':
        """Create a model from a dictionary."""
        return cls(id=str(data["id"]), name=data["name"])


@dataclass(frozen=True)
class SaleLine:
    """Model representing one item and quantity within a sale.

    ``item_name`` is only populated when the store resolves lines for
    listing; lines built from the entry form carry just the item id.
    """

    item_id: str
    quantity: int
    item_name: Optional[str] = None

    @property
    def label(self) -> str:
        """Name used when displaying or aggregating the line."""
        return self.item_name if self.item_name is not None else self.item_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert the model to a dictionary."""
        return {
            "item_id": self.item_id,
            "quantity": self.quantity,
            "item_name": self.item_name
        }


@dataclass(frozen=True)
class Sale:
    """Model representing a committed sale and its lines."""

    id: str
    buyer_name: str
    sale_date: date
    lines: Tuple[SaleLine, ...] = field(default_factory=tuple)

    @property
    def total_quantity(self) -> int:
        """Sum of quantities across all lines."""
        return sum(line.quantity for line in self.lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the model to a dictionary."""
        return {
            "id": self.id,
            "buyer_name": self.buyer_name,
            "sale_date": self.sale_date.isoformat(),
            "lines": [line.to_dict() for line in self.lines]
        }


@dataclass(frozen=True)
class RankedTotal:
    """Derived per-item total used by the top-items chart. Never persisted."""

    item_name: str
    total_quantity: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert the model to a dictionary."""
        return {"item_name": self.item_name, "total_quantity": self.total_quantity}


def lines_to_records(sale_id: str, lines: List[SaleLine]) -> List[Dict[str, Any]]:
    """Rows for the sale_items table, each tagged with the parent sale id."""
    return [
        {"sale_id": sale_id, "item_id": line.item_id, "quantity": line.quantity}
        for line in lines
    ]
