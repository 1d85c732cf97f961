"""
Line rows for the sale entry form.
"""

from dataclasses import dataclass, replace
from itertools import count
from typing import List, Optional, Tuple, Union

from sales_tracker.config.logging_config import get_logger
from sales_tracker.data.models import SaleLine
from sales_tracker.utils.error_handling import ValidationError

logger = get_logger(__name__)

DEFAULT_QUANTITY = 1


def parse_quantity(value: Union[int, str]) -> int:
    """
    Parse a quantity typed into a row.

    Args:
        value: Integer or text from the quantity control

    Returns:
        int: Quantity of at least 1

    Raises:
        ValidationError: If the value is not a whole number of at least 1
    """
    if isinstance(value, bool):
        raise ValidationError(f"Quantity must be a whole number, got {value!r}")

    if isinstance(value, int):
        quantity = value
    else:
        try:
            quantity = int(str(value).strip())
        except ValueError:
            raise ValidationError(f"Quantity must be a whole number, got {value!r}")

    if quantity < 1:
        raise ValidationError(f"Quantity must be at least 1, got {quantity}")
    return quantity


@dataclass(frozen=True)
class Row:
    """A candidate sale line being edited in the entry form."""

    row_id: int
    item_id: Optional[str] = None
    quantity: int = DEFAULT_QUANTITY

    @property
    def has_item(self) -> bool:
        return bool(self.item_id)


class RowSetBuilder:
    """
    Ordered, editable set of item/quantity rows for one sale.

    Row ids come from a counter that is never rewound, so an intent
    naming a removed row can never hit a newer one.
    """

    def __init__(self):
        self._ids = count()
        self._rows: List[Row] = []

    @property
    def rows(self) -> Tuple[Row, ...]:
        return tuple(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def add_row(self) -> Row:
        """Append an empty row with the default quantity."""
        row = Row(row_id=next(self._ids))
        self._rows.append(row)
        logger.debug(f"Added row {row.row_id}")
        return row

    def remove_row(self, row_id: int) -> bool:
        """
        Remove a row if it is present.

        Returns:
            bool: False when no row had this id
        """
        for index, row in enumerate(self._rows):
            if row.row_id == row_id:
                del self._rows[index]
                logger.debug(f"Removed row {row_id}")
                return True
        return False

    def select_item(self, row_id: int, item_id: Optional[str]) -> Row:
        """Set the row's item, or clear it with None or an empty string."""
        return self._update(row_id, item_id=item_id or None)

    def set_quantity(self, row_id: int, value: Union[int, str]) -> Row:
        """Set the row's quantity; invalid input is rejected before it is stored."""
        return self._update(row_id, quantity=parse_quantity(value))

    def snapshot(self) -> List[SaleLine]:
        """Lines for every row with an item selected, in row order."""
        return [
            SaleLine(item_id=row.item_id, quantity=row.quantity)
            for row in self._rows
            if row.has_item
        ]

    def reset(self) -> None:
        """Drop all rows. Ids keep increasing."""
        self._rows = []

    def _update(self, row_id: int, **changes) -> Row:
        for index, row in enumerate(self._rows):
            if row.row_id == row_id:
                updated = replace(row, **changes)
                self._rows[index] = updated
                return updated
        raise KeyError(f"No row with id {row_id}")
