"""
In-memory sales store implementation for testing and development.
"""
import uuid
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from sales_tracker.config.logging_config import get_logger
from sales_tracker.data.base_repository import SalesStore
from sales_tracker.data.models import Item, Sale, SaleLine
from sales_tracker.utils.error_handling import NotFoundError, StoreError

logger = get_logger(__name__)


class InMemorySalesStore(SalesStore):
    """In-memory sales store.

    Headers and lines are kept in separate tables, like the relational
    backend, so the non-atomic two-step write can be exercised for real.
    Deleting a header cascades to its lines.
    """

    supports_cascade = True

    def __init__(
        self,
        connection_config: Optional[Dict[str, Any]] = None,
        items: Optional[Iterable[Item]] = None,
    ):
        """Initialize the store with an empty set of sales.

        Args:
            connection_config: Not used for the in-memory store
            items: Optional reference items to seed the store with
        """
        super().__init__(connection_config or {})
        self._items: Dict[str, Item] = {item.id: item for item in (items or [])}
        self._sales: Dict[str, Dict[str, Any]] = {}
        self._lines: List[Dict[str, Any]] = []
        self._is_connected = False

    async def connect(self) -> bool:
        """Simulate connecting to a database.

        Returns:
            bool: Always returns True
        """
        self._is_connected = True
        logger.info("Connected to in-memory sales store")
        return True

    async def disconnect(self) -> None:
        """Simulate disconnecting from a database."""
        self._is_connected = False
        logger.info("Disconnected from in-memory sales store")

    def add_item(self, name: str, item_id: Optional[str] = None) -> Item:
        """Register a reference item (seeding helper, not part of the store contract)."""
        item = Item(id=item_id or str(uuid.uuid4()), name=name)
        self._items[item.id] = item
        return item

    async def list_items(self) -> List[Item]:
        self._check_connection()
        return sorted(self._items.values(), key=lambda item: item.name)

    async def list_sales(self) -> List[Sale]:
        self._check_connection()

        sales = []
        for sale_id, header in self._sales.items():
            lines = tuple(
                SaleLine(
                    item_id=row["item_id"],
                    quantity=row["quantity"],
                    item_name=self._item_name(row["item_id"])
                )
                for row in self._lines
                if row["sale_id"] == sale_id
            )
            sales.append(Sale(
                id=sale_id,
                buyer_name=header["buyer_name"],
                sale_date=header["sale_date"],
                lines=lines
            ))

        # Stable sort keeps insertion order among sales on the same date
        sales.sort(key=lambda sale: sale.sale_date, reverse=True)
        return sales

    async def create_sale(self, buyer_name: str, sale_date: date) -> str:
        self._check_connection()

        sale_id = str(uuid.uuid4())
        self._sales[sale_id] = {"buyer_name": buyer_name, "sale_date": sale_date}
        logger.debug(f"Created sale {sale_id}")
        return sale_id

    async def create_sale_lines(self, sale_id: str, lines: List[SaleLine]) -> None:
        self._check_connection()

        if sale_id not in self._sales:
            raise StoreError(f"Cannot add lines to unknown sale {sale_id}")

        self._lines.extend(
            {"sale_id": sale_id, "item_id": line.item_id, "quantity": line.quantity}
            for line in lines
        )

    async def delete_sale_lines(self, sale_id: str) -> None:
        self._check_connection()
        self._lines = [row for row in self._lines if row["sale_id"] != sale_id]

    async def delete_sale(self, sale_id: str) -> None:
        self._check_connection()

        if sale_id not in self._sales:
            logger.warning(f"Sale with ID {sale_id} not found")
            raise NotFoundError(f"Sale {sale_id} not found", record_id=sale_id)

        del self._sales[sale_id]
        await self.delete_sale_lines(sale_id)

    def line_count(self, sale_id: Optional[str] = None) -> int:
        """Number of stored line records, optionally for one sale."""
        if sale_id is None:
            return len(self._lines)
        return sum(1 for row in self._lines if row["sale_id"] == sale_id)

    def _item_name(self, item_id: str) -> Optional[str]:
        item = self._items.get(item_id)
        return item.name if item else None

    def _check_connection(self) -> None:
        """Check if the store is connected.

        Raises:
            RuntimeError: If not connected
        """
        if not self._is_connected:
            raise RuntimeError("Sales store is not connected")
