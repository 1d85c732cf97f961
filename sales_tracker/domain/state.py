"""
Application state for the Sales Tracker Dashboard.

This module holds the cached items, sale history and chart ranking as one
immutable snapshot. A reload builds a complete new snapshot and swaps it
in with a single assignment, so readers never see a half-updated cache.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from sales_tracker.config.logging_config import get_logger
from sales_tracker.data.base_repository import SalesStore
from sales_tracker.data.models import Item, RankedTotal, Sale
from sales_tracker.domain.aggregator import TOP_ITEMS_LIMIT, aggregate_top_items
from sales_tracker.events.event_interface import Event, EventEmitter, EventType, event_bus

logger = get_logger(__name__)


@dataclass(frozen=True)
class AppState:
    """Snapshot of everything the dashboard renders."""

    items: Tuple[Item, ...] = ()
    sales: Tuple[Sale, ...] = ()
    top_items: Tuple[RankedTotal, ...] = ()
    version: int = 0
    loaded_at: Optional[float] = None

    @property
    def is_loaded(self) -> bool:
        return self.loaded_at is not None

    def item_by_id(self, item_id: str) -> Optional[Item]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def sale_by_id(self, sale_id: str) -> Optional[Sale]:
        for sale in self.sales:
            if sale.id == sale_id:
                return sale
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the snapshot to a dictionary representation."""
        return {
            "items": [item.to_dict() for item in self.items],
            "sales": [sale.to_dict() for sale in self.sales],
            "top_items": [entry.to_dict() for entry in self.top_items],
            "version": self.version,
            "loaded_at": self.loaded_at,
        }


class AppContext:
    """
    Single owner of the current AppState.

    Only ``reload_items``, ``reload_sales`` and ``replace`` change the
    state, and each does so by swapping in a fully built snapshot.
    """

    def __init__(
        self,
        store: SalesStore,
        top_items_limit: int = TOP_ITEMS_LIMIT,
        events: Optional[EventEmitter] = None,
    ):
        self.store = store
        self.top_items_limit = top_items_limit
        self.events = events or event_bus
        self._state = AppState()

    @property
    def state(self) -> AppState:
        return self._state

    def replace(self, state: AppState) -> AppState:
        """Swap in a new snapshot and notify listeners."""
        self._state = state
        self.events.emit(Event(type=EventType.SALES_RELOADED, data={"state": state}))
        return state

    async def reload_items(self) -> AppState:
        """
        Refresh item reference data.

        Raises:
            StoreError: The current state is left untouched
        """
        items = tuple(await self.store.list_items())
        current = self._state
        logger.debug(f"Loaded {len(items)} item(s)")
        return self.replace(AppState(
            items=items,
            sales=current.sales,
            top_items=current.top_items,
            version=current.version + 1,
            loaded_at=current.loaded_at
        ))

    async def reload_sales(self) -> AppState:
        """
        Refresh the sale history and recompute the top-items ranking.

        Raises:
            StoreError: The current state is left untouched
        """
        sales = tuple(await self.store.list_sales())
        top_items = tuple(aggregate_top_items(sales, limit=self.top_items_limit))
        current = self._state
        logger.info(f"Loaded {len(sales)} sale(s)")
        return self.replace(AppState(
            items=current.items,
            sales=sales,
            top_items=top_items,
            version=current.version + 1,
            loaded_at=time.time()
        ))

    async def reload_all(self) -> AppState:
        """Load items, then sales, as on dashboard start-up."""
        await self.reload_items()
        return await self.reload_sales()
