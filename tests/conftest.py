# tests/conftest.py
import asyncio
from typing import List, Optional, Set

import pytest

from sales_tracker.data.memory_repository import InMemorySalesStore
from sales_tracker.data.models import Item
from sales_tracker.events.event_interface import EventEmitter
from sales_tracker.utils.error_handling import StoreError


class FlakyStore(InMemorySalesStore):
    """In-memory store that records calls and can fail or pause chosen operations."""

    def __init__(self, items=None, supports_cascade: bool = True):
        super().__init__(items=items)
        self.supports_cascade = supports_cascade
        self.calls: List[str] = []
        self.fail_on: Set[str] = set()
        self.gate: Optional[asyncio.Event] = None
        self.gated_operation: Optional[str] = None

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        # Real stores suspend on every call
        await asyncio.sleep(0)
        if self.gate is not None and operation == self.gated_operation:
            await self.gate.wait()
        if operation in self.fail_on:
            raise StoreError(f"{operation} failed")

    async def list_items(self):
        await self._enter("list_items")
        return await super().list_items()

    async def list_sales(self):
        await self._enter("list_sales")
        return await super().list_sales()

    async def create_sale(self, buyer_name, sale_date):
        await self._enter("create_sale")
        return await super().create_sale(buyer_name, sale_date)

    async def create_sale_lines(self, sale_id, lines):
        await self._enter("create_sale_lines")
        return await super().create_sale_lines(sale_id, lines)

    async def delete_sale_lines(self, sale_id):
        await self._enter("delete_sale_lines")
        return await super().delete_sale_lines(sale_id)

    async def delete_sale(self, sale_id):
        await self._enter("delete_sale")
        # The base class cascades through delete_sale_lines; avoid recording it twice
        if sale_id in self._sales:
            del self._sales[sale_id]
            if self.supports_cascade:
                self._lines = [row for row in self._lines if row["sale_id"] != sale_id]
            return
        return await super().delete_sale(sale_id)

    @property
    def write_calls(self) -> List[str]:
        return [call for call in self.calls if not call.startswith("list_")]


@pytest.fixture
def items():
    """Reference items used across tests"""
    return [
        Item(id="item-widget", name="Widget"),
        Item(id="item-gadget", name="Gadget"),
        Item(id="item-doohickey", name="Doohickey"),
    ]


@pytest.fixture
def make_store(items):
    """Factory for connected flaky in-memory stores seeded with items"""
    async def factory(supports_cascade=True):
        flaky = FlakyStore(items=items, supports_cascade=supports_cascade)
        await flaky.connect()
        return flaky
    return factory


@pytest.fixture
async def store(make_store):
    """Connected flaky in-memory store seeded with items"""
    return await make_store()


@pytest.fixture
def events():
    """Fresh event emitter so tests do not share handlers"""
    return EventEmitter()


@pytest.fixture
def recorded(events):
    """List of every event emitted on the test emitter"""
    captured = []
    events.on_any(captured.append)
    return captured
