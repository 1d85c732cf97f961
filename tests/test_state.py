# tests/test_state.py
import dataclasses
from datetime import date

import pytest

from sales_tracker.data.models import SaleLine
from sales_tracker.domain.state import AppContext, AppState
from sales_tracker.events.event_interface import EventType
from sales_tracker.utils.error_handling import StoreError


@pytest.mark.asyncio
async def test_reload_all_loads_items_and_ranking(store, events):
    sale_id = await store.create_sale("Alice", date(2026, 1, 2))
    await store.create_sale_lines(sale_id, [SaleLine(item_id="item-gadget", quantity=3)])

    context = AppContext(store, events=events)
    state = await context.reload_all()

    assert [item.name for item in state.items] == ["Doohickey", "Gadget", "Widget"]
    assert [sale.id for sale in state.sales] == [sale_id]
    assert [(r.item_name, r.total_quantity) for r in state.top_items] == [("Gadget", 3)]
    assert state.is_loaded
    assert context.state is state


@pytest.mark.asyncio
async def test_reload_replaces_state_wholesale(store, events, recorded):
    """Each reload publishes a new snapshot and never edits the old one"""
    context = AppContext(store, events=events)
    first = await context.reload_all()

    sale_id = await store.create_sale("Alice", date(2026, 1, 2))
    await store.create_sale_lines(sale_id, [SaleLine(item_id="item-widget", quantity=1)])
    second = await context.reload_sales()

    assert second is not first
    assert first.sales == ()
    assert len(second.sales) == 1
    assert second.items == first.items
    assert second.version > first.version

    reloaded = [e.data["state"] for e in recorded if e.type == EventType.SALES_RELOADED]
    assert reloaded[-1] is second


@pytest.mark.asyncio
async def test_store_error_leaves_state_unchanged(store, events, recorded):
    context = AppContext(store, events=events)
    before = await context.reload_all()
    recorded.clear()

    store.fail_on.add("list_sales")
    with pytest.raises(StoreError):
        await context.reload_sales()

    assert context.state is before
    assert recorded == []


def test_state_is_immutable():
    state = AppState()
    with pytest.raises(dataclasses.FrozenInstanceError):
        state.sales = ()


@pytest.mark.asyncio
async def test_lookup_helpers(store, events):
    context = AppContext(store, events=events)
    state = await context.reload_all()

    assert state.item_by_id("item-widget").name == "Widget"
    assert state.item_by_id("missing") is None
    assert state.sale_by_id("missing") is None
    assert state.to_dict()["version"] == state.version


@pytest.mark.asyncio
async def test_top_items_limit_is_applied(store, events):
    sale_id = await store.create_sale("Alice", date(2026, 1, 2))
    await store.create_sale_lines(sale_id, [
        SaleLine(item_id="item-widget", quantity=1),
        SaleLine(item_id="item-gadget", quantity=2),
        SaleLine(item_id="item-doohickey", quantity=3),
    ])

    context = AppContext(store, top_items_limit=2, events=events)
    state = await context.reload_all()

    assert [r.item_name for r in state.top_items] == ["Doohickey", "Gadget"]
