# tests/test_submitter.py
import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from sales_tracker.data.base_repository import SalesStore
from sales_tracker.data.models import SaleLine
from sales_tracker.domain.submitter import SaleSubmitter, SubmissionState
from sales_tracker.events.event_interface import EventType
from sales_tracker.utils.error_handling import (
    PartialWriteError,
    StoreError,
    SubmissionInProgressError,
    ValidationError,
)

SALE_DATE = date(2026, 3, 14)
LINES = [SaleLine(item_id="item-widget", quantity=2), SaleLine(item_id="item-gadget", quantity=1)]


@pytest.mark.asyncio
async def test_empty_snapshot_is_rejected_without_store_calls(store, events):
    """No lines means a validation error and zero store interaction"""
    submitter = SaleSubmitter(store, events=events)

    with pytest.raises(ValidationError):
        await submitter.submit("Alice", SALE_DATE, [])

    assert store.calls == []
    assert submitter.state == SubmissionState.FAILED


@pytest.mark.asyncio
async def test_blank_buyer_is_rejected_without_store_calls(store, events):
    submitter = SaleSubmitter(store, events=events)

    with pytest.raises(ValidationError):
        await submitter.submit("   ", SALE_DATE, LINES)

    assert store.calls == []


@pytest.mark.asyncio
async def test_successful_submit_writes_header_then_lines(store, events, recorded):
    """Header and lines are written in order and the state reaches COMMITTED"""
    submitter = SaleSubmitter(store, events=events)

    result = await submitter.submit("Alice", SALE_DATE, LINES)

    assert store.write_calls == ["create_sale", "create_sale_lines"]
    assert submitter.state == SubmissionState.COMMITTED
    assert result.line_count == 2

    sales = await store.list_sales()
    assert len(sales) == 1
    assert sales[0].id == result.sale_id
    assert sales[0].buyer_name == "Alice"
    assert [(line.item_name, line.quantity) for line in sales[0].lines] == [("Widget", 2), ("Gadget", 1)]

    states = [e.data["state"] for e in recorded if e.type == EventType.SUBMISSION_STATE_CHANGED]
    assert states == [SubmissionState.VALIDATING, SubmissionState.PERSISTING, SubmissionState.COMMITTED]


@pytest.mark.asyncio
async def test_reload_runs_after_commit(store, events):
    """The history reload observes the sale that was just written"""
    seen = []

    async def reload():
        seen.append(len(await store.list_sales()))

    submitter = SaleSubmitter(store, on_committed=reload, events=events)
    await submitter.submit("Alice", SALE_DATE, LINES)

    assert seen == [1]
    assert store.calls[-1] == "list_sales"


@pytest.mark.asyncio
async def test_reload_failure_does_not_undo_commit(store, events):
    submitter = SaleSubmitter(store, on_committed=AsyncMock(side_effect=StoreError("offline")), events=events)

    result = await submitter.submit("Alice", SALE_DATE, LINES)

    assert result.reloaded is False
    assert submitter.state == SubmissionState.COMMITTED
    assert len(await store.list_sales()) == 1


@pytest.mark.asyncio
async def test_header_failure_leaves_nothing(store, events):
    store.fail_on.add("create_sale")
    submitter = SaleSubmitter(store, events=events)

    with pytest.raises(StoreError):
        await submitter.submit("Alice", SALE_DATE, LINES)

    assert store.write_calls == ["create_sale"]
    assert await store.list_sales() == []
    assert submitter.state == SubmissionState.FAILED


@pytest.mark.asyncio
async def test_line_failure_is_compensated(store, events, recorded):
    """A failed line write removes the header again and reports a StoreError"""
    store.fail_on.add("create_sale_lines")
    submitter = SaleSubmitter(store, events=events)

    with pytest.raises(StoreError) as exc_info:
        await submitter.submit("Alice", SALE_DATE, LINES)

    assert not isinstance(exc_info.value, PartialWriteError)
    assert store.write_calls == ["create_sale", "create_sale_lines", "delete_sale"]
    assert await store.list_sales() == []
    assert submitter.state == SubmissionState.FAILED
    assert not any(e.type == EventType.PARTIAL_WRITE_DETECTED for e in recorded)


@pytest.mark.asyncio
async def test_compensation_removes_lines_first_without_cascade(make_store, events):
    store = await make_store(supports_cascade=False)
    store.fail_on.add("create_sale_lines")
    submitter = SaleSubmitter(store, events=events)

    with pytest.raises(StoreError):
        await submitter.submit("Alice", SALE_DATE, LINES)

    assert store.write_calls == ["create_sale", "create_sale_lines", "delete_sale_lines", "delete_sale"]
    assert await store.list_sales() == []


@pytest.mark.asyncio
async def test_failed_compensation_raises_partial_write(store, events, recorded):
    """When the compensating delete also fails the condition is reported distinctly"""
    store.fail_on.update({"create_sale_lines", "delete_sale"})
    submitter = SaleSubmitter(store, events=events)

    with pytest.raises(PartialWriteError) as exc_info:
        await submitter.submit("Alice", SALE_DATE, LINES)

    error = exc_info.value
    assert not isinstance(error, StoreError)
    assert error.retryable is False
    assert isinstance(error.cause, StoreError)
    assert isinstance(error.compensation_error, StoreError)

    sales = await store.list_sales()
    assert [sale.id for sale in sales] == [error.sale_id]
    assert sales[0].lines == ()

    partial_events = [e for e in recorded if e.type == EventType.PARTIAL_WRITE_DETECTED]
    assert len(partial_events) == 1
    assert partial_events[0].data["details"]["sale_id"] == error.sale_id


@pytest.mark.asyncio
async def test_double_submit_creates_one_sale(store, events):
    """A second submit while the first is persisting is rejected"""
    store.gate = asyncio.Event()
    store.gated_operation = "create_sale"
    submitter = SaleSubmitter(store, events=events)

    first = asyncio.create_task(submitter.submit("Alice", SALE_DATE, LINES))
    await asyncio.sleep(0)
    assert submitter.state == SubmissionState.PERSISTING

    with pytest.raises(SubmissionInProgressError):
        await submitter.submit("Alice", SALE_DATE, LINES)

    store.gate.set()
    result = await first

    sales = await store.list_sales()
    assert [sale.id for sale in sales] == [result.sale_id]
    assert store.write_calls.count("create_sale") == 1


@pytest.mark.asyncio
async def test_concurrent_submits_via_gather(store, events):
    submitter = SaleSubmitter(store, events=events)

    results = await asyncio.gather(
        submitter.submit("Alice", SALE_DATE, LINES),
        submitter.submit("Alice", SALE_DATE, LINES),
        return_exceptions=True,
    )

    assert sum(isinstance(r, SubmissionInProgressError) for r in results) == 1
    assert len(await store.list_sales()) == 1


@pytest.mark.asyncio
async def test_can_submit_again_after_failure(store, events):
    """Retry is a user-initiated re-submission"""
    store.fail_on.add("create_sale")
    submitter = SaleSubmitter(store, events=events)

    with pytest.raises(StoreError):
        await submitter.submit("Alice", SALE_DATE, LINES)

    store.fail_on.clear()
    await submitter.submit("Alice", SALE_DATE, LINES)

    assert submitter.state == SubmissionState.COMMITTED
    assert len(await store.list_sales()) == 1


@pytest.mark.asyncio
async def test_transactional_store_uses_single_call(events):
    """Stores with transactions skip the two-step write"""
    store = MagicMock(spec=SalesStore)
    store.supports_transactions = True
    store.supports_cascade = False
    store.create_sale_with_lines = AsyncMock(return_value="sale-1")
    store.create_sale = AsyncMock()
    store.create_sale_lines = AsyncMock()

    submitter = SaleSubmitter(store, events=events)
    result = await submitter.submit("Alice", SALE_DATE, LINES)

    assert result.sale_id == "sale-1"
    store.create_sale_with_lines.assert_called_once_with("Alice", SALE_DATE, LINES)
    store.create_sale.assert_not_called()
    store.create_sale_lines.assert_not_called()


@pytest.mark.asyncio
async def test_unexpected_error_is_reported_as_store_error(events):
    store = MagicMock(spec=SalesStore)
    store.supports_transactions = False
    store.supports_cascade = True
    store.create_sale = AsyncMock(side_effect=ConnectionResetError("reset"))

    submitter = SaleSubmitter(store, events=events)

    with pytest.raises(StoreError):
        await submitter.submit("Alice", SALE_DATE, LINES)

    assert submitter.state == SubmissionState.FAILED


@pytest.mark.asyncio
async def test_cancelled_submit_releases_the_guard(store, events):
    """Cancelling a submit mid-write does not block later submissions"""
    store.gate = asyncio.Event()
    store.gated_operation = "create_sale"
    submitter = SaleSubmitter(store, events=events)

    task = asyncio.create_task(submitter.submit("Alice", SALE_DATE, LINES))
    await asyncio.sleep(0)
    assert submitter.state == SubmissionState.PERSISTING

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert submitter.state == SubmissionState.FAILED
    assert not submitter.is_busy

    store.gated_operation = None
    result = await submitter.submit("Alice", SALE_DATE, LINES)
    assert submitter.state == SubmissionState.COMMITTED
    assert [sale.id for sale in await store.list_sales()] == [result.sale_id]
