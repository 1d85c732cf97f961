"""
Sales dashboard orchestration.

This module wires the store, the cached application state, the sale
entry form and the submit/delete protocols together, and exposes them
to the presentation layer as commands.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Union

from sales_tracker.config import settings
from sales_tracker.config.logging_config import get_logger
from sales_tracker.data.base_repository import SalesStore
from sales_tracker.domain.commands import (
    AddRow,
    CloseSaleForm,
    CommandDispatcher,
    DeleteSale,
    OpenSaleForm,
    ReloadSales,
    RemoveRow,
    SelectItem,
    SetQuantity,
    SubmitSale,
)
from sales_tracker.domain.deleter import DeleteResult, SaleDeleter
from sales_tracker.domain.rows import Row, RowSetBuilder
from sales_tracker.domain.state import AppContext, AppState
from sales_tracker.domain.submitter import SaleSubmitter, SubmissionResult
from sales_tracker.events.event_interface import ErrorEvent, Event, EventEmitter, EventType, event_bus
from sales_tracker.utils.error_handling import (
    AppError,
    ErrorSeverity,
    PartialWriteError,
    StoreError,
    ValidationError,
)

logger = get_logger(__name__)

SEVERITY_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


@dataclass
class SaleForm:
    """One sale entry session: its rows and default date."""

    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    sale_date: date = field(default_factory=date.today)
    rows: RowSetBuilder = field(default_factory=RowSetBuilder)


class SalesDashboard:
    """
    Coordinator for the sales dashboard.

    This class is responsible for:
    - Loading items and sales into the shared AppContext
    - Managing the open sale form and its rows
    - Running submissions and deletions, each followed by a reload
    - Reporting failures on the event bus as user-facing errors
    """

    def __init__(
        self,
        store: SalesStore,
        top_items_limit: Optional[int] = None,
        events: Optional[EventEmitter] = None,
    ):
        """
        Initialize the dashboard.

        Args:
            store: Persistence backend
            top_items_limit: Entries in the top-items chart (defaults to settings)
            events: Event emitter (defaults to the global bus)
        """
        self.store = store
        self.events = events or event_bus

        self.context = AppContext(
            store,
            top_items_limit=top_items_limit or settings.dashboard.top_items_limit,
            events=self.events
        )
        self.submitter = SaleSubmitter(store, on_committed=self.context.reload_sales, events=self.events)
        self.deleter = SaleDeleter(store, on_deleted=self.context.reload_sales)

        self.form: Optional[SaleForm] = None
        self.connected = False

        self.dispatcher = CommandDispatcher()
        self._register_command_handlers()

    def _register_command_handlers(self) -> None:
        """Register a handler for every intent the UI can emit."""
        self.dispatcher.register(OpenSaleForm, lambda command: self.open_sale_form())
        self.dispatcher.register(CloseSaleForm, lambda command: self.close_sale_form())
        self.dispatcher.register(AddRow, lambda command: self.add_row())
        self.dispatcher.register(RemoveRow, lambda command: self.remove_row(command.row_id))
        self.dispatcher.register(SelectItem, lambda command: self.select_item(command.row_id, command.item_id))
        self.dispatcher.register(SetQuantity, lambda command: self.set_quantity(command.row_id, command.value))
        self.dispatcher.register(SubmitSale, lambda command: self.submit_sale(command.buyer_name, command.sale_date))
        self.dispatcher.register(DeleteSale, lambda command: self.delete_sale(command.sale_id))
        self.dispatcher.register(ReloadSales, lambda command: self.reload())

    @property
    def state(self) -> AppState:
        return self.context.state

    async def start(self) -> bool:
        """
        Connect to the store and load items and sales.

        Returns:
            bool: True if the dashboard is ready
        """
        logger.info("Starting sales dashboard")

        if not await self.store.connect():
            logger.error("Failed to connect to sales store")
            return False
        self.connected = True

        try:
            await self.context.reload_all()
        except StoreError as e:
            self._report(e, "Error loading sales.")
            return False

        logger.info("Sales dashboard started")
        return True

    async def stop(self) -> None:
        """Disconnect from the store."""
        if self.connected:
            await self.store.disconnect()
            self.connected = False
        logger.info("Sales dashboard stopped")

    async def reload(self) -> AppState:
        try:
            return await self.context.reload_sales()
        except StoreError as e:
            raise self._report(e, "Error loading sales.")

    # Sale entry form

    async def open_sale_form(self) -> SaleForm:
        """Start a fresh form with one empty row and today's date."""
        self.form = SaleForm()
        self.form.rows.add_row()
        self.events.emit(Event(type=EventType.SALE_FORM_OPENED, data={"form": self.form}))
        return self.form

    async def close_sale_form(self) -> None:
        """Abandon the open form. An in-flight submit for it still completes."""
        if self.form is None:
            return
        form, self.form = self.form, None
        self.events.emit(Event(type=EventType.SALE_FORM_CLOSED, data={"form_id": form.id}))

    def _require_form(self) -> SaleForm:
        if self.form is None:
            raise self._report(ValidationError("No sale is being entered."))
        return self.form

    def _rows_changed(self, form: SaleForm) -> None:
        self.events.emit(Event(
            type=EventType.ROWS_CHANGED,
            data={"form_id": form.id, "rows": form.rows.rows}
        ))

    async def add_row(self) -> Row:
        form = self._require_form()
        row = form.rows.add_row()
        self._rows_changed(form)
        return row

    async def remove_row(self, row_id: int) -> bool:
        form = self._require_form()
        removed = form.rows.remove_row(row_id)
        if removed:
            self._rows_changed(form)
        return removed

    async def select_item(self, row_id: int, item_id: Optional[str]) -> Row:
        form = self._require_form()
        if item_id and self.state.item_by_id(item_id) is None:
            raise self._report(ValidationError(f"Unknown item {item_id}."))
        try:
            row = form.rows.select_item(row_id, item_id)
        except KeyError:
            raise self._report(ValidationError(f"Row {row_id} no longer exists."))
        self._rows_changed(form)
        return row

    async def set_quantity(self, row_id: int, value: Union[int, str]) -> Row:
        form = self._require_form()
        try:
            row = form.rows.set_quantity(row_id, value)
        except ValidationError as e:
            raise self._report(e)
        except KeyError:
            raise self._report(ValidationError(f"Row {row_id} no longer exists."))
        self._rows_changed(form)
        return row

    # Submission and deletion

    async def submit_sale(self, buyer_name: str, sale_date: Optional[date] = None) -> SubmissionResult:
        """
        Submit the open form.

        Args:
            buyer_name: Buyer's name from the form
            sale_date: Sale date; defaults to the form's date

        Returns:
            SubmissionResult: The committed sale
        """
        form = self._require_form()
        try:
            result = await self.submitter.submit(
                buyer_name,
                sale_date or form.sale_date,
                form.rows.snapshot()
            )
        except PartialWriteError as e:
            raise self._report(
                e, f"Sale {e.sale_id} was saved without its items and has been flagged for manual review."
            )
        except StoreError as e:
            raise self._report(e, "Error adding sale. Please try again.")
        except AppError as e:
            raise self._report(e)

        if self.form is not form:
            # The form was closed while the write was in flight
            logger.debug(f"Discarding submit result for closed form {form.id}")
            return result

        self.form = None
        self.events.emit(Event(type=EventType.SALE_FORM_CLOSED, data={"form_id": form.id}))
        self.events.emit(Event(
            type=EventType.SALE_COMMITTED,
            data={"sale_id": result.sale_id, "line_count": result.line_count}
        ))
        if not result.reloaded:
            self._report(StoreError("Sale saved but the history could not be refreshed."),
                         "Sale saved, but the history could not be refreshed. Please reload.")
        return result

    async def delete_sale(self, sale_id: str) -> DeleteResult:
        """Delete a sale and reload the history."""
        try:
            result = await self.deleter.delete(sale_id)
        except StoreError as e:
            raise self._report(e, "Error deleting sale. Please try again.")

        self.events.emit(Event(
            type=EventType.SALE_DELETED,
            data={"sale_id": sale_id, "outcome": result.outcome}
        ))
        if not result.reloaded:
            self._report(StoreError("Sale deleted but the history could not be refreshed."),
                         "Sale deleted, but the history could not be refreshed. Please reload.")
        return result

    def _report(self, error: AppError, message: Optional[str] = None) -> AppError:
        """Log an error and publish it for the UI. Returns the error for raising."""
        log_level = SEVERITY_LOG_LEVELS.get(error.severity, logging.ERROR)
        logger.log(log_level, str(error))

        self.events.emit(ErrorEvent(
            type=EventType.ERROR,
            data={"severity": error.severity.value},
            message=message or error.message,
            retryable=error.retryable,
            error=error.to_dict()
        ))
        return error
