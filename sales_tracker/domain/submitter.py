"""
Sale submission.

A sale is stored as a header record plus one record per line. The
submitter validates the lines, writes both parts and, on stores without
multi-record transactions, deletes the header again if the line write
fails so that no sale is ever visible without lines.
"""

import asyncio
from dataclasses import dataclass
from datetime import date
from enum import Enum, auto
from typing import Awaitable, Callable, List, Optional

from sales_tracker.config.logging_config import get_logger
from sales_tracker.data.base_repository import SalesStore
from sales_tracker.data.models import SaleLine
from sales_tracker.events.event_interface import Event, EventEmitter, EventType, event_bus
from sales_tracker.utils.error_handling import (
    AppError,
    NotFoundError,
    PartialWriteError,
    StoreError,
    SubmissionInProgressError,
    ValidationError,
)

logger = get_logger(__name__)

ReloadCallback = Callable[[], Awaitable[object]]


class SubmissionState(Enum):
    """States of the submission state machine."""

    IDLE = auto()
    VALIDATING = auto()
    PERSISTING = auto()
    COMMITTED = auto()
    FAILED = auto()


BUSY_STATES = {SubmissionState.VALIDATING, SubmissionState.PERSISTING}


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a committed submission."""

    sale_id: str
    line_count: int
    reloaded: bool = True


class SaleSubmitter:
    """
    Drives the two-step persistence of a sale and its lines.

    State machine: IDLE -> VALIDATING -> PERSISTING -> COMMITTED | FAILED.
    A new submission may start from any state except VALIDATING and
    PERSISTING; requests arriving then are rejected.
    """

    def __init__(
        self,
        store: SalesStore,
        on_committed: Optional[ReloadCallback] = None,
        events: Optional[EventEmitter] = None,
    ):
        """
        Initialize the submitter.

        Args:
            store: Persistence boundary
            on_committed: Awaited after a successful commit, typically the history reload
            events: Event emitter for state notifications (defaults to the global bus)
        """
        self.store = store
        self.on_committed = on_committed
        self.events = events or event_bus
        self.state = SubmissionState.IDLE
        self.last_error: Optional[AppError] = None

    @property
    def is_busy(self) -> bool:
        return self.state in BUSY_STATES

    def _set_state(self, state: SubmissionState) -> None:
        previous, self.state = self.state, state
        logger.debug(f"Submission state {previous.name} -> {state.name}")
        self.events.emit(Event(
            type=EventType.SUBMISSION_STATE_CHANGED,
            data={"state": state, "previous": previous}
        ))

    def _fail(self, error: AppError) -> AppError:
        self.last_error = error
        self._set_state(SubmissionState.FAILED)
        return error

    async def submit(self, buyer_name: str, sale_date: date, lines: List[SaleLine]) -> SubmissionResult:
        """
        Validate and persist one sale.

        Args:
            buyer_name: Buyer entered on the form
            sale_date: Date entered on the form
            lines: Snapshot of the form's rows

        Returns:
            SubmissionResult: Identifier of the committed sale

        Raises:
            SubmissionInProgressError: Another submission is still running
            ValidationError: Nothing to submit or missing buyer; no store call made
            StoreError: A write failed and nothing remains stored
            PartialWriteError: The header remains stored without lines
        """
        # Checked and set before the first suspension point
        if self.is_busy:
            logger.warning(f"Rejected submit while {self.state.name}")
            raise SubmissionInProgressError("A sale is already being submitted")

        self.last_error = None
        self._set_state(SubmissionState.VALIDATING)

        lines = list(lines)
        buyer_name = (buyer_name or "").strip()
        if not lines:
            raise self._fail(ValidationError("Please add at least one item to the sale."))
        if not buyer_name:
            raise self._fail(ValidationError("Please enter the buyer's name."))

        self._set_state(SubmissionState.PERSISTING)
        try:
            if self.store.supports_transactions:
                sale_id = await self.store.create_sale_with_lines(buyer_name, sale_date, lines)
            else:
                sale_id = await self._persist_with_compensation(buyer_name, sale_date, lines)
        except StoreError as e:
            logger.error(f"Error adding sale: {e}")
            raise self._fail(e)
        except PartialWriteError as e:
            logger.critical(f"Sale {e.sale_id} left without lines, needs manual reconciliation: {e}")
            self.events.emit(Event(type=EventType.PARTIAL_WRITE_DETECTED, data=e.to_dict()))
            raise self._fail(e)
        except Exception as e:
            logger.exception("Unexpected error adding sale")
            raise self._fail(StoreError("Error adding sale", cause=e)) from e
        except asyncio.CancelledError:
            # No compensation ran; a header may remain without its lines
            logger.warning("Sale submission cancelled while persisting")
            self._fail(StoreError("Sale submission was cancelled"))
            raise

        self._set_state(SubmissionState.COMMITTED)
        logger.info(f"Committed sale {sale_id} with {len(lines)} line(s)")

        reloaded = True
        if self.on_committed is not None:
            try:
                await self.on_committed()
            except StoreError as e:
                reloaded = False
                logger.warning(f"Sale {sale_id} committed but history reload failed: {e}")

        return SubmissionResult(sale_id=sale_id, line_count=len(lines), reloaded=reloaded)

    async def _persist_with_compensation(
        self, buyer_name: str, sale_date: date, lines: List[SaleLine]
    ) -> str:
        sale_id = await self.store.create_sale(buyer_name, sale_date)

        try:
            await self.store.create_sale_lines(sale_id, lines)
        except Exception as line_error:
            logger.error(f"Error adding items to sale {sale_id}, removing header: {line_error}")
            try:
                if not self.store.supports_cascade:
                    await self.store.delete_sale_lines(sale_id)
                await self.store.delete_sale(sale_id)
            except NotFoundError:
                logger.info(f"Sale {sale_id} already absent, nothing to compensate")
            except Exception as compensation_error:
                raise PartialWriteError(
                    f"Sale {sale_id} was saved without its items and could not be removed",
                    sale_id=sale_id,
                    cause=line_error,
                    compensation_error=compensation_error
                ) from line_error
            raise

        return sale_id
