"""
Sale deletion.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from sales_tracker.config.logging_config import get_logger
from sales_tracker.data.base_repository import SalesStore
from sales_tracker.utils.error_handling import NotFoundError, StoreError

logger = get_logger(__name__)


class DeleteOutcome(Enum):
    """Result of a delete request."""

    DELETED = "deleted"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class DeleteResult:
    """Outcome of a delete request and of the reload that follows it."""

    sale_id: str
    outcome: DeleteOutcome
    reloaded: bool = True


class SaleDeleter:
    """
    Removes a sale header and all of its lines as one logical unit.

    On stores without cascading deletes the lines go first, so a failure
    part way through can leave a header with fewer lines but never lines
    without a header.
    """

    def __init__(
        self,
        store: SalesStore,
        on_deleted: Optional[Callable[[], Awaitable[object]]] = None,
    ):
        self.store = store
        self.on_deleted = on_deleted

    async def delete(self, sale_id: str) -> DeleteResult:
        """
        Delete a sale and its lines.

        Deleting an identifier that no longer exists is reported as
        NOT_FOUND rather than raised. A failed reload after the delete
        is reported through ``reloaded`` and does not undo the delete.

        Raises:
            StoreError: If the store delete fails; the reload is skipped
        """
        try:
            if not self.store.supports_cascade:
                await self.store.delete_sale_lines(sale_id)
            await self.store.delete_sale(sale_id)
            outcome = DeleteOutcome.DELETED
            logger.info(f"Deleted sale {sale_id}")
        except NotFoundError:
            outcome = DeleteOutcome.NOT_FOUND
            logger.info(f"Sale {sale_id} was already deleted")

        reloaded = True
        if self.on_deleted is not None:
            try:
                await self.on_deleted()
            except StoreError as e:
                reloaded = False
                logger.warning(f"Sale {sale_id} deleted but history reload failed: {e}")

        return DeleteResult(sale_id=sale_id, outcome=outcome, reloaded=reloaded)
