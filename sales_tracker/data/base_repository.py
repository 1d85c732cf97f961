"""
Base repository interface for sales persistence.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List

from sales_tracker.config.logging_config import get_logger
from sales_tracker.data.models import Item, Sale, SaleLine

logger = get_logger(__name__)


class SalesStore(ABC):
    """Base class for all sales store implementations.

    This abstract class defines the persistence boundary of the dashboard:
    item reference data, sale headers and their lines. Implementations
    raise StoreError on any transport or persistence failure and
    NotFoundError when a delete targets a missing sale.

    Capability flags tell the domain layer which guarantees the backend
    provides so it can compensate for the ones it lacks.
    """

    #: Deleting a sale header also removes its lines.
    supports_cascade: bool = False

    #: ``create_sale_with_lines`` writes header and lines atomically.
    supports_transactions: bool = False

    def __init__(self, connection_config: Dict[str, Any]):
        """Initialize the store with connection configuration.

        Args:
            connection_config: Backend connection parameters
        """
        self.connection_config = connection_config

    @abstractmethod
    async def connect(self) -> bool:
        """Establish connection to the backend.

        Returns:
            bool: True if connection successful, False otherwise
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect from the backend."""
        pass

    @abstractmethod
    async def list_items(self) -> List[Item]:
        """Retrieve all items ordered by name."""
        pass

    @abstractmethod
    async def list_sales(self) -> List[Sale]:
        """Retrieve all sales, newest first, with lines resolved to item names."""
        pass

    @abstractmethod
    async def create_sale(self, buyer_name: str, sale_date: date) -> str:
        """Create a sale header record.

        Args:
            buyer_name: Name of the buyer
            sale_date: Date of the sale

        Returns:
            str: Generated sale identifier
        """
        pass

    @abstractmethod
    async def create_sale_lines(self, sale_id: str, lines: List[SaleLine]) -> None:
        """Create one line record per entry, each tagged with sale_id."""
        pass

    @abstractmethod
    async def delete_sale_lines(self, sale_id: str) -> None:
        """Delete every line belonging to sale_id (no error if there are none)."""
        pass

    @abstractmethod
    async def delete_sale(self, sale_id: str) -> None:
        """Delete a sale header.

        Raises:
            NotFoundError: If no sale with this identifier exists
        """
        pass

    async def create_sale_with_lines(
        self, buyer_name: str, sale_date: date, lines: List[SaleLine]
    ) -> str:
        """Atomically create a sale and its lines.

        Only available on stores that set ``supports_transactions``.
        """
        raise NotImplementedError(f"{self.__class__.__name__} has no atomic multi-record write")

    async def handle_db_error(self, error: Exception, operation: str) -> Dict[str, Any]:
        """Handle store errors in a consistent way.

        Args:
            error: The exception that occurred
            operation: Name of the store operation that failed

        Returns:
            Dict[str, Any]: Error information
        """
        error_info = {
            "repository": self.__class__.__name__,
            "operation": operation,
            "error_type": type(error).__name__,
            "error_message": str(error)
        }

        logger.error(f"Store error: {error_info}")
        return error_info
