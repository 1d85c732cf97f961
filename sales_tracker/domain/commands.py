"""
User intents and their dispatcher.

The presentation layer never calls domain objects directly; it builds one
of the command dataclasses below and hands it to a CommandDispatcher,
which routes it to the handler the dashboard registered for that type.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Dict, Optional, Type, Union

from sales_tracker.config.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Command:
    """Base class for all intents."""


@dataclass(frozen=True)
class OpenSaleForm(Command):
    """Start a new sale entry session."""


@dataclass(frozen=True)
class CloseSaleForm(Command):
    """Abandon the current sale entry session."""


@dataclass(frozen=True)
class AddRow(Command):
    """Append an item/quantity row to the open form."""


@dataclass(frozen=True)
class RemoveRow(Command):
    row_id: int


@dataclass(frozen=True)
class SelectItem(Command):
    row_id: int
    item_id: Optional[str]


@dataclass(frozen=True)
class SetQuantity(Command):
    row_id: int
    value: Union[int, str]


@dataclass(frozen=True)
class SubmitSale(Command):
    buyer_name: str
    sale_date: Optional[date] = None


@dataclass(frozen=True)
class DeleteSale(Command):
    sale_id: str


@dataclass(frozen=True)
class ReloadSales(Command):
    """Re-read the sale history from the store."""


CommandHandler = Callable[[Any], Awaitable[Any]]


class CommandDispatcher:
    """Routes commands to the async handler registered for their type."""

    def __init__(self):
        self._handlers: Dict[Type[Command], CommandHandler] = {}

    def register(self, command_type: Type[Command], handler: CommandHandler) -> None:
        """
        Register the handler for a command type.

        Args:
            command_type: Command dataclass to handle
            handler: Coroutine function taking the command instance
        """
        if command_type in self._handlers:
            raise ValueError(f"Handler already registered for {command_type.__name__}")
        self._handlers[command_type] = handler

    def handles(self, command_type: Type[Command]) -> bool:
        return command_type in self._handlers

    async def dispatch(self, command: Command) -> Any:
        """
        Run the handler for a command and return its result.

        Raises:
            LookupError: No handler is registered for the command's type
        """
        handler = self._handlers.get(type(command))
        if handler is None:
            raise LookupError(f"No handler registered for {type(command).__name__}")

        logger.debug(f"Dispatching {command}")
        return await handler(command)
