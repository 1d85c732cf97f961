"""
Command-line interface for the Sales Tracker Dashboard.

This module provides a terminal front end: it renders the sale history,
the top-items chart and the sale entry form, and turns typed commands
into dashboard intents. It never calls domain objects directly.
"""

import asyncio
import os
import sys
from datetime import date
from typing import Callable, List, Optional, Tuple

from sales_tracker.config.logging_config import get_logger
from sales_tracker.domain.commands import (
    AddRow,
    CloseSaleForm,
    Command,
    CommandDispatcher,
    DeleteSale,
    OpenSaleForm,
    ReloadSales,
    RemoveRow,
    SelectItem,
    SetQuantity,
    SubmitSale,
)
from sales_tracker.domain.rows import Row
from sales_tracker.domain.state import AppContext
from sales_tracker.domain.submitter import SubmissionState
from sales_tracker.events.event_interface import Event, EventEmitter, EventType, event_bus
from sales_tracker.presentation.chart import render_text_chart
from sales_tracker.presentation.formatting import EMPTY_HISTORY_MESSAGE, format_date, history_rows
from sales_tracker.utils.error_handling import AppError

logger = get_logger(__name__)


class CliInterface:
    """
    Command-line interface for the Sales Tracker Dashboard.

    This class provides a terminal-based interface including command
    processing, history and chart display, and sale form editing.
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        context: AppContext,
        events: Optional[EventEmitter] = None,
        color_output: bool = True,
        input_func: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ):
        """
        Initialize the CLI interface.

        Args:
            dispatcher: Where intents are sent
            context: Read-only view of the application state
            events: Event emitter to subscribe to (defaults to the global bus)
            color_output: Whether to use colored output
            input_func: Line reader, replaceable for tests
            output: Line writer, replaceable for tests
        """
        self.dispatcher = dispatcher
        self.context = context
        self.events = events or event_bus
        self.color_output = color_output and self._supports_color()
        self.input_func = input_func
        self.output = output

        # Display state, updated from events
        self.form_rows: Tuple[Row, ...] = ()
        self.form_open = False
        self.form_date: Optional[date] = None
        self.submission_state = SubmissionState.IDLE

        # Terminal colors
        if self.color_output:
            self.RESET = "\033[0m"
            self.BOLD = "\033[1m"
            self.RED = "\033[31m"
            self.GREEN = "\033[32m"
            self.YELLOW = "\033[33m"
            self.CYAN = "\033[36m"
            self.GRAY = "\033[90m"
        else:
            self.RESET = ""
            self.BOLD = ""
            self.RED = ""
            self.GREEN = ""
            self.YELLOW = ""
            self.CYAN = ""
            self.GRAY = ""

        self._register_event_handlers()

    def _register_event_handlers(self) -> None:
        """Register event handlers for dashboard events."""
        self.events.on(EventType.SALE_FORM_OPENED, self._handle_form_opened)
        self.events.on(EventType.SALE_FORM_CLOSED, self._handle_form_closed)
        self.events.on(EventType.ROWS_CHANGED, self._handle_rows_changed)
        self.events.on(EventType.SUBMISSION_STATE_CHANGED, self._handle_submission_state)
        self.events.on(EventType.SALE_COMMITTED, self._handle_sale_committed)
        self.events.on(EventType.SALE_DELETED, self._handle_sale_deleted)
        self.events.on(EventType.PARTIAL_WRITE_DETECTED, self._handle_partial_write)
        self.events.on(EventType.ERROR, self._handle_error)

    def unregister_event_handlers(self) -> None:
        """Detach from the event bus."""
        self.events.off(EventType.SALE_FORM_OPENED, self._handle_form_opened)
        self.events.off(EventType.SALE_FORM_CLOSED, self._handle_form_closed)
        self.events.off(EventType.ROWS_CHANGED, self._handle_rows_changed)
        self.events.off(EventType.SUBMISSION_STATE_CHANGED, self._handle_submission_state)
        self.events.off(EventType.SALE_COMMITTED, self._handle_sale_committed)
        self.events.off(EventType.SALE_DELETED, self._handle_sale_deleted)
        self.events.off(EventType.PARTIAL_WRITE_DETECTED, self._handle_partial_write)
        self.events.off(EventType.ERROR, self._handle_error)

    # Event handlers

    def _handle_form_opened(self, event: Event) -> None:
        form = event.data["form"]
        self.form_open = True
        self.form_date = form.sale_date
        self.form_rows = form.rows.rows
        self.output(f"{self.BOLD}New sale{self.RESET} ({format_date(self.form_date)})")
        self.display_rows()

    def _handle_form_closed(self, event: Event) -> None:
        self.form_open = False
        self.form_rows = ()

    def _handle_rows_changed(self, event: Event) -> None:
        self.form_rows = event.data.get("rows", ())
        self.display_rows()

    def _handle_submission_state(self, event: Event) -> None:
        self.submission_state = event.data.get("state", SubmissionState.IDLE)
        if self.submission_state == SubmissionState.PERSISTING:
            self.output(f"{self.GRAY}Saving...{self.RESET}")

    def _handle_sale_committed(self, event: Event) -> None:
        self.output(f"{self.GREEN}Sale saved with {event.data.get('line_count', 0)} item(s).{self.RESET}")

    def _handle_sale_deleted(self, event: Event) -> None:
        self.output(f"{self.GREEN}Sale deleted.{self.RESET}")

    def _handle_partial_write(self, event: Event) -> None:
        sale_id = event.data.get("details", {}).get("sale_id", "unknown")
        self.output(f"{self.BOLD}{self.RED}Data integrity problem: sale {sale_id} has no items "
                    f"and needs manual reconciliation.{self.RESET}")

    def _handle_error(self, event: Event) -> None:
        message = getattr(event, "message", "") or "Unknown error"
        retry_hint = " (you can retry)" if getattr(event, "retryable", False) else ""
        self.output(f"{self.BOLD}{self.RED}Error: {self.RESET}{message}{retry_hint}")

    # Rendering

    def display_rows(self) -> None:
        """Display the rows of the open sale form."""
        items = {item.id: item.name for item in self.context.state.items}
        if not self.form_rows:
            self.output(f"{self.GRAY}  (no rows, use /row to add one){self.RESET}")
            return
        for row in self.form_rows:
            name = items.get(row.item_id, row.item_id) if row.item_id else f"{self.GRAY}Select an item...{self.RESET}"
            self.output(f"  [{row.row_id}] {name} x {row.quantity}")

    def display_history(self) -> None:
        """Display the sale history, newest first."""
        rows = history_rows(self.context.state.sales)
        if not rows:
            self.output(f"{self.GRAY}{EMPTY_HISTORY_MESSAGE}{self.RESET}")
            return
        for number, row in enumerate(rows, start=1):
            label = f"#{number}"
            self.output(f"{label:>4} {row['date']:<13} {self.BOLD}{row['buyer']}{self.RESET}  {row['items']} "
                        f"{self.GRAY}[{row['total']} total]{self.RESET}")

    def display_chart(self) -> None:
        """Display the top-selling items."""
        self.output(f"{self.BOLD}Top selling items{self.RESET}")
        for line in render_text_chart(self.context.state.top_items):
            self.output(f"  {line}")

    def display_items(self) -> None:
        """Display the selectable items."""
        for number, item in enumerate(self.context.state.items, start=1):
            label = f"#{number}"
            self.output(f"{label:>4} {item.name}  {self.GRAY}{item.id}{self.RESET}")

    def display_welcome_message(self) -> None:
        """Display a welcome message when the application starts."""
        self.output(f"\n{self.BOLD}{self.CYAN}=== Sales Tracker Dashboard ==={self.RESET}")
        self.output(f"{self.GRAY}Type /help for a list of commands{self.RESET}\n")

    def display_help(self) -> None:
        """Display help information."""
        self.output(f"\n{self.BOLD}Available Commands:{self.RESET}")
        self.output(f"  {self.BOLD}/list{self.RESET} - Show the sale history")
        self.output(f"  {self.BOLD}/chart{self.RESET} - Show the top selling items")
        self.output(f"  {self.BOLD}/items{self.RESET} - Show the items that can be sold")
        self.output(f"  {self.BOLD}/new{self.RESET} - Start entering a sale")
        self.output(f"  {self.BOLD}/row{self.RESET} - Add an item row to the sale")
        self.output(f"  {self.BOLD}/item <row> <#item | item id>{self.RESET} - Choose the item for a row")
        self.output(f"  {self.BOLD}/qty <row> <quantity>{self.RESET} - Set the quantity for a row")
        self.output(f"  {self.BOLD}/rows{self.RESET} - Show the rows of the sale being entered")
        self.output(f"  {self.BOLD}/remove <row>{self.RESET} - Remove a row")
        self.output(f"  {self.BOLD}/submit [YYYY-MM-DD] <buyer name>{self.RESET} - Save the sale")
        self.output(f"  {self.BOLD}/cancel{self.RESET} - Discard the sale being entered")
        self.output(f"  {self.BOLD}/delete <#sale | sale id>{self.RESET} - Delete a sale from the history")
        self.output(f"  {self.BOLD}/reload{self.RESET} - Reload the sale history")
        self.output(f"  {self.BOLD}/quit{self.RESET} - Exit the application")
        self.output("")

    # Command processing

    def parse_command(self, text: str) -> Tuple[bool, Optional[str], List[str]]:
        """
        Parse user input for commands.

        Args:
            text: User input text

        Returns:
            Tuple of (is_command, command, args)
        """
        text = text.strip()

        if not text.startswith('/'):
            return False, None, []

        parts = text.split()
        return True, parts[0][1:].lower(), parts[1:]

    def _resolve_item_id(self, ref: str) -> Optional[str]:
        """Accept ``#n`` for the n-th item of /items, otherwise an item id."""
        items = self.context.state.items
        if ref.startswith("#"):
            position = ref[1:]
            if position.isdigit() and 1 <= int(position) <= len(items):
                return items[int(position) - 1].id
            return None
        return ref

    def _resolve_sale_id(self, ref: str) -> Optional[str]:
        """Accept ``#n`` for the n-th row of /list, otherwise a sale id."""
        state = self.context.state
        if ref.startswith("#"):
            position = ref[1:]
            if position.isdigit() and 1 <= int(position) <= len(state.sales):
                return state.sales[int(position) - 1].id
            return None
        sale = state.sale_by_id(ref)
        return sale.id if sale else None

    def _build_submit(self, args: List[str]) -> SubmitSale:
        sale_date = None
        if args:
            try:
                sale_date = date.fromisoformat(args[0])
                args = args[1:]
            except ValueError:
                pass
        return SubmitSale(buyer_name=" ".join(args), sale_date=sale_date)

    async def _confirm(self, question: str) -> bool:
        answer = await asyncio.to_thread(self.input_func, f"{question} [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    async def _send(self, command: Command) -> None:
        try:
            await self.dispatcher.dispatch(command)
        except AppError as e:
            # Already shown through the ERROR event
            logger.debug(f"{type(command).__name__} failed: {e}")

    async def process_command(self, command: str, args: List[str]) -> bool:
        """
        Process a command from the user.

        Args:
            command: Command name (without the leading /)
            args: Command arguments

        Returns:
            True if application should continue, False if it should exit
        """
        if command in ["quit", "exit", "bye"]:
            self.output("Exiting application...")
            return False

        if command == "help":
            self.display_help()
        elif command == "list":
            self.display_history()
        elif command == "chart":
            self.display_chart()
        elif command == "items":
            self.display_items()
        elif command == "new":
            await self._send(OpenSaleForm())
        elif command == "cancel":
            await self._send(CloseSaleForm())
        elif command == "row":
            await self._send(AddRow())
        elif command == "rows":
            self.display_rows()
        elif command == "reload":
            await self._send(ReloadSales())
        elif command == "submit":
            await self._send(self._build_submit(args))
        elif command in ("remove", "item", "qty", "delete"):
            await self._process_argument_command(command, args)
        else:
            self.output(f"{self.YELLOW}Unknown command: /{command}{self.RESET}")
            self.output(f"Type {self.BOLD}/help{self.RESET} for a list of commands")

        return True

    async def _process_argument_command(self, command: str, args: List[str]) -> None:
        usage = {
            "remove": "/remove <row>",
            "item": "/item <row> <#item | item id>",
            "qty": "/qty <row> <quantity>",
            "delete": "/delete <#sale | sale id>",
        }
        needed = 1 if command in ("remove", "delete") else 2
        if len(args) < needed or (command != "delete" and not args[0].isdigit()):
            self.output(f"{self.YELLOW}Usage: {usage[command]}{self.RESET}")
            return

        if command == "remove":
            await self._send(RemoveRow(row_id=int(args[0])))
        elif command == "item":
            item_id = self._resolve_item_id(args[1])
            if item_id is None:
                self.output(f"{self.YELLOW}No item {args[1]}, see /items{self.RESET}")
                return
            await self._send(SelectItem(row_id=int(args[0]), item_id=item_id))
        elif command == "qty":
            await self._send(SetQuantity(row_id=int(args[0]), value=args[1]))
        elif command == "delete":
            sale_id = self._resolve_sale_id(args[0])
            if sale_id is None:
                self.output(f"{self.YELLOW}No sale {args[0]}, see /list{self.RESET}")
                return
            if await self._confirm("Are you sure you want to delete this sale?"):
                await self._send(DeleteSale(sale_id=sale_id))

    async def handle_line(self, line: str) -> bool:
        """
        Handle one line of user input.

        Returns:
            True if application should continue, False if it should exit
        """
        line = line.strip()
        if not line:
            return True

        is_command, command, args = self.parse_command(line)
        if not is_command:
            self.output(f"Type {self.BOLD}/help{self.RESET} for a list of commands")
            return True

        return await self.process_command(command, args)

    async def input_loop(self) -> None:
        """Run the input loop until the user quits or input ends."""
        self.display_welcome_message()
        self.display_history()
        self.display_chart()

        while True:
            try:
                line = await asyncio.to_thread(self.input_func, "> ")
            except EOFError:
                break

            if not await self.handle_line(line):
                break

    def _supports_color(self) -> bool:
        """
        Check if the terminal supports colored output.

        Returns:
            True if color is supported
        """
        # Check for NO_COLOR environment variable (https://no-color.org/)
        if os.environ.get("NO_COLOR"):
            return False

        plat = sys.platform
        supported_platform = plat != 'Pocket PC' and (plat != 'win32' or 'ANSICON' in os.environ)

        is_a_tty = hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()

        return supported_platform and is_a_tty
