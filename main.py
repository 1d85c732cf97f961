"""
Entry point for the Sales Tracker Dashboard.
"""

import argparse
import asyncio
import sys
from typing import Optional

from sales_tracker.config import settings
from sales_tracker.config.logging_config import get_logger, setup_logging
from sales_tracker.data.base_repository import SalesStore
from sales_tracker.data.memory_repository import InMemorySalesStore
from sales_tracker.domain.dashboard import SalesDashboard
from sales_tracker.presentation.cli import CliInterface
from sales_tracker.services.supabase_store import SupabaseSalesStore

logger = get_logger("sales_tracker.main")

DEMO_ITEMS = ["Coffee Beans", "Espresso Cups", "Filter Papers", "French Press", "Grinder", "Kettle", "Milk Frother"]


def build_store(backend: str, seed_demo: bool = False) -> SalesStore:
    """
    Create the configured sales store.

    Args:
        backend: ``memory`` or ``supabase``
        seed_demo: Seed the memory store with demo items

    Returns:
        SalesStore: Unconnected store
    """
    if backend == "supabase":
        return SupabaseSalesStore()

    store = InMemorySalesStore()
    if seed_demo:
        for name in DEMO_ITEMS:
            store.add_item(name)
    return store


async def run_dashboard(backend: str, seed_demo: bool = False) -> int:
    """
    Run the interactive dashboard until the user quits.

    Returns:
        int: Process exit code
    """
    dashboard = SalesDashboard(build_store(backend, seed_demo))
    cli = CliInterface(dashboard.dispatcher, dashboard.context)

    try:
        if not await dashboard.start():
            logger.error("Dashboard failed to start")
            return 1
        await cli.input_loop()
        return 0
    finally:
        cli.unregister_event_handlers()
        await dashboard.stop()


def main(argv: Optional[list] = None) -> int:
    """Entry point for running the dashboard from the command line."""
    parser = argparse.ArgumentParser(description=settings.app_name)

    parser.add_argument(
        "--store",
        choices=["memory", "supabase"],
        default=settings.dashboard.store_backend,
        help="Persistence backend"
    )

    parser.add_argument(
        "--seed-demo",
        action="store_true",
        help="Seed the in-memory store with demo items"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (defaults to LOG_LEVEL)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode"
    )

    args = parser.parse_args(argv)

    if args.debug:
        settings.debug_mode = True

    setup_logging(
        level=args.log_level or settings.effective_log_level,
        log_dir=settings.logs_dir,
        log_to_file=settings.logging.file_enabled,
        log_to_console=settings.logging.console_enabled,
        console_format=settings.logging.format
    )

    try:
        return asyncio.run(run_dashboard(args.store, seed_demo=args.seed_demo))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
