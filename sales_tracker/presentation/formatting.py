"""
Formatting helpers for the sale history list.
"""

from datetime import date
from typing import Dict, List, Sequence

from sales_tracker.data.models import Sale

EMPTY_HISTORY_MESSAGE = "No sales recorded yet"


def format_date(value: date) -> str:
    """Format a date like ``Jan 5, 2026``."""
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def format_sale_items(sale: Sale) -> str:
    """Format a sale's lines like ``Widget (2), Gadget (4)``."""
    return ", ".join(f"{line.label} ({line.quantity})" for line in sale.lines)


def history_rows(sales: Sequence[Sale]) -> List[Dict[str, str]]:
    """Display rows for the history table, in the order given."""
    return [
        {
            "id": sale.id,
            "date": format_date(sale.sale_date),
            "buyer": sale.buyer_name,
            "items": format_sale_items(sale),
            "total": str(sale.total_quantity),
        }
        for sale in sales
    ]
