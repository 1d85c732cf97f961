"""
Top-selling items aggregation.

Reduces the sale history to per-item quantity totals and ranks them for
the dashboard chart.
"""

from typing import Dict, Iterable, List

from sales_tracker.data.models import RankedTotal, Sale

TOP_ITEMS_LIMIT = 5


def item_totals(sales: Iterable[Sale]) -> Dict[str, int]:
    """
    Sum quantities per item name across all sales.

    Keys are in the order each item name was first seen while scanning
    sales and their lines in input order.
    """
    totals: Dict[str, int] = {}
    for sale in sales:
        for line in sale.lines:
            totals[line.label] = totals.get(line.label, 0) + line.quantity
    return totals


def aggregate_top_items(sales: Iterable[Sale], limit: int = TOP_ITEMS_LIMIT) -> List[RankedTotal]:
    """
    Rank items by total quantity sold.

    Items with equal totals keep their first-seen order (``sorted`` is
    stable). The input is not modified.

    Args:
        sales: Sale history with lines resolved to item names
        limit: Maximum number of entries returned

    Returns:
        List[RankedTotal]: Highest totals first; empty when there are no sales
    """
    totals = item_totals(sales)
    ranked = sorted(totals.items(), key=lambda entry: entry[1], reverse=True)
    return [RankedTotal(item_name=name, total_quantity=total) for name, total in ranked[:limit]]
