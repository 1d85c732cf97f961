"""
Top-selling items chart.

``build_chart_config`` produces a Chart.js bar chart configuration for a
web front end; ``render_text_chart`` draws the same data in a terminal.
Both show an explicit message when there is nothing to chart.
"""

from typing import Any, Dict, List, Sequence

from sales_tracker.data.models import RankedTotal

NO_DATA_MESSAGE = "No sales data available"
DATASET_LABEL = "Items Sold"

BAR_COLOR = "#2563eb"
BAR_BORDER_COLOR = "#1d4ed8"
GRID_COLOR = "#e2e8f0"


def build_chart_config(ranked: Sequence[RankedTotal]) -> Dict[str, Any]:
    """
    Build a Chart.js configuration for the ranked totals.

    Args:
        ranked: Output of the top-items aggregation

    Returns:
        Dict[str, Any]: JSON-serializable chart configuration
    """
    labels = [entry.item_name for entry in ranked]
    data = [entry.total_quantity for entry in ranked]

    return {
        "type": "bar",
        "data": {
            "labels": labels,
            "datasets": [{
                "label": DATASET_LABEL,
                "data": data,
                "backgroundColor": BAR_COLOR,
                "borderColor": BAR_BORDER_COLOR,
                "borderWidth": 1,
                "borderRadius": 6,
            }],
        },
        "options": {
            "responsive": True,
            "maintainAspectRatio": False,
            "plugins": {
                "legend": {"display": False},
                "title": {
                    "display": not labels,
                    "text": NO_DATA_MESSAGE,
                },
            },
            "scales": {
                "y": {
                    "beginAtZero": True,
                    "ticks": {"stepSize": 1},
                    "grid": {"color": GRID_COLOR},
                },
                "x": {"grid": {"display": False}},
            },
        },
    }


def render_text_chart(ranked: Sequence[RankedTotal], width: int = 40) -> List[str]:
    """
    Render ranked totals as horizontal text bars.

    Args:
        ranked: Output of the top-items aggregation
        width: Length of the longest bar in characters

    Returns:
        List[str]: One line per item, or the no-data message
    """
    if not ranked:
        return [NO_DATA_MESSAGE]

    peak = max(entry.total_quantity for entry in ranked)
    name_width = max(len(entry.item_name) for entry in ranked)

    lines = []
    for entry in ranked:
        bar_length = max(1, round(entry.total_quantity / peak * width)) if peak else 0
        lines.append(f"{entry.item_name.ljust(name_width)} | {'#' * bar_length} {entry.total_quantity}")
    return lines
