# tests/test_presentation.py
import json
from datetime import date

from sales_tracker.data.models import RankedTotal, Sale, SaleLine
from sales_tracker.presentation.chart import (
    DATASET_LABEL,
    NO_DATA_MESSAGE,
    build_chart_config,
    render_text_chart,
)
from sales_tracker.presentation.formatting import format_date, format_sale_items, history_rows


class TestChart:
    """Tests for the top-items chart"""

    def test_empty_ranking_shows_no_data_message(self):
        config = build_chart_config([])

        assert config["data"]["labels"] == []
        assert config["data"]["datasets"][0]["data"] == []
        assert config["options"]["plugins"]["title"] == {"display": True, "text": NO_DATA_MESSAGE}

    def test_ranking_becomes_bar_chart(self):
        ranked = [RankedTotal("Gadget", 4), RankedTotal("Widget", 3)]

        config = build_chart_config(ranked)

        assert config["type"] == "bar"
        assert config["data"]["labels"] == ["Gadget", "Widget"]
        assert config["data"]["datasets"][0]["data"] == [4, 3]
        assert config["data"]["datasets"][0]["label"] == DATASET_LABEL
        assert config["options"]["plugins"]["title"]["display"] is False
        assert config["options"]["scales"]["y"]["beginAtZero"] is True

    def test_config_is_json_serializable(self):
        json.dumps(build_chart_config([RankedTotal("Widget", 1)]))

    def test_text_chart_scales_bars(self):
        lines = render_text_chart([RankedTotal("Gadget", 4), RankedTotal("Pin", 1)], width=8)

        assert lines == ["Gadget | ######## 4", "Pin    | ## 1"]

    def test_text_chart_without_data(self):
        assert render_text_chart([]) == [NO_DATA_MESSAGE]


class TestFormatting:
    """Tests for history formatting"""

    def test_format_date_has_no_leading_zero(self):
        assert format_date(date(2026, 1, 5)) == "Jan 5, 2026"
        assert format_date(date(2025, 12, 31)) == "Dec 31, 2025"

    def test_sale_items_are_listed_with_quantities(self):
        sale = Sale(
            id="s1",
            buyer_name="Alice",
            sale_date=date(2026, 1, 5),
            lines=(SaleLine("w", 2, "Widget"), SaleLine("g", 4, "Gadget")),
        )

        assert format_sale_items(sale) == "Widget (2), Gadget (4)"
        assert history_rows([sale]) == [
            {"id": "s1", "date": "Jan 5, 2026", "buyer": "Alice", "items": "Widget (2), Gadget (4)", "total": "6"}
        ]

    def test_history_keeps_given_order(self):
        sales = [
            Sale(id="new", buyer_name="B", sale_date=date(2026, 2, 1)),
            Sale(id="old", buyer_name="A", sale_date=date(2026, 1, 1)),
        ]
        assert [row["id"] for row in history_rows(sales)] == ["new", "old"]
