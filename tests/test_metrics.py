from datetime import date, timedelta

import pytest

from conftest import inv, sale
from stockpulse import metrics
from stockpulse.settings import AppConfig


class TestClassification:
    def test_partitions_by_stored_status(self, inventory_records):
        result = metrics.classify_stock(inventory_records)
        assert [r.sku for r in result.in_stock] == ["AMZ-001", "AMZ-003"]
        assert [r.sku for r in result.low_stock] == ["AMZ-002"]
        assert [r.sku for r in result.out_of_stock] == ["AMZ-005"]

    def test_out_of_stock_never_low(self):
        records = [inv("A", 0, 1, 2), inv("B", 1, 1, 2), inv("C", 10, 1, 2)]
        result = metrics.classify_stock(records)
        low = {r.sku for r in result.low_stock}
        out = {r.sku for r in result.out_of_stock}
        assert out == {"A"}
        assert low == {"B", "C"}
        assert not low & out

    def test_uses_status_not_quantity(self):
        # A record normalized under a higher threshold keeps its stored status.
        record = inv("A", 15, 1, 2, status="Low")
        assert metrics.classify_stock([record]).low_stock == [record]


class TestInventoryTotals:
    def test_totals(self, inventory_records):
        totals = metrics.inventory_totals(inventory_records)
        assert totals.sku_count == 4
        assert totals.total_units == 658
        assert totals.total_cost == pytest.approx(9460.0)
        assert totals.total_value == pytest.approx(21993.42)
        assert totals.potential_profit == pytest.approx(21993.42 - 9460.0)
        assert totals.low_stock_count == 1
        assert totals.out_of_stock_count == 1

    def test_profit_identity_and_margin(self, inventory_records):
        totals = metrics.inventory_totals(inventory_records)
        assert totals.potential_profit == pytest.approx(totals.total_value - totals.total_cost)
        assert totals.margin_pct == pytest.approx(totals.potential_profit / totals.total_value * 100)

    def test_empty_inventory_is_all_zero(self):
        totals = metrics.inventory_totals([])
        assert totals.sku_count == 0
        assert totals.total_value == 0
        assert totals.margin_pct == 0

    def test_zero_value_margin(self):
        totals = metrics.inventory_totals([inv("A", 0, 5, 10)])
        assert totals.total_value == 0
        assert totals.margin_pct == 0

    def test_item_profit(self):
        p = metrics.item_profit(inv("A", 4, 2.5, 10))
        assert p.unit_profit == pytest.approx(7.5)
        assert p.margin_pct == pytest.approx(75.0)
        assert p.total_cost == pytest.approx(10.0)
        assert p.total_value == pytest.approx(40.0)
        assert p.profit == pytest.approx(30.0)

    def test_item_profits_keep_order(self, inventory_records):
        profits = metrics.item_profits(inventory_records)
        assert [p.sku for p in profits] == ["AMZ-001", "AMZ-002", "AMZ-003", "AMZ-005"]
        assert profits[1].profit == pytest.approx(1039.92)
        assert profits[3].profit == 0
        assert sum(p.profit for p in profits) == pytest.approx(
            metrics.inventory_totals(inventory_records).potential_profit
        )

    def test_free_item_margin_is_zero(self):
        assert metrics.item_profit(inv("A", 4, 0, 0)).margin_pct == 0


class TestRankings:
    def test_top_by_value(self, inventory_records):
        ranked = metrics.top_by_value(inventory_records)
        assert [r.sku for r in ranked] == ["AMZ-001", "AMZ-003", "AMZ-002", "AMZ-005"]
        assert ranked[0].value == pytest.approx(13498.5)

    def test_top_by_profit(self, inventory_records):
        ranked = metrics.top_by_profit(inventory_records, n=2)
        assert [r.sku for r in ranked] == ["AMZ-001", "AMZ-003"]
        assert ranked[1].value == pytest.approx(4745.0)

    def test_ties_keep_input_order(self):
        records = [inv("B", 2, 1, 5), inv("A", 1, 1, 10), inv("C", 5, 1, 2)]
        assert [r.sku for r in metrics.top_by_value(records)] == ["B", "A", "C"]

    def test_n_caps_length(self, inventory_records):
        assert len(metrics.top_by_value(inventory_records, n=1)) == 1
        assert metrics.top_by_value(inventory_records, n=0) == []
        assert metrics.top_by_value([], n=5) == []


class TestSalesWindow:
    def test_parse_window(self):
        assert metrics.parse_window(None) is None
        assert metrics.parse_window("all") is None
        assert metrics.parse_window("ALL") is None
        assert metrics.parse_window("30") == 30
        assert metrics.parse_window(7) == 7

    @pytest.mark.parametrize("bad", [0, -3, "0", "-7", "abc", "7.5", 7.5, True])
    def test_unusable_window_falls_back_to_all_time(self, bad):
        assert metrics.parse_window(bad) is None

    @pytest.mark.parametrize("bad", ["0", "abc"])
    def test_unusable_window_never_raises(self, bad, sales_records, today):
        assert metrics.sales_summary([], bad).order_count == 0
        summary = metrics.sales_summary(sales_records, bad, today)
        assert summary.window_days is None
        assert summary.order_count == 4

    def test_thirty_day_window(self, today):
        sales = [sale("A", today, 1, 10), sale("A", today - timedelta(days=45), 1, 99)]
        recent = metrics.filter_sales_window(sales, 30, today)
        assert [s.revenue for s in recent] == [10]

    def test_window_boundary_is_inclusive(self, today):
        sales = [sale("A", today - timedelta(days=30), 1, 10)]
        assert len(metrics.filter_sales_window(sales, 30, today)) == 1
        assert metrics.filter_sales_window(sales, 29, today) == []

    def test_all_time(self, sales_records, today):
        assert len(metrics.filter_sales_window(sales_records, "all", today)) == 4

    def test_summary(self, sales_records, today):
        summary = metrics.sales_summary(sales_records, 30, today)
        assert summary.window_days == 30
        assert summary.order_count == 3
        assert summary.total_units == 60
        assert summary.total_revenue == pytest.approx(1934.40)
        assert summary.average_order_value == pytest.approx(644.80)

    def test_empty_summary(self, today):
        summary = metrics.sales_summary([], 30, today)
        assert summary.order_count == 0
        assert summary.total_revenue == 0
        assert summary.average_order_value == 0


class TestSalesSeries:
    def test_one_point_per_day_ascending(self, sales_records, today):
        series = metrics.sales_series(sales_records, 30, today)
        assert [p.date for p in series] == [date(2025, 1, 14), date(2025, 1, 15)]
        assert series[1].revenue == pytest.approx(1349.85)
        assert series[1].units == 15

    def test_limit_keeps_most_recent(self, sales_records, today):
        series = metrics.sales_series(sales_records, "all", today, limit=2)
        assert [p.date for p in series] == [date(2025, 1, 14), date(2025, 1, 15)]
        assert len(metrics.sales_series(sales_records, "all", today)) == 3

    def test_empty(self, today):
        assert metrics.sales_series([], 30, today) == []


class TestInventoryView:
    def test_search(self, inventory_records):
        assert [r.sku for r in metrics.search_inventory(inventory_records, "watch")] == ["AMZ-002"]
        assert [r.sku for r in metrics.search_inventory(inventory_records, "b08x")] == ["AMZ-001"]
        assert [r.sku for r in metrics.search_inventory(inventory_records, "amz-00")] == [
            "AMZ-001",
            "AMZ-002",
            "AMZ-003",
            "AMZ-005",
        ]

    def test_blank_search_returns_all(self, inventory_records):
        assert metrics.search_inventory(inventory_records, "  ") == inventory_records

    def test_sort_numeric_and_text(self, inventory_records):
        by_qty = metrics.sort_inventory(inventory_records, "quantity", descending=True)
        assert [r.sku for r in by_qty] == ["AMZ-003", "AMZ-001", "AMZ-002", "AMZ-005"]
        by_name = metrics.sort_inventory(inventory_records, "product_name")
        assert by_name[0].product_name == "Portable Charger 20000mAh"

    def test_sort_unknown_key(self, inventory_records):
        with pytest.raises(ValueError):
            metrics.sort_inventory(inventory_records, "warehouse")


def test_dashboard(inventory_records, sales_records, today):
    result = metrics.dashboard(
        inventory_records, sales_records, AppConfig(currency="eur", date_window_days=30), today
    )
    assert result.currency == "EUR"
    assert result.totals.sku_count == 4
    assert len(result.classification.low_stock) == 1
    assert result.sales.order_count == 3
    assert len(result.series) == 2
    assert result.top_by_value[0].sku == "AMZ-001"
    assert len(result.top_by_profit) == 4
    assert [p.sku for p in result.item_profits] == [r.sku for r in inventory_records]


def test_inputs_are_not_mutated(inventory_records, sales_records, today):
    inventory_before = list(inventory_records)
    sales_before = list(sales_records)
    metrics.dashboard(inventory_records, sales_records, today=today)
    assert inventory_records == inventory_before
    assert sales_records == sales_before
