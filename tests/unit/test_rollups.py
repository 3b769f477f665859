"""
Unit Tests - Rollup Aggregation
"""
from datetime import date

import polars as pl
import pytest

from inventory_metrics.analytics.rollups import RollupAggregator, dense_rank, fill_rate
from inventory_metrics.config import MetricsSettings

DATA_DATE = date(2024, 6, 30)


def snapshot_frame():
    return pl.DataFrame({
        "store_id": ["S001", "S001", "S002", "S002"],
        "region": ["North"] * 4,
        "product_id": ["P0001", "P0002", "P0001", "P0002"],
        "category": ["Toys", "Groceries", "Toys", "Groceries"],
        "inventory_level": [5, 100, 60, 300],
        "price": [10.0, 2.0, 10.0, 2.0],
        "discount_pct": [0.0, 50.0, 0.0, 0.0],
    })


def turnover_frame(ratios, movements):
    n = len(ratios)
    return pl.DataFrame({
        "store_id": (["S001", "S002"] * n)[:n],
        "region": ["North"] * n,
        "product_id": [f"P{i:04d}" for i in range(1, n + 1)],
        "category": (["Toys", "Groceries"] * n)[:n],
        "inventory_turnover_ratio": ratios,
        "movement_type": movements,
    })


def stock_frame(statuses):
    n = len(statuses)
    return pl.DataFrame({
        "store_id": (["S001", "S002"] * n)[:n],
        "region": ["North"] * n,
        "category": (["Toys", "Groceries"] * n)[:n],
        "stock_status": statuses,
    })


def abc_frame():
    return pl.DataFrame({
        "category": ["Toys", "Groceries", "Toys"],
        "abc_classification": ["A", "B", "C"],
        "total_revenue": [80.0, 15.0, 5.0],
    })


def kpi_window():
    return pl.DataFrame({"units_sold": [3, 4, 5]})


class TestHelpers:
    """Tests for rollup expressions"""

    def test_dense_rank_shares_ties_without_gaps(self):
        df = pl.DataFrame({"value": [5.0, 5.0, 3.0, 1.0]})

        ranks = df.select(dense_rank("value"))

        assert ranks.to_series().to_list() == [1, 1, 2, 3]

    def test_fill_rate(self):
        df = pl.DataFrame({"critical": [1, 0], "total": [4, 0]})

        rates = df.select(fill_rate("critical", "total"))

        assert rates.to_series().to_list() == pytest.approx([75.0, 0.0])


class TestExecutiveSummary:
    """Tests for the organization KPI summary"""

    def test_totals(self):
        summary = RollupAggregator(MetricsSettings()).executive_summary(
            snapshot_frame(),
            kpi_window(),
            turnover_frame([5.0, 5.0], ["FAST_MOVER", "MEDIUM_MOVER"]),
            stock_frame(["CRITICAL", "LOW", "NORMAL", "HIGH"]),
            abc_frame(),
            data_date=DATA_DATE,
        ).row(0, named=True)

        assert summary["total_store_locations"] == 2
        assert summary["total_products"] == 2
        assert summary["total_inventory_units"] == 465
        # 5*10 + 100*1 + 60*10 + 300*2
        assert summary["total_inventory_value"] == pytest.approx(1350.0)
        assert summary["weekly_units_sold"] == 12
        assert summary["fast_moving_products"] == 1
        assert summary["medium_moving_products"] == 1
        assert summary["critical_stock_items"] == 1
        assert summary["low_stock_items"] == 1
        assert summary["total_alerts"] == 2
        assert summary["fill_rate_pct"] == pytest.approx(75.0)
        assert summary["class_a_products"] == 1
        assert summary["class_a_revenue_pct"] == pytest.approx(80.0)
        assert summary["data_updated_date"] == DATA_DATE

    @pytest.mark.parametrize("ratio,statuses,expected", [
        (5.0, ["NORMAL"] * 20, "GOOD"),
        (5.0, ["CRITICAL"] + ["NORMAL"] * 19, "AVERAGE"),
        (3.0, ["CRITICAL"] + ["NORMAL"] * 19, "AVERAGE"),
        (3.0, ["CRITICAL"] * 2 + ["NORMAL"] * 18, "NEEDS_IMPROVEMENT"),
        (1.0, ["NORMAL"] * 20, "NEEDS_IMPROVEMENT"),
    ])
    def test_overall_status(self, ratio, statuses, expected):
        summary = RollupAggregator(MetricsSettings()).executive_summary(
            snapshot_frame(),
            kpi_window(),
            turnover_frame([ratio], ["FAST_MOVER"]),
            stock_frame(statuses),
            abc_frame(),
        )

        assert summary["overall_status"][0] == expected


class TestStoreAndCategoryPerformance:
    """Tests for store and category rollups"""

    def sales_window(self):
        return pl.DataFrame({
            "date": [date(2024, 6, 29), date(2024, 6, 30)] * 2,
            "store_id": ["S001", "S001", "S002", "S002"],
            "region": ["North"] * 4,
            "product_id": ["P0001", "P0001", "P0002", "P0002"],
            "category": ["Toys", "Toys", "Groceries", "Groceries"],
            "units_sold": [10, 20, 4, 6],
            "price": [10.0, 10.0, 2.0, 2.0],
            "discount_pct": [0.0, 0.0, 0.0, 0.0],
        })

    def test_store_performance_ranks(self):
        turnover = turnover_frame([6.0, 2.0, 6.0, 2.0], ["FAST_MOVER", "SLOW_MOVER", "FAST_MOVER", "NON_MOVER"])
        stores = RollupAggregator(MetricsSettings()).store_performance(
            snapshot_frame(),
            self.sales_window(),
            turnover,
            stock_frame(["CRITICAL", "NORMAL", "NORMAL", "NORMAL"]),
            data_date=DATA_DATE,
        )

        assert stores["store_id"].to_list() == ["S001", "S002"]
        s1 = stores.row(0, named=True)
        assert s1["inventory_turnover_ratio"] == pytest.approx(6.0)
        assert s1["turnover_rank"] == 1
        assert s1["fast_movers"] == 2
        assert s1["avg_daily_sales"] == pytest.approx(15.0)
        assert s1["avg_daily_revenue"] == pytest.approx(150.0)
        assert s1["performance_rating"] == "EXCELLENT"
        s2 = stores.row(1, named=True)
        assert s2["turnover_rank"] == 2
        assert s2["slow_movers"] == 2
        assert s2["fill_rate_pct"] == pytest.approx(100.0)
        assert s2["service_level_rank"] == 1
        assert s1["service_level_rank"] == 2

    def test_category_performance(self):
        turnover = turnover_frame([6.0, 2.0], ["FAST_MOVER", "SLOW_MOVER"])
        categories = RollupAggregator(MetricsSettings()).category_performance(
            snapshot_frame(),
            self.sales_window(),
            turnover,
            stock_frame(["CRITICAL", "NORMAL"]),
            abc_frame(),
            data_date=DATA_DATE,
        )

        assert categories["category"].to_list() == ["Toys", "Groceries"]
        toys = categories.row(0, named=True)
        assert toys["current_inventory_units"] == 65
        assert toys["total_revenue_90d"] == pytest.approx(300.0)
        assert toys["revenue_rank"] == 1
        assert toys["class_a_count"] == 1
        assert toys["class_c_count"] == 1
        # 65 units / 15 a day
        assert toys["days_of_supply"] == 4
        # 300 revenue / 650 inventory value
        assert toys["inventory_roi_90d"] == pytest.approx(300 / 650)
