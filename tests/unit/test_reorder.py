"""
Unit Tests - Reorder Policy
"""
import polars as pl
import pytest

from inventory_metrics.analytics.reorder import ReorderPolicyCalculator


def make_stats(rows):
    return pl.DataFrame(
        rows,
        schema={
            "store_id": pl.Utf8,
            "region": pl.Utf8,
            "product_id": pl.Utf8,
            "avg_daily_sales": pl.Float64,
            "effective_stddev": pl.Float64,
        },
        orient="row",
    )


def make_snapshot(rows):
    return pl.DataFrame(
        rows,
        schema={
            "store_id": pl.Utf8,
            "region": pl.Utf8,
            "product_id": pl.Utf8,
            "inventory_level": pl.Int64,
        },
        orient="row",
    )


class TestReorderPolicyCalculator:
    """Tests for ReorderPolicyCalculator"""

    def test_policy_formulas(self):
        stats = make_stats([("S001", "North", "P0001", 10.0, 2.0)])
        snapshot = make_snapshot([("S001", "North", "P0001", 40)])

        policy = ReorderPolicyCalculator().calculate(stats, snapshot).row(0, named=True)

        # 1.65 * 2 * sqrt(7) = 8.73
        assert policy["lead_time_days"] == 7
        assert policy["safety_stock"] == 9
        assert policy["reorder_point"] == 79
        assert policy["days_of_supply"] == 4
        assert policy["suggested_order_qty"] == 48
        assert policy["coverage_ratio"] == pytest.approx(40 / 79)

    def test_zero_demand_uses_floors(self):
        stats = make_stats([("S001", "North", "P0001", 0.0, 0.0)])
        snapshot = make_snapshot([("S001", "North", "P0001", 5)])

        policy = ReorderPolicyCalculator().calculate(stats, snapshot).row(0, named=True)

        assert policy["safety_stock"] == 0
        assert policy["reorder_point"] == 0
        assert policy["days_of_supply"] == 50
        assert policy["suggested_order_qty"] == 0
        assert policy["coverage_ratio"] == pytest.approx(5.0)

    def test_reorder_point_rounds_half_up(self):
        stats = make_stats([("S001", "North", "P0001", 0.5, 0.0)])
        snapshot = make_snapshot([("S001", "North", "P0001", 0)])

        policy = ReorderPolicyCalculator().calculate(stats, snapshot).row(0, named=True)

        assert policy["reorder_point"] == 4
        assert policy["suggested_order_qty"] == 4
        assert policy["coverage_ratio"] == 0.0

    def test_keys_without_snapshot_are_dropped(self):
        stats = make_stats([
            ("S001", "North", "P0001", 10.0, 2.0),
            ("S001", "North", "P0002", 10.0, 2.0),
        ])
        snapshot = make_snapshot([("S001", "North", "P0001", 40)])

        policy = ReorderPolicyCalculator().calculate(stats, snapshot)

        assert policy["product_id"].to_list() == ["P0001"]

    def test_custom_lead_time_and_service_level(self):
        stats = make_stats([("S001", "North", "P0001", 10.0, 2.0)])
        snapshot = make_snapshot([("S001", "North", "P0001", 100)])

        policy = ReorderPolicyCalculator(lead_time_days=4, service_level_z=2.0).calculate(
            stats, snapshot
        ).row(0, named=True)

        # 2.0 * 2 * sqrt(4) = 8
        assert policy["safety_stock"] == 8
        assert policy["reorder_point"] == 48
