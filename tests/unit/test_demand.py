"""
Unit Tests - Demand Statistics
"""
import polars as pl
import pytest

from inventory_metrics.analytics.demand import DemandStatisticsEstimator


class TestDemandStatisticsEstimator:
    """Tests for DemandStatisticsEstimator"""

    def test_mean_and_sample_stddev(self, observation_factory):
        window = observation_factory(days=3, units=[2, 4, 6])

        stats = DemandStatisticsEstimator().estimate(window)

        row = stats.row(0, named=True)
        assert row["avg_daily_sales"] == pytest.approx(4.0)
        assert row["stddev_sales"] == pytest.approx(2.0)
        assert row["effective_stddev"] == pytest.approx(2.0)
        assert row["sample_days"] == 3

    def test_fallback_applies_per_key(self, observation_factory):
        window = pl.concat([
            observation_factory(product_id="P0001", days=3, units=[2, 4, 6]),
            observation_factory(product_id="P0002", days=1, units=[5]),
        ])

        stats = DemandStatisticsEstimator(fallback_factor=0.3).estimate(window)

        dense = stats.filter(pl.col("product_id") == "P0001").row(0, named=True)
        sparse = stats.filter(pl.col("product_id") == "P0002").row(0, named=True)

        assert dense["effective_stddev"] == pytest.approx(2.0)
        assert sparse["stddev_sales"] is None
        assert sparse["effective_stddev"] == pytest.approx(1.5)

    def test_eligible_requires_minimum_sample(self, observation_factory):
        window = pl.concat([
            observation_factory(product_id="P0001", days=30),
            observation_factory(product_id="P0002", days=29),
        ])
        estimator = DemandStatisticsEstimator(min_sample_days=30)

        eligible = estimator.eligible(estimator.estimate(window))

        assert eligible["product_id"].to_list() == ["P0001"]

    def test_constant_sales_have_zero_stddev(self, observation_factory):
        window = observation_factory(days=5, units=7)

        stats = DemandStatisticsEstimator().estimate(window)

        assert stats["stddev_sales"].to_list() == [0.0]
        assert stats["effective_stddev"].to_list() == [0.0]
