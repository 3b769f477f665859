"""
Unit Tests - Classification
"""
import polars as pl
import pytest

from inventory_metrics.analytics.classification import ClassificationEngine, label_buckets
from inventory_metrics.config import MetricsSettings


def keyed_frame(values, metric, category="Groceries"):
    """One row per product in a single store location"""
    n = len(values)
    return pl.DataFrame({
        "store_id": ["S001"] * n,
        "region": ["North"] * n,
        "product_id": [f"P{i:04d}" for i in range(1, n + 1)],
        "category": [category] * n,
        metric: values,
    })


class TestFixedThresholds:
    """Tests for absolute-band classification"""

    @pytest.mark.parametrize("level,expected", [
        (0, "CRITICAL"),
        (10, "CRITICAL"),
        (11, "LOW"),
        (50, "LOW"),
        (51, "NORMAL"),
        (200, "NORMAL"),
        (201, "HIGH"),
    ])
    def test_stock_status_boundaries(self, level, expected):
        df = pl.DataFrame({"inventory_level": [level]})

        engine = ClassificationEngine(MetricsSettings())
        result = df.select(engine.stock_status().alias("stock_status"))

        assert result["stock_status"][0] == expected

    def test_stock_status_respects_settings(self):
        df = pl.DataFrame({"inventory_level": [15]})

        engine = ClassificationEngine(MetricsSettings(stock_critical_max=20))

        assert df.select(engine.stock_status())[0, 0] == "CRITICAL"

    def test_performance_rating(self):
        df = pl.DataFrame({"ratio": [6.0, 4.0, 2.0, 1.99]})

        engine = ClassificationEngine(MetricsSettings())
        result = df.select(engine.performance_rating("ratio").alias("rating"))

        assert result["rating"].to_list() == ["EXCELLENT", "GOOD", "AVERAGE", "NEEDS_IMPROVEMENT"]

    def test_label_buckets(self):
        df = pl.DataFrame({"bucket": [1, 2, 3, 4, 5]})

        result = df.select(label_buckets("bucket", ["A", "B", "C", "D"]))

        assert result.to_series().to_list() == ["A", "B", "C", "D", "D"]


class TestQuartiles:
    """Tests for within-partition quartile bucketing"""

    @pytest.mark.parametrize("n,sizes", [
        (1, [1]),
        (3, [1, 1, 1]),
        (4, [1, 1, 1, 1]),
        (5, [2, 1, 1, 1]),
        (6, [2, 2, 1, 1]),
        (7, [2, 2, 2, 1]),
        (9, [3, 2, 2, 2]),
        (12, [3, 3, 3, 3]),
    ])
    def test_bucket_sizes_put_remainder_first(self, n, sizes):
        df = keyed_frame([float(i) for i in range(n)], "metric")

        ranked = ClassificationEngine(MetricsSettings()).quartiles(df, "metric", ["category"])
        counts = ranked.group_by("quartile_rank").len().sort("quartile_rank")

        assert counts["len"].to_list() == sizes

    def test_partitions_rank_independently(self):
        df = pl.concat([
            keyed_frame([1.0, 2.0, 3.0, 4.0], "metric", "Groceries"),
            keyed_frame([10.0, 20.0, 30.0, 40.0], "metric", "Toys"),
        ])

        ranked = ClassificationEngine(MetricsSettings()).quartiles(df, "metric", ["category"])

        for category in ["Groceries", "Toys"]:
            part = ranked.filter(pl.col("category") == category).sort("metric")
            assert part["quartile_rank"].to_list() == [1, 2, 3, 4]

    def test_ties_break_on_entity_key(self):
        df = keyed_frame([5.0, 5.0, 5.0, 5.0], "metric")
        shuffled = df.reverse()

        engine = ClassificationEngine(MetricsSettings())
        first = engine.quartiles(df, "metric", ["category"]).sort("product_id")
        second = engine.quartiles(shuffled, "metric", ["category"]).sort("product_id")

        assert first["quartile_rank"].to_list() == [1, 2, 3, 4]
        assert second["quartile_rank"].to_list() == [1, 2, 3, 4]

    def test_movement_types_rank_highest_turnover_first(self):
        df = keyed_frame([0.5, 8.0, 3.0, 12.0, 1.0, 6.0, 0.0, 2.0], "inventory_turnover_ratio")

        ranked = ClassificationEngine(MetricsSettings()).movement_types(df)

        labels = dict(zip(ranked["inventory_turnover_ratio"].to_list(), ranked["movement_type"].to_list()))
        assert labels[12.0] == labels[8.0] == "FAST_MOVER"
        assert labels[6.0] == labels[3.0] == "MEDIUM_MOVER"
        assert labels[2.0] == labels[1.0] == "SLOW_MOVER"
        assert labels[0.5] == labels[0.0] == "NON_MOVER"

        fast = ranked.filter(pl.col("movement_type") == "FAST_MOVER")["inventory_turnover_ratio"]
        medium = ranked.filter(pl.col("movement_type") == "MEDIUM_MOVER")["inventory_turnover_ratio"]
        assert fast.min() >= medium.max()

    def test_reorder_alert_levels_rank_lowest_coverage_first(self):
        df = keyed_frame([2.0, 0.1, 1.0, 0.5], "coverage_ratio")

        ranked = ClassificationEngine(MetricsSettings()).reorder_alert_levels(df)

        labels = dict(zip(ranked["coverage_ratio"].to_list(), ranked["alert_level"].to_list()))
        assert labels == {0.1: "CRITICAL", 0.5: "LOW", 1.0: "MODERATE", 2.0: "ADEQUATE"}


class TestABCClassification:
    """Tests for Pareto revenue tiers"""

    def test_cumulative_share_tiers(self):
        df = keyed_frame([70.0, 20.0, 6.0, 4.0], "total_revenue")

        abc = ClassificationEngine(MetricsSettings()).abc_classes(df).sort("revenue_rank")

        assert abc["revenue_percentage"].to_list() == pytest.approx([70.0, 20.0, 6.0, 4.0])
        assert abc["cumulative_percentage"].to_list() == pytest.approx([70.0, 90.0, 96.0, 100.0])
        assert abc["abc_classification"].to_list() == ["A", "B", "C", "C"]
        assert abc["management_strategy"].to_list() == [
            "TIGHT_CONTROL", "MODERATE_CONTROL", "BASIC_CONTROL", "BASIC_CONTROL",
        ]

    def test_cumulative_is_monotonic_and_closes_at_100(self):
        revenues = [13.7, 2.2, 41.9, 0.3, 8.8, 19.1, 5.5, 7.7]
        df = pl.concat([
            keyed_frame(revenues, "total_revenue").with_columns(pl.lit("S001").alias("store_id")),
            keyed_frame(revenues[::-1], "total_revenue").with_columns(pl.lit("S002").alias("store_id")),
        ])

        abc = ClassificationEngine(MetricsSettings()).abc_classes(df)

        for store in ["S001", "S002"]:
            part = abc.filter(pl.col("store_id") == store).sort("revenue_rank")
            cumulative = part["cumulative_percentage"].to_list()
            assert all(a <= b for a, b in zip(cumulative, cumulative[1:]))
            assert cumulative[-1] == pytest.approx(100.0, abs=0.1)

    def test_revenue_ties_rank_by_product_id(self):
        df = keyed_frame([10.0, 10.0, 10.0], "total_revenue").reverse()

        abc = ClassificationEngine(MetricsSettings()).abc_classes(df).sort("revenue_rank")

        assert abc["product_id"].to_list() == ["P0001", "P0002", "P0003"]

    def test_zero_revenue_partition_is_class_c(self):
        df = keyed_frame([0.0, 0.0], "total_revenue")

        abc = ClassificationEngine(MetricsSettings()).abc_classes(df)

        assert abc["revenue_percentage"].to_list() == [0.0, 0.0]
        assert abc["abc_classification"].to_list() == ["C", "C"]

    def test_share_is_rounded_before_tiering(self):
        df = keyed_frame([80004.0, 19996.0], "total_revenue")

        abc = ClassificationEngine(MetricsSettings()).abc_classes(df).sort("revenue_rank")

        # 80.004 publishes as 80.0 and is tiered as 80.0
        assert abc["revenue_percentage"].to_list() == [80.0, 20.0]
        assert abc["cumulative_percentage"].to_list() == [80.0, 100.0]
        assert abc["abc_classification"].to_list() == ["A", "C"]

    def test_half_hundredth_share_rounds_up(self):
        df = keyed_frame([89996.0, 10004.0], "total_revenue")

        abc = ClassificationEngine(MetricsSettings()).abc_classes(df).sort("revenue_rank")

        assert abc["revenue_percentage"].to_list() == [90.0, 10.0]
        assert abc["abc_classification"].to_list() == ["B", "C"]

    def test_cumulative_share_never_exceeds_100(self):
        # Seven equal shares each round up to 14.29, summing to 100.03
        df = keyed_frame([1.0] * 7, "total_revenue")

        abc = ClassificationEngine(MetricsSettings()).abc_classes(df).sort("revenue_rank")

        assert abc["revenue_percentage"].to_list() == [14.29] * 7
        assert abc["cumulative_percentage"][-1] == 100.0
        assert abc["cumulative_percentage"].max() <= 100.0
