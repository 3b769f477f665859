"""
Unit Tests - Window Resolution
"""
from datetime import date

import polars as pl

from inventory_metrics.analytics.schema import OBSERVATION_SCHEMA
from inventory_metrics.analytics.windows import WindowResolver


class TestWindowResolver:
    """Tests for WindowResolver"""

    def test_latest_date_is_max_observed_date(self, observation_factory):
        obs = pl.concat([
            observation_factory(product_id="P0001", days=10),
            observation_factory(product_id="P0002", days=5),
        ])

        resolver = WindowResolver(obs)

        assert resolver.latest_date == date(2024, 1, 10)
        assert not resolver.is_empty

    def test_latest_snapshot_takes_last_row_per_key(self, observation_factory):
        obs = pl.concat([
            observation_factory(product_id="P0001", days=10, inventory=list(range(10))),
            observation_factory(product_id="P0002", days=5, inventory=[50, 40, 30, 20, 10]),
        ])

        snapshot = WindowResolver(obs).latest_snapshot().sort("product_id")

        assert snapshot["product_id"].to_list() == ["P0001", "P0002"]
        assert snapshot["date"].to_list() == [date(2024, 1, 10), date(2024, 1, 5)]
        assert snapshot["inventory_level"].to_list() == [9, 10]

    def test_trailing_window_is_inclusive(self, observation_factory):
        obs = pl.concat([
            observation_factory(product_id="P0001", days=10),
            observation_factory(product_id="P0002", days=5),
        ])

        window = WindowResolver(obs).trailing_window(3)

        # 2024-01-07 through 2024-01-10
        assert window["date"].min() == date(2024, 1, 7)
        assert len(window) == 4
        assert window["product_id"].unique().to_list() == ["P0001"]

    def test_reference_date_limits_views(self, observation_factory):
        obs = observation_factory(days=10, inventory=list(range(10)))

        resolver = WindowResolver(obs, reference_date=date(2024, 1, 5))

        snapshot = resolver.latest_snapshot()
        assert snapshot["date"].to_list() == [date(2024, 1, 5)]
        assert snapshot["inventory_level"].to_list() == [4]
        assert resolver.trailing_window(30)["date"].max() == date(2024, 1, 5)

    def test_trailing_months(self, observation_factory):
        obs = observation_factory(start=date(2024, 1, 1), days=75)

        window = WindowResolver(obs, reference_date=date(2024, 3, 15)).trailing_months(1)

        assert window["date"].min() == date(2024, 2, 15)
        assert window["date"].max() == date(2024, 3, 15)

    def test_on_date(self, observation_factory):
        obs = pl.concat([
            observation_factory(product_id="P0001", days=10),
            observation_factory(product_id="P0002", days=10),
        ])

        assert len(WindowResolver(obs).on_date()) == 2
        assert len(WindowResolver(obs).on_date(date(2024, 1, 3))) == 2

    def test_empty_observations(self):
        obs = pl.DataFrame(schema=OBSERVATION_SCHEMA)

        resolver = WindowResolver(obs)

        assert resolver.is_empty
        assert resolver.latest_snapshot().is_empty()
        assert resolver.trailing_window(90).is_empty()
        assert resolver.latest_snapshot().columns == list(OBSERVATION_SCHEMA)
