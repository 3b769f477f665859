"""
Window Resolution

Resolves the reference date, trailing windows and the latest observation per
(store, region, product) from an immutable observation frame.
"""

from datetime import date, timedelta
from typing import Optional

import polars as pl
import structlog

from .schema import ENTITY_KEY

logger = structlog.get_logger(__name__)


class WindowResolver:
    """
    Time-window views over the observation set.

    The latest date is the maximum observed date unless an explicit reference
    date is given. Rows dated after the reference date never enter any view.

    Example:
        resolver = WindowResolver(observations)
        last_90 = resolver.trailing_window(90)
        snapshot = resolver.latest_snapshot()
    """

    def __init__(
        self,
        observations: pl.DataFrame,
        reference_date: Optional[date] = None,
    ):
        self.observations = observations
        if reference_date is not None:
            self.latest_date = reference_date
        elif len(observations) > 0:
            self.latest_date = observations["date"].max()
        else:
            self.latest_date = None

    @property
    def is_empty(self) -> bool:
        return self.latest_date is None

    def _between(self, start: date, end: date) -> pl.DataFrame:
        return self.observations.filter(pl.col("date").is_between(start, end, closed="both"))

    def trailing_window(self, days: int, anchor: Optional[date] = None) -> pl.DataFrame:
        """Observations dated in [anchor - days, anchor], both ends inclusive"""
        anchor = anchor or self.latest_date
        if anchor is None:
            return self.observations.clear()
        return self._between(anchor - timedelta(days=days), anchor)

    def trailing_months(self, months: int, anchor: Optional[date] = None) -> pl.DataFrame:
        """Calendar-month variant of trailing_window"""
        anchor = anchor or self.latest_date
        if anchor is None:
            return self.observations.clear()
        start = pl.Series([anchor]).dt.offset_by(f"-{months}mo")[0]
        return self._between(start, anchor)

    def on_date(self, day: Optional[date] = None) -> pl.DataFrame:
        """Observations recorded on a single day"""
        day = day or self.latest_date
        if day is None:
            return self.observations.clear()
        return self.observations.filter(pl.col("date") == day)

    def latest_snapshot(self) -> pl.DataFrame:
        """The most recent observation per entity key at or before the latest date"""
        if self.latest_date is None:
            return self.observations.clear()

        snapshot = (
            self.observations
            .filter(pl.col("date") <= self.latest_date)
            .sort([*ENTITY_KEY, "date"])
            .group_by(ENTITY_KEY, maintain_order=True)
            .last()
            .select(self.observations.columns)
        )
        logger.debug("Resolved latest snapshot", keys=len(snapshot), latest_date=str(self.latest_date))
        return snapshot
