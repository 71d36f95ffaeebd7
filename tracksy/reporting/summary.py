"""Report generation over stored activity samples."""

from datetime import date, datetime, timedelta
from typing import Any, Optional

from tracksy.core.config import pipeline_settings
from tracksy.core.consolidator import consolidate, sort_samples
from tracksy.core.models import (
    ActivitySample,
    ClassificationRule,
    DurationsReport,
    ProductivityBreakdown,
)
from tracksy.persistence.store import ActivityStore
from tracksy.reporting.productivity import productivity_breakdown
from tracksy.reporting.report_builder import build_report


def day_bounds(target_date: date) -> tuple[int, int]:
    """Return local midnight-to-midnight bounds of *target_date* in ms."""
    start = datetime(target_date.year, target_date.month, target_date.day)
    end = start + timedelta(days=1)
    return int(start.timestamp() * 1000), int(end.timestamp() * 1000)


class ReportGenerator:
    """Produces duration and productivity reports from persisted samples.

    Samples are read from the store, sorted, and consolidated before being
    aggregated, so the result is the same whether or not the store has been
    compacted.
    """

    def __init__(
        self, store: ActivityStore, config: Optional[dict[str, Any]] = None
    ) -> None:
        self.store = store
        self.settings = pipeline_settings(config or {})

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def records_for_range(self, start: int, end: int) -> list[ActivitySample]:
        """Consolidated records with ``start <= timestamp < end``."""
        samples = sort_samples(self.store.get_samples(start, end))
        return consolidate(samples, self.settings["merge_gap_ms"])

    def report_for_range(self, start: int, end: int) -> DurationsReport:
        return build_report(
            self.records_for_range(start, end),
            sampling_interval_ms=self.settings["tracking_interval_ms"],
            gap_threshold_ms=self.settings["segment_gap_ms"],
            max_items=self.settings["max_items_per_report"],
        )

    def daily_report(self, target_date: date) -> DurationsReport:
        return self.report_for_range(*day_bounds(target_date))

    def productivity_for_range(
        self,
        start: int,
        end: int,
        rules: Optional[list[ClassificationRule]] = None,
    ) -> ProductivityBreakdown:
        """Productivity split for a range; rules default to the stored active ones."""
        if rules is None:
            rules = self.store.get_rules(active_only=True)
        return productivity_breakdown(
            self.records_for_range(start, end),
            rules,
            sampling_interval_ms=self.settings["tracking_interval_ms"],
        )

    def daily_productivity(
        self,
        target_date: date,
        rules: Optional[list[ClassificationRule]] = None,
    ) -> ProductivityBreakdown:
        start, end = day_bounds(target_date)
        return self.productivity_for_range(start, end, rules)
