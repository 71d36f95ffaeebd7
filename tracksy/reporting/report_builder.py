"""Duration reports by application, domain and title.

Each record is counted under its application. Browser tabs are also
counted under their domain; other windows with a title are also counted
under that title. Groups are ranked by total time, capped, and given a
percentage share of the groups that were kept.
"""

from typing import Optional

from tracksy.core.config import (
    MAX_ITEMS_PER_REPORT,
    SEGMENT_GAP_MS,
    TRACKING_INTERVAL_MS,
)
from tracksy.core.consolidator import sort_samples
from tracksy.core.models import (
    ActivitySample,
    AppOnly,
    BrowserTab,
    DurationsReport,
    GroupReport,
)
from tracksy.core.segmenter import segment, total_duration
from tracksy.core.urls import extract_domain

__all__ = ["build_report", "extract_domain", "rank_groups"]


def build_report(
    records: list[ActivitySample],
    sampling_interval_ms: int = TRACKING_INTERVAL_MS,
    gap_threshold_ms: int = SEGMENT_GAP_MS,
    max_items: int = MAX_ITEMS_PER_REPORT,
    time_window: Optional[tuple[int, int]] = None,
) -> DurationsReport:
    """Aggregate consolidated *records* into a ``DurationsReport``.

    Records are re-sorted by timestamp. When *time_window* is given as
    ``(start, end)``, only records with ``start <= timestamp <= end`` are
    considered.
    """
    by_app: dict[str, list[ActivitySample]] = {}
    by_domain: dict[str, list[ActivitySample]] = {}
    by_title: dict[str, list[ActivitySample]] = {}

    for record in sort_samples(records):
        if time_window is not None and not (
            time_window[0] <= record.timestamp <= time_window[1]
        ):
            continue

        by_app.setdefault(record.owner_name, []).append(record)

        kind = record.kind
        if isinstance(kind, BrowserTab):
            by_domain.setdefault(kind.domain, []).append(record)
        elif isinstance(kind, AppOnly) and record.title.strip():
            by_title.setdefault(record.title, []).append(record)

    def _rank(groups: dict[str, list[ActivitySample]]) -> list[GroupReport]:
        return rank_groups(groups, sampling_interval_ms, gap_threshold_ms, max_items)

    return DurationsReport(
        applications=_rank(by_app),
        domains=_rank(by_domain),
        titles=_rank(by_title),
    )


def rank_groups(
    groups: dict[str, list[ActivitySample]],
    sampling_interval_ms: int,
    gap_threshold_ms: int = SEGMENT_GAP_MS,
    max_items: int = MAX_ITEMS_PER_REPORT,
) -> list[GroupReport]:
    """Segment, total, rank and cap *groups*, then fill in percentages.

    Ties keep the order in which groups were first seen.
    """
    reports = []
    for key, group_records in groups.items():
        instances = segment(group_records, sampling_interval_ms, gap_threshold_ms)
        reports.append(
            GroupReport(
                key=key,
                total_duration=total_duration(instances),
                instances=instances,
            )
        )

    reports.sort(key=lambda r: r.total_duration, reverse=True)
    reports = reports[:max_items]

    grand_total = sum(r.total_duration for r in reports)
    for report in reports:
        report.percentage = (
            report.total_duration / grand_total * 100 if grand_total else 0.0
        )
    return reports
