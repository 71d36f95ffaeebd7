"""Productivity statistics over consolidated records."""

from tracksy.core.classifier import classify
from tracksy.core.config import TRACKING_INTERVAL_MS
from tracksy.core.models import (
    ActivityAttributes,
    ActivitySample,
    ClassificationRule,
    ClassificationSource,
    ProductivityBreakdown,
)


def productivity_breakdown(
    records: list[ActivitySample],
    rules: list[ClassificationRule],
    sampling_interval_ms: int = TRACKING_INTERVAL_MS,
) -> ProductivityBreakdown:
    """Split the time in *records* into productive, distracting and unclassified.

    Only explicit rules count; heuristic suggestions leave time
    unclassified. Time with a rule-assigned category id is also totalled
    per category.
    """
    breakdown = ProductivityBreakdown()

    for record in records:
        duration = record.count * sampling_interval_ms
        attrs = ActivityAttributes.from_sample(
            record, duration_seconds=duration / 1000
        )
        result = classify(attrs, rules, use_heuristic=False)

        if result.source is not ClassificationSource.RULE or result.rating is None:
            breakdown.unclassified_ms += duration
        elif result.is_productive:
            breakdown.productive_ms += duration
        else:
            breakdown.distracting_ms += duration

        if result.category_id:
            breakdown.by_category[result.category_id] = (
                breakdown.by_category.get(result.category_id, 0) + duration
            )

    return breakdown
