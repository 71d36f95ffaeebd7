"""Sample consolidation for Tracksy.

Folds runs of identical, temporally adjacent samples into single records
carrying a ``count``. The storage layer calls this on demand to compact
what it has appended; running it again over its own output changes
nothing.
"""

import logging
from typing import Iterable

from tracksy.core.config import MERGE_GAP_MS
from tracksy.core.models import ActivitySample

logger = logging.getLogger(__name__)


def sort_samples(samples: Iterable[ActivitySample]) -> list[ActivitySample]:
    """Return *samples* ordered by timestamp (stable for equal timestamps)."""
    return sorted(samples, key=lambda s: s.timestamp)


def consolidate(
    samples: list[ActivitySample], merge_gap_ms: int = MERGE_GAP_MS
) -> list[ActivitySample]:
    """Merge consecutive identical samples into count-weighted records.

    *samples* must be sorted by timestamp ascending. A sample is folded
    into the current run when it is the same window (see
    ``ActivitySample.is_mergeable_with``) and no more than *merge_gap_ms*
    after the start of the run. Counts are summed, so consolidating
    already-consolidated input preserves the totals.

    The input list and its samples are left untouched.
    """
    if not samples:
        return []

    records: list[ActivitySample] = []
    current = samples[0].copy()

    for sample in samples[1:]:
        if sample.timestamp - current.timestamp > merge_gap_ms:
            records.append(current)
            current = sample.copy()
        elif current.is_mergeable_with(sample):
            current.count += sample.count
        else:
            records.append(current)
            current = sample.copy()

    records.append(current)

    logger.debug("Consolidated %d samples into %d records", len(samples), len(records))
    return records
