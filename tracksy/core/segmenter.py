"""Split a group's records into contiguous usage instances."""

from tracksy.core.config import SEGMENT_GAP_MS
from tracksy.core.models import ActivitySample, Instance


def segment(
    records: list[ActivitySample],
    sampling_interval_ms: int,
    gap_threshold_ms: int = SEGMENT_GAP_MS,
) -> list[Instance]:
    """Return the usage instances of one group of records.

    *records* must belong to a single application, domain or title and be
    sorted by timestamp. A new instance starts whenever two consecutive
    records are more than *gap_threshold_ms* apart. Each record adds
    ``count * sampling_interval_ms`` to the instance it falls in.
    """
    if not records:
        return []

    first = records[0]
    current = Instance(
        start_time=first.timestamp,
        end_time=first.timestamp,
        duration=first.count * sampling_interval_ms,
    )
    instances: list[Instance] = []

    for prev, record in zip(records, records[1:]):
        if record.timestamp - prev.timestamp > gap_threshold_ms:
            instances.append(current)
            current = Instance(
                start_time=record.timestamp,
                end_time=record.timestamp,
                duration=record.count * sampling_interval_ms,
            )
        else:
            current.end_time = record.timestamp
            current.duration += record.count * sampling_interval_ms

    instances.append(current)
    return instances


def total_duration(instances: list[Instance]) -> int:
    return sum(i.duration for i in instances)
