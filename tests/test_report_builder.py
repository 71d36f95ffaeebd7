"""Unit tests for duration report building."""

import pytest

from tracksy.core.consolidator import consolidate
from tracksy.core.models import ActivitySample, DurationsReport
from tracksy.reporting.report_builder import build_report, extract_domain, rank_groups

BASE = 1_737_594_549_687


def _record(
    offset: int,
    app: str,
    title: str = "",
    url: str | None = None,
    count: int = 1,
) -> ActivitySample:
    return ActivitySample(
        timestamp=BASE + offset,
        window_id=hash((app, title)) & 0xFFFF,
        title=title,
        owner_path=f"/path/to/{app}",
        owner_process_id=42,
        owner_name=app,
        url=url,
        count=count,
        platform="windows",
    )


# ------------------------------------------------------------------
# extract_domain
# ------------------------------------------------------------------

class TestExtractDomain:
    def test_hostname_of_https_url(self):
        assert extract_domain("https://github.com/foo") == "github.com"

    def test_keeps_subdomain(self):
        assert extract_domain("https://docs.python.org/3/library/re.html") == "docs.python.org"

    def test_strips_port_and_credentials(self):
        assert extract_domain("http://user:pw@localhost:8080/x") == "localhost"

    def test_not_a_url_is_unknown(self):
        assert extract_domain("not a url") == "unknown"

    def test_bare_hostname_is_unknown(self):
        assert extract_domain("github.com") == "unknown"

    def test_empty_is_unknown(self):
        assert extract_domain("") == "unknown"

    def test_malformed_ipv6_is_unknown(self):
        assert extract_domain("http://[::1") == "unknown"


# ------------------------------------------------------------------
# build_report: grouping
# ------------------------------------------------------------------

class TestGrouping:
    def test_empty_input(self):
        report = build_report([])
        assert report == DurationsReport([], [], [])

    def test_groups_by_application(self):
        records = [
            _record(0, "VSCode"),
            _record(1000, "VSCode"),
            _record(2000, "Chrome"),
        ]
        report = build_report(records, sampling_interval_ms=1000)

        assert [g.key for g in report.applications] == ["VSCode", "Chrome"]
        assert report.applications[0].total_duration == 2000
        assert len(report.applications[0].instances) == 1

    def test_browser_records_group_by_domain_not_title(self):
        records = [
            _record(0, "Chrome", title="Pull requests", url="https://github.com/pulls"),
            _record(1000, "Chrome", title="Issues", url="https://github.com/issues"),
            _record(2000, "Chrome", title="Video", url="https://www.youtube.com/watch"),
        ]
        report = build_report(records, sampling_interval_ms=1000)

        assert [g.key for g in report.domains] == ["github.com", "www.youtube.com"]
        assert report.titles == []

    def test_unparseable_url_groups_under_unknown(self):
        records = [_record(0, "Chrome", url="chrome newtab")]
        report = build_report(records, sampling_interval_ms=1000)
        assert [g.key for g in report.domains] == ["unknown"]

    def test_non_browser_records_group_by_title(self):
        records = [
            _record(0, "Code", title="main.py"),
            _record(1000, "Code", title="main.py"),
            _record(2000, "Code", title="   "),
        ]
        report = build_report(records, sampling_interval_ms=1000)

        assert [g.key for g in report.titles] == ["main.py"]
        assert report.titles[0].total_duration == 2000
        assert report.domains == []

    def test_records_are_sorted_before_segmenting(self):
        records = [_record(2000, "Code"), _record(0, "Code"), _record(1000, "Code")]
        report = build_report(records, sampling_interval_ms=1000)
        instance = report.applications[0].instances[0]
        assert (instance.start_time, instance.end_time) == (BASE, BASE + 2000)

    def test_time_window_filters_inclusively(self):
        records = [_record(0, "A"), _record(1000, "B"), _record(2000, "C")]
        report = build_report(
            records, sampling_interval_ms=1000, time_window=(BASE + 1000, BASE + 2000)
        )
        assert sorted(g.key for g in report.applications) == ["B", "C"]

    def test_count_weighted_durations(self):
        records = [_record(0, "Code", count=10)]
        report = build_report(records, sampling_interval_ms=3000)
        assert report.applications[0].total_duration == 30_000

    def test_gap_threshold_splits_instances(self):
        records = [_record(0, "Code"), _record(60_000, "Code")]
        report = build_report(records, sampling_interval_ms=1000, gap_threshold_ms=5000)
        assert len(report.applications[0].instances) == 2
        assert report.applications[0].total_duration == 2000


# ------------------------------------------------------------------
# build_report: ranking, cap, percentages
# ------------------------------------------------------------------

class TestRanking:
    def _ten_apps(self) -> list[ActivitySample]:
        records = []
        offset = 0
        for i in range(10):
            # App0 gets 1 record, App9 gets 10
            for _ in range(i + 1):
                records.append(_record(offset, f"App{i}"))
                offset += 10_000
        return records

    def test_caps_at_seven_largest(self):
        report = build_report(self._ten_apps(), sampling_interval_ms=1000)

        assert len(report.applications) == 7
        assert [g.key for g in report.applications] == [f"App{i}" for i in range(9, 2, -1)]

    def test_custom_max_items(self):
        report = build_report(self._ten_apps(), sampling_interval_ms=1000, max_items=3)
        assert len(report.applications) == 3

    def test_percentages_over_retained_groups_sum_to_100(self):
        report = build_report(self._ten_apps(), sampling_interval_ms=1000)
        assert sum(g.percentage for g in report.applications) == pytest.approx(100.0)

    def test_percentage_values(self):
        records = [_record(0, "A", count=3), _record(10_000, "B", count=1)]
        report = build_report(records, sampling_interval_ms=1000)
        assert [g.percentage for g in report.applications] == [75.0, 25.0]

    def test_ties_keep_first_seen_order(self):
        records = [_record(0, "Zed"), _record(10_000, "Alpha"), _record(20_000, "Mid")]
        report = build_report(records, sampling_interval_ms=1000)
        assert [g.key for g in report.applications] == ["Zed", "Alpha", "Mid"]

    def test_zero_durations_give_zero_percent(self):
        records = [_record(0, "A"), _record(1000, "B")]
        report = build_report(records, sampling_interval_ms=0)
        assert [g.percentage for g in report.applications] == [0.0, 0.0]


def test_rank_groups_empty():
    assert rank_groups({}, 1000) == []


def test_end_to_end_single_instance():
    samples = [_record(i * 1000, "Chrome") for i in range(3)]
    for s in samples:
        s.window_id = 7
    records = consolidate(samples)
    report = build_report(records, sampling_interval_ms=1000, gap_threshold_ms=5000)

    assert len(records) == 1 and records[0].count == 3
    chrome = report.applications[0]
    assert len(chrome.instances) == 1
    assert chrome.total_duration == 3000
    assert chrome.percentage == 100.0
