"""Unit tests for ActivityStore."""

from unittest.mock import patch

import pytest

from tracksy.core.config import MERGE_GAP_MS
from tracksy.core.consolidator import consolidate as real_consolidate
from tracksy.core.models import (
    ActivitySample,
    ClassificationRule,
    DurationCondition,
    MatchStrategy,
    MatchType,
)
from tracksy.persistence.store import ActivityStore


@pytest.fixture
def store():
    """Create an in-memory ActivityStore for each test."""
    s = ActivityStore(":memory:")
    s.init_db()
    yield s
    s.close()


# ------------------------------------------------------------------
# Schema / init_db
# ------------------------------------------------------------------

def test_init_db_creates_tables(store: ActivityStore):
    conn = store._get_conn()
    tables = {
        r[0]
        for r in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ).fetchall()
    }
    assert "activity_samples" in tables
    assert "classification_rules" in tables


def test_init_db_creates_indexes(store: ActivityStore):
    conn = store._get_conn()
    indexes = {
        r[0]
        for r in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='index'"
        ).fetchall()
    }
    assert "idx_sample_timestamp" in indexes
    assert "idx_rule_priority" in indexes


def test_init_db_idempotent(store: ActivityStore):
    """Calling init_db twice should not raise."""
    store.init_db()


# ------------------------------------------------------------------
# Sample round-trip
# ------------------------------------------------------------------

def _make_sample(**overrides) -> ActivitySample:
    defaults = dict(
        timestamp=1_736_935_800_000,
        window_id="4242",
        title="store.py - tracksy",
        owner_path="/Applications/Visual Studio Code.app",
        owner_process_id=812,
        owner_name="Code",
        owner_bundle_id="com.microsoft.VSCode",
        url=None,
        count=1,
        platform="darwin",
    )
    defaults.update(overrides)
    return ActivitySample(**defaults)


def test_save_and_get_sample(store: ActivityStore):
    sample = _make_sample(url="https://github.com/", count=3)
    store.save_sample(sample)
    assert store.get_samples() == [sample]


def test_integer_window_id_comes_back_as_text(store: ActivityStore):
    store.save_sample(_make_sample(window_id=17))
    assert store.get_samples()[0].window_id == "17"


def test_save_sample_with_none_bundle_id(store: ActivityStore):
    store.save_sample(_make_sample(owner_bundle_id=None))
    assert store.get_samples()[0].owner_bundle_id is None


def test_get_samples_filters_by_half_open_range(store: ActivityStore):
    for ts in (1000, 2000, 3000):
        store.save_sample(_make_sample(timestamp=ts))

    results = store.get_samples(1000, 3000)
    assert [s.timestamp for s in results] == [1000, 2000]


def test_get_samples_open_ended(store: ActivityStore):
    for ts in (3000, 1000, 2000):
        store.save_sample(_make_sample(timestamp=ts))

    assert [s.timestamp for s in store.get_samples(start=2000)] == [2000, 3000]
    assert [s.timestamp for s in store.get_samples(end=2000)] == [1000]


def test_get_samples_empty_range(store: ActivityStore):
    store.save_sample(_make_sample(timestamp=5000))
    assert store.get_samples(0, 1000) == []


def test_count_samples(store: ActivityStore):
    assert store.count_samples() == 0
    store.save_sample(_make_sample())
    store.save_sample(_make_sample())
    assert store.count_samples() == 2


# ------------------------------------------------------------------
# Compaction
# ------------------------------------------------------------------

def test_needs_compaction_after_batch(store: ActivityStore):
    for i in range(3):
        assert not store.needs_compaction(3)
        store.save_sample(_make_sample(timestamp=i * 3000))
    assert store.needs_compaction(3)


def test_needs_compaction_disabled_for_zero_batch(store: ActivityStore):
    store.save_sample(_make_sample())
    assert not store.needs_compaction(0)


def test_compact_folds_runs_and_preserves_count(store: ActivityStore):
    for i in range(5):
        store.save_sample(_make_sample(timestamp=i * 3000))
    store.save_sample(_make_sample(timestamp=15_000, owner_name="Slack", title="general"))
    store.save_sample(_make_sample(timestamp=18_000, count=2))

    before, after = store.compact()

    assert (before, after) == (7, 3)
    samples = store.get_samples()
    assert [s.count for s in samples] == [5, 1, 2]
    assert sum(s.count for s in samples) == 8
    assert store.writes_since_compaction == 0


def test_compact_respects_merge_gap(store: ActivityStore):
    store.save_sample(_make_sample(timestamp=0))
    store.save_sample(_make_sample(timestamp=MERGE_GAP_MS + 1))
    assert store.compact() == (2, 2)


def test_compact_merges_at_exactly_merge_gap(store: ActivityStore):
    store.save_sample(_make_sample(timestamp=0))
    store.save_sample(_make_sample(timestamp=MERGE_GAP_MS))
    assert store.compact() == (2, 1)
    assert store.get_samples()[0].count == 2


def test_compact_is_idempotent(store: ActivityStore):
    for i in range(4):
        store.save_sample(_make_sample(timestamp=i * 3000))
    store.compact()
    first = store.get_samples()
    assert store.compact() == (1, 1)
    assert store.get_samples() == first


def test_compact_empty_store(store: ActivityStore):
    assert store.compact() == (0, 0)


def test_compact_keeps_sample_saved_while_compacting(store: ActivityStore):
    for i in range(3):
        store.save_sample(_make_sample(timestamp=i * 3000))
    late = _make_sample(timestamp=60_000, owner_name="Slack", title="general")

    def consolidate_with_concurrent_write(samples, merge_gap_ms):
        store.save_sample(late)
        return real_consolidate(samples, merge_gap_ms)

    with patch(
        "tracksy.persistence.store.consolidate",
        side_effect=consolidate_with_concurrent_write,
    ):
        assert store.compact() == (3, 1)

    samples = store.get_samples()
    assert [s.count for s in samples] == [3, 1]
    assert samples[-1] == late
    assert store.count_samples() == 2


# ------------------------------------------------------------------
# Rules
# ------------------------------------------------------------------

def _make_rule(**overrides) -> ClassificationRule:
    defaults = dict(
        id="rule-1",
        priority=10,
        match_type=MatchType.DOMAIN,
        match_strategy=MatchStrategy.EXACT,
        pattern="github.com",
        rating=1,
        category_id="development",
        created_at=1000,
    )
    defaults.update(overrides)
    return ClassificationRule(**defaults)


def test_save_and_get_rule_by_id(store: ActivityStore):
    rule = _make_rule(
        duration_seconds=600, duration_condition=DurationCondition.GE, is_active=False
    )
    store.save_rule(rule)
    assert store.get_rule_by_id("rule-1") == rule


def test_get_rule_by_id_missing(store: ActivityStore):
    assert store.get_rule_by_id("nonexistent") is None


def test_save_rule_upsert(store: ActivityStore):
    store.save_rule(_make_rule(rating=1))
    store.save_rule(_make_rule(rating=0, pattern="youtube.com"))

    loaded = store.get_rule_by_id("rule-1")
    assert loaded.rating == 0
    assert loaded.pattern == "youtube.com"
    assert len(store.get_rules()) == 1


def test_get_rules_ordering(store: ActivityStore):
    store.save_rule(_make_rule(id="low", priority=1))
    store.save_rule(_make_rule(id="high-new", priority=50, created_at=2000))
    store.save_rule(_make_rule(id="high-old", priority=50, created_at=1000))

    assert [r.id for r in store.get_rules()] == ["high-old", "high-new", "low"]


def test_get_rules_active_only(store: ActivityStore):
    store.save_rule(_make_rule(id="on"))
    store.save_rule(_make_rule(id="off", is_active=False))

    assert [r.id for r in store.get_rules(active_only=True)] == ["on"]
    assert len(store.get_rules()) == 2


def test_delete_rule(store: ActivityStore):
    store.save_rule(_make_rule())
    assert store.delete_rule("rule-1") is True
    assert store.delete_rule("rule-1") is False
    assert store.get_rules() == []


def test_all_match_types_round_trip(store: ActivityStore):
    for match_type in MatchType:
        for strategy in MatchStrategy:
            rid = f"{match_type.value}-{strategy.value}"
            store.save_rule(_make_rule(id=rid, match_type=match_type, match_strategy=strategy))
            loaded = store.get_rule_by_id(rid)
            assert loaded.match_type is match_type
            assert loaded.match_strategy is strategy
