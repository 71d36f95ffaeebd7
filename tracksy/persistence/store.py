"""SQLite-backed persistence for activity samples and classification rules."""

import logging
import sqlite3
from typing import Optional

from tracksy.core.config import MERGE_GAP_MS
from tracksy.core.consolidator import consolidate
from tracksy.core.models import (
    ActivitySample,
    ClassificationRule,
    DurationCondition,
    MatchStrategy,
    MatchType,
)

logger = logging.getLogger(__name__)

_SAMPLE_COLUMNS = (
    "timestamp",
    "window_id",
    "title",
    "owner_path",
    "owner_process_id",
    "owner_name",
    "owner_bundle_id",
    "url",
    "count",
    "platform",
)


class ActivityStore:
    """Read/write interface to the local SQLite database.

    Samples are appended as they are captured and compacted on demand with
    :meth:`compact`, which folds identical adjacent samples into counted
    records. The store only counts writes; deciding when to compact is up
    to the caller (see :meth:`needs_compaction`).
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self.writes_since_compaction = 0

    # ------------------------------------------------------------------
    # Connection helpers
    # ------------------------------------------------------------------

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # ------------------------------------------------------------------
    # Schema initialisation
    # ------------------------------------------------------------------

    def init_db(self) -> None:
        """Create tables and indexes if they don't already exist."""
        conn = self._get_conn()
        conn.executescript(
            """\
            CREATE TABLE IF NOT EXISTS activity_samples (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp INTEGER NOT NULL,
                window_id TEXT NOT NULL,
                title TEXT NOT NULL DEFAULT '',
                owner_path TEXT NOT NULL DEFAULT '',
                owner_process_id INTEGER NOT NULL DEFAULT 0,
                owner_name TEXT NOT NULL,
                owner_bundle_id TEXT,
                url TEXT,
                count INTEGER NOT NULL DEFAULT 1,
                platform TEXT NOT NULL DEFAULT ''
            );

            CREATE TABLE IF NOT EXISTS classification_rules (
                id TEXT PRIMARY KEY,
                priority INTEGER NOT NULL DEFAULT 0,
                match_type TEXT NOT NULL,
                match_strategy TEXT NOT NULL,
                pattern TEXT NOT NULL,
                rating INTEGER,
                category_id TEXT,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at INTEGER NOT NULL DEFAULT 0,
                duration_seconds INTEGER,
                duration_condition TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_sample_timestamp
                ON activity_samples(timestamp);

            CREATE INDEX IF NOT EXISTS idx_rule_priority
                ON classification_rules(priority);
            """
        )
        conn.commit()

    # ------------------------------------------------------------------
    # Sample operations
    # ------------------------------------------------------------------

    def save_sample(self, sample: ActivitySample) -> int:
        """Append a sample. Returns the row id."""
        conn = self._get_conn()
        cursor = conn.execute(
            f"INSERT INTO activity_samples ({', '.join(_SAMPLE_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in _SAMPLE_COLUMNS)})",
            self._sample_to_row(sample),
        )
        conn.commit()
        self.writes_since_compaction += 1
        return cursor.lastrowid  # type: ignore[return-value]

    def get_samples(
        self, start: Optional[int] = None, end: Optional[int] = None
    ) -> list[ActivitySample]:
        """Return samples with ``start <= timestamp < end``, oldest first.

        Either bound may be ``None`` to leave that side open.
        """
        clauses = []
        params: list[int] = []
        if start is not None:
            clauses.append("timestamp >= ?")
            params.append(start)
        if end is not None:
            clauses.append("timestamp < ?")
            params.append(end)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        conn = self._get_conn()
        rows = conn.execute(
            f"SELECT * FROM activity_samples {where} ORDER BY timestamp, id",
            params,
        ).fetchall()
        return [self._row_to_sample(r) for r in rows]

    def count_samples(self) -> int:
        conn = self._get_conn()
        return conn.execute("SELECT COUNT(*) FROM activity_samples").fetchone()[0]

    def needs_compaction(self, batch_size: int) -> bool:
        """Return True once *batch_size* samples were written since the last compaction."""
        return batch_size > 0 and self.writes_since_compaction >= batch_size

    def compact(self, merge_gap_ms: int = MERGE_GAP_MS) -> tuple[int, int]:
        """Consolidate the stored samples and rewrite them.

        Only the rows read at the start are replaced, in a single
        transaction, so samples appended while compaction runs are kept.
        Returns ``(rows_before, rows_after)``.
        """
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT * FROM activity_samples ORDER BY timestamp, id"
        ).fetchall()
        if not rows:
            self.writes_since_compaction = 0
            return 0, 0

        last_id = max(r["id"] for r in rows)
        samples = [self._row_to_sample(r) for r in rows]
        records = consolidate(samples, merge_gap_ms)

        with conn:
            conn.execute("DELETE FROM activity_samples WHERE id <= ?", (last_id,))
            conn.executemany(
                f"INSERT INTO activity_samples ({', '.join(_SAMPLE_COLUMNS)}) "
                f"VALUES ({', '.join('?' for _ in _SAMPLE_COLUMNS)})",
                [self._sample_to_row(r) for r in records],
            )
        self.writes_since_compaction = 0

        logger.info("Compacted %d samples into %d records", len(samples), len(records))
        return len(samples), len(records)

    # ------------------------------------------------------------------
    # Rule operations
    # ------------------------------------------------------------------

    def save_rule(self, rule: ClassificationRule) -> None:
        """Insert or update a rule (upsert by id)."""
        conn = self._get_conn()
        conn.execute(
            """\
            INSERT OR REPLACE INTO classification_rules
                (id, priority, match_type, match_strategy, pattern, rating,
                 category_id, is_active, created_at, duration_seconds,
                 duration_condition)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                rule.id,
                rule.priority,
                rule.match_type.value,
                rule.match_strategy.value,
                rule.pattern,
                rule.rating,
                rule.category_id,
                1 if rule.is_active else 0,
                rule.created_at,
                rule.duration_seconds,
                rule.duration_condition.value if rule.duration_condition else None,
            ),
        )
        conn.commit()

    def get_rule_by_id(self, rule_id: str) -> Optional[ClassificationRule]:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT * FROM classification_rules WHERE id = ?", (rule_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_rule(row)

    def get_rules(self, active_only: bool = False) -> list[ClassificationRule]:
        """Return rules, highest priority first, then oldest first."""
        conn = self._get_conn()
        where = "WHERE is_active = 1" if active_only else ""
        rows = conn.execute(
            f"SELECT * FROM classification_rules {where} "
            "ORDER BY priority DESC, created_at, id"
        ).fetchall()
        return [self._row_to_rule(r) for r in rows]

    def delete_rule(self, rule_id: str) -> bool:
        """Delete a rule. Returns True if a row was removed."""
        conn = self._get_conn()
        cursor = conn.execute(
            "DELETE FROM classification_rules WHERE id = ?", (rule_id,)
        )
        conn.commit()
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Row mapping helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _sample_to_row(sample: ActivitySample) -> tuple:
        return (
            sample.timestamp,
            str(sample.window_id),
            sample.title,
            sample.owner_path,
            sample.owner_process_id,
            sample.owner_name,
            sample.owner_bundle_id,
            sample.url,
            sample.count,
            sample.platform,
        )

    @staticmethod
    def _row_to_sample(row: sqlite3.Row) -> ActivitySample:
        return ActivitySample(
            timestamp=row["timestamp"],
            window_id=row["window_id"],
            title=row["title"],
            owner_path=row["owner_path"],
            owner_process_id=row["owner_process_id"],
            owner_name=row["owner_name"],
            owner_bundle_id=row["owner_bundle_id"],
            url=row["url"],
            count=row["count"],
            platform=row["platform"],
        )

    @staticmethod
    def _row_to_rule(row: sqlite3.Row) -> ClassificationRule:
        condition = row["duration_condition"]
        return ClassificationRule(
            id=row["id"],
            priority=row["priority"],
            match_type=MatchType(row["match_type"]),
            match_strategy=MatchStrategy(row["match_strategy"]),
            pattern=row["pattern"],
            rating=row["rating"],
            category_id=row["category_id"],
            is_active=bool(row["is_active"]),
            created_at=row["created_at"],
            duration_seconds=row["duration_seconds"],
            duration_condition=DurationCondition(condition) if condition else None,
        )
