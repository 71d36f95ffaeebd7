"""Core data models for Tracksy.

Defines all dataclasses and enums used across the pipeline:
- Sampling: ActivitySample (also the consolidated record), AppOnly, BrowserTab
- Reporting: Instance, GroupReport, DurationsReport, ProductivityBreakdown
- Classification: ClassificationRule, ActivityAttributes, ClassificationResult,
  AppSuggestion, RuleSuggestion

Timestamps are integer milliseconds since the epoch and durations are
integer milliseconds unless the field name says otherwise.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union

from tracksy.core.urls import extract_domain


# ---------------------------------------------------------------------------
# Sampling
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AppOnly:
    """A sample from a regular application window."""


@dataclass(frozen=True)
class BrowserTab:
    """A sample from a browser-like window with a URL."""
    domain: str


ActivityKind = Union[AppOnly, BrowserTab]


# Fields that must all be equal for two samples to be folded together.
IDENTITY_FIELDS = (
    "window_id",
    "title",
    "owner_bundle_id",
    "owner_process_id",
    "owner_name",
    "owner_path",
    "platform",
)

# camelCase key used in serialized form -> attribute name
_SAMPLE_KEYS = {
    "timestamp": "timestamp",
    "windowId": "window_id",
    "title": "title",
    "ownerPath": "owner_path",
    "ownerProcessId": "owner_process_id",
    "ownerName": "owner_name",
    "ownerBundleId": "owner_bundle_id",
    "url": "url",
    "count": "count",
    "platform": "platform",
}

_SAMPLE_INT_FIELDS = ("timestamp", "owner_process_id", "count")
_SAMPLE_STR_FIELDS = ("title", "owner_name", "owner_path", "platform")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class ActivitySample:
    """One foreground-window observation, or a run of identical ones.

    A freshly captured sample has ``count == 1``. After consolidation the
    same type carries the number of consecutive polls folded into it, and
    ``timestamp`` is the start of the run.
    """
    timestamp: int
    window_id: Union[int, str]
    title: str
    owner_path: str
    owner_process_id: int
    owner_name: str
    owner_bundle_id: Optional[str] = None
    url: Optional[str] = None
    count: int = 1
    platform: str = ""

    def is_mergeable_with(self, other: "ActivitySample") -> bool:
        """Return True if *other* is the same window as this sample."""
        return all(
            getattr(self, name) == getattr(other, name) for name in IDENTITY_FIELDS
        )

    @property
    def kind(self) -> ActivityKind:
        if self.url:
            return BrowserTab(domain=extract_domain(self.url))
        return AppOnly()

    def copy(self, **changes: Any) -> "ActivitySample":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for key, attr in _SAMPLE_KEYS.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActivitySample":
        """Build a sample from camelCase (or snake_case) keys.

        Raises ValueError when a required key is missing, a field has the
        wrong type, or ``count`` is below 1.
        """
        values: dict[str, Any] = {}
        for key, attr in _SAMPLE_KEYS.items():
            if key in data:
                values[attr] = data[key]
            elif attr in data:
                values[attr] = data[attr]

        for attr in _SAMPLE_INT_FIELDS:
            if attr in values and not _is_int(values[attr]):
                raise ValueError(f"Invalid activity sample: {attr} must be an integer")
        for attr in _SAMPLE_STR_FIELDS:
            if attr in values and not isinstance(values[attr], str):
                raise ValueError(f"Invalid activity sample: {attr} must be a string")
        for attr in ("owner_bundle_id", "url"):
            if values.get(attr) is not None and not isinstance(values[attr], str):
                raise ValueError(f"Invalid activity sample: {attr} must be a string")
        if "window_id" in values and not (
            _is_int(values["window_id"]) or isinstance(values["window_id"], str)
        ):
            raise ValueError("Invalid activity sample: window_id must be an integer or string")
        if values.get("count", 1) < 1:
            raise ValueError("Invalid activity sample: count must be at least 1")

        try:
            return cls(**values)
        except TypeError as exc:
            raise ValueError(f"Invalid activity sample: {exc}") from exc


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

@dataclass
class Instance:
    """A contiguous usage period for one grouping key."""
    start_time: int
    end_time: int
    duration: int  # sum of count * sampling interval

    def to_dict(self) -> dict[str, int]:
        return {
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
        }


@dataclass
class GroupReport:
    """Total time for one application, domain or title."""
    key: str
    total_duration: int
    instances: list[Instance] = field(default_factory=list)
    percentage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "totalDuration": self.total_duration,
            "percentage": self.percentage,
            "instances": [i.to_dict() for i in self.instances],
        }


@dataclass
class DurationsReport:
    """Ranked, capped reports by application, domain and title."""
    applications: list[GroupReport] = field(default_factory=list)
    domains: list[GroupReport] = field(default_factory=list)
    titles: list[GroupReport] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "applications": [g.to_dict() for g in self.applications],
            "domains": [g.to_dict() for g in self.domains],
            "titles": [g.to_dict() for g in self.titles],
        }


@dataclass
class ProductivityBreakdown:
    """Time split by classification verdict."""
    productive_ms: int = 0
    distracting_ms: int = 0
    unclassified_ms: int = 0
    by_category: dict[str, int] = field(default_factory=dict)  # category id -> ms

    @property
    def total_ms(self) -> int:
        return self.productive_ms + self.distracting_ms + self.unclassified_ms

    @property
    def score(self) -> float:
        """Productive share of rated time, in percent."""
        rated = self.productive_ms + self.distracting_ms
        if rated == 0:
            return 0.0
        return self.productive_ms / rated * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "productiveMs": self.productive_ms,
            "distractingMs": self.distracting_ms,
            "unclassifiedMs": self.unclassified_ms,
            "byCategory": dict(self.by_category),
            "score": self.score,
        }


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class MatchType(Enum):
    """Which activity attribute a rule is tested against."""
    APP_NAME = "appName"
    DOMAIN = "domain"
    TITLE_PATTERN = "titlePattern"


class MatchStrategy(Enum):
    """How a rule pattern is compared with the attribute."""
    EXACT = "exact"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    REGEX = "regex"


class DurationCondition(Enum):
    GT = ">"
    LT = "<"
    EQ = "="
    GE = ">="
    LE = "<="


class ClassificationSource(Enum):
    RULE = "rule"
    HEURISTIC = "heuristic"
    NONE = "none"


class Rating:
    """Rule ratings."""
    DISTRACTING = 0
    PRODUCTIVE = 1


@dataclass(frozen=True)
class ClassificationRule:
    """A user rule mapping an activity pattern to a verdict.

    A rule carries a rating (0 distracting, 1 productive), a category id,
    or both.
    """
    id: str
    priority: int
    match_type: MatchType
    match_strategy: MatchStrategy
    pattern: str
    rating: Optional[int] = None
    category_id: Optional[str] = None
    is_active: bool = True
    created_at: int = 0
    duration_seconds: Optional[int] = None
    duration_condition: Optional[DurationCondition] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "priority": self.priority,
            "matchType": self.match_type.value,
            "matchStrategy": self.match_strategy.value,
            "pattern": self.pattern,
            "rating": self.rating,
            "categoryId": self.category_id,
            "isActive": self.is_active,
            "createdAt": self.created_at,
            "duration": self.duration_seconds,
            "durationCondition": (
                self.duration_condition.value if self.duration_condition else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClassificationRule":
        """Parse a rule dict.

        Raises ValueError on missing keys, bad enums, non-numeric numbers,
        a rating other than 0 or 1, or a non-string pattern.
        """
        rating = data.get("rating")
        if rating is not None and (not _is_int(rating) or rating not in (0, 1)):
            raise ValueError(f"Rule rating must be 0, 1 or null, not {rating!r}")
        duration = data.get("duration")
        if duration is not None and not _is_int(duration):
            raise ValueError(f"Rule duration must be an integer, not {duration!r}")
        try:
            if not isinstance(data["pattern"], str):
                raise ValueError("Rule pattern must be a string")
            condition = data.get("durationCondition")
            return cls(
                id=str(data["id"]),
                priority=int(data.get("priority", 0)),
                match_type=MatchType(data["matchType"]),
                match_strategy=MatchStrategy(data.get("matchStrategy", "exact")),
                pattern=data["pattern"],
                rating=rating,
                category_id=data.get("categoryId"),
                is_active=bool(data.get("isActive", True)),
                created_at=int(data.get("createdAt", 0)),
                duration_seconds=duration,
                duration_condition=DurationCondition(condition) if condition else None,
            )
        except KeyError as exc:
            raise ValueError(f"Rule is missing required key {exc}") from exc
        except TypeError as exc:
            raise ValueError(f"Invalid rule: {exc}") from exc


@dataclass
class ActivityAttributes:
    """What the rule engine sees of an activity."""
    app_name: str
    domain: Optional[str] = None
    title: Optional[str] = None
    duration_seconds: Optional[float] = None
    bundle_id: Optional[str] = None
    app_category: Optional[str] = None  # OS-reported, e.g. public.app-category.games

    @classmethod
    def from_sample(
        cls, sample: ActivitySample, duration_seconds: Optional[float] = None
    ) -> "ActivityAttributes":
        kind = sample.kind
        return cls(
            app_name=sample.owner_name,
            domain=kind.domain if isinstance(kind, BrowserTab) else None,
            title=sample.title,
            duration_seconds=duration_seconds,
            bundle_id=sample.owner_bundle_id,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActivityAttributes":
        """Build attributes from camelCase (or snake_case) keys.

        Raises ValueError when appName is missing or a field has the wrong type.
        """
        if "appName" not in data and "app_name" not in data:
            raise ValueError("appName is required")
        attrs = cls(
            app_name=data.get("appName", data.get("app_name")),
            domain=data.get("domain"),
            title=data.get("title"),
            duration_seconds=data.get("durationSeconds", data.get("duration_seconds")),
            bundle_id=data.get("bundleId", data.get("bundle_id")),
            app_category=data.get("appCategory", data.get("app_category")),
        )
        if not isinstance(attrs.app_name, str):
            raise ValueError("appName must be a string")
        for name in ("domain", "title", "bundle_id", "app_category"):
            value = getattr(attrs, name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"{name} must be a string")
        duration = attrs.duration_seconds
        if duration is not None and (
            isinstance(duration, bool) or not isinstance(duration, (int, float))
        ):
            raise ValueError("durationSeconds must be a number")
        return attrs


@dataclass(frozen=True)
class ClassificationResult:
    """Verdict of the rule engine, tagged with where it came from."""
    source: ClassificationSource
    rule_id: Optional[str] = None
    rating: Optional[int] = None
    category_id: Optional[str] = None
    matched_by: Optional[MatchType] = None
    suggested_category: Optional[str] = None  # heuristic tier only
    confidence: float = 0.0

    @property
    def is_productive(self) -> bool:
        return self.rating == Rating.PRODUCTIVE

    @property
    def is_distracting(self) -> bool:
        return self.rating == Rating.DISTRACTING

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "ruleId": self.rule_id,
            "rating": self.rating,
            "categoryId": self.category_id,
            "matchedBy": self.matched_by.value if self.matched_by else None,
            "suggestedCategory": self.suggested_category,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class AppSuggestion:
    """Category suggested from application metadata."""
    category: str
    confidence: float
    source: str  # "lsappcategory" or "vendor"


@dataclass
class RuleSuggestion:
    """A rule proposed from a manually rated activity."""
    name: str
    description: str
    match_type: MatchType
    match_strategy: MatchStrategy
    pattern: str
    rating: int
    duration_seconds: Optional[int] = None
    duration_condition: Optional[DurationCondition] = None

    def to_rule(
        self, rule_id: str, priority: int = 0, created_at: int = 0
    ) -> ClassificationRule:
        return ClassificationRule(
            id=rule_id,
            priority=priority,
            match_type=self.match_type,
            match_strategy=self.match_strategy,
            pattern=self.pattern,
            rating=self.rating,
            created_at=created_at,
            duration_seconds=self.duration_seconds,
            duration_condition=self.duration_condition,
        )

    def to_dict(self) -> dict[str, Any]:
        """Suggestion fields, using the same keys as ``ClassificationRule.to_dict``."""
        return {
            "name": self.name,
            "description": self.description,
            "matchType": self.match_type.value,
            "matchStrategy": self.match_strategy.value,
            "pattern": self.pattern,
            "rating": self.rating,
            "duration": self.duration_seconds,
            "durationCondition": (
                self.duration_condition.value if self.duration_condition else None
            ),
        }
