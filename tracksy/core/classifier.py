"""Activity classifier for Tracksy.

Assigns a productivity verdict to an activity using prioritized pattern
rules. Classification falls through a waterfall:

1. the highest-priority active rule that matches (``source="rule"``);
2. a category suggested from application metadata (``source="heuristic"``);
3. nothing (``source="none"``).

Among matching rules of equal priority the more specific strategy wins
(exact, then starts_with, then contains, then regex), then the rule
created first.
"""

import json
import logging
import operator
import re
from functools import lru_cache
from pathlib import Path
from typing import Optional

from tracksy.core.app_metadata import suggest_category
from tracksy.core.models import (
    ActivityAttributes,
    ClassificationResult,
    ClassificationRule,
    ClassificationSource,
    DurationCondition,
    MatchStrategy,
    MatchType,
)

logger = logging.getLogger(__name__)

_SPECIFICITY = {
    MatchStrategy.EXACT: 0,
    MatchStrategy.STARTS_WITH: 1,
    MatchStrategy.CONTAINS: 2,
    MatchStrategy.REGEX: 3,
}

_DURATION_OPS = {
    DurationCondition.GT: operator.gt,
    DurationCondition.LT: operator.lt,
    DurationCondition.EQ: operator.eq,
    DurationCondition.GE: operator.ge,
    DurationCondition.LE: operator.le,
}

UNCLASSIFIED = ClassificationResult(source=ClassificationSource.NONE)


class Classifier:
    """Classifies activities against a snapshot of classification rules."""

    def __init__(self, rules: list[ClassificationRule]) -> None:
        self.rules = list(rules)

    def classify(
        self, activity: ActivityAttributes, use_heuristic: bool = True
    ) -> ClassificationResult:
        return classify(activity, self.rules, use_heuristic=use_heuristic)

    @staticmethod
    def load_rules(path: str) -> list[ClassificationRule]:
        """Deserialize classification rules from a JSON file.

        The file must contain a JSON array of rule objects using the keys
        of ``ClassificationRule.to_dict``.
        """
        file_path = Path(path)
        with open(file_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        return [ClassificationRule.from_dict(entry) for entry in data]

    @staticmethod
    def save_rules(rules: list[ClassificationRule], path: str) -> None:
        """Serialize classification rules to a JSON file."""
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        data = [rule.to_dict() for rule in rules]
        with open(file_path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)


def classify(
    activity: ActivityAttributes,
    rules: list[ClassificationRule],
    use_heuristic: bool = True,
) -> ClassificationResult:
    """Return the verdict for *activity* under *rules*.

    Never raises for bad rule patterns; a rule whose regex does not compile
    simply never matches. The result depends only on the arguments.
    """
    best: Optional[tuple[tuple[int, int, int, int], ClassificationRule]] = None

    for index, rule in enumerate(rules):
        if not rule.is_active or not rule_matches(rule, activity):
            continue
        key = (-rule.priority, _SPECIFICITY[rule.match_strategy], rule.created_at, index)
        if best is None or key < best[0]:
            best = (key, rule)

    if best is not None:
        rule = best[1]
        return ClassificationResult(
            source=ClassificationSource.RULE,
            rule_id=rule.id,
            rating=rule.rating,
            category_id=rule.category_id,
            matched_by=rule.match_type,
            confidence=1.0,
        )

    if use_heuristic:
        suggestion = suggest_category(activity.bundle_id, activity.app_category)
        if suggestion is not None:
            return ClassificationResult(
                source=ClassificationSource.HEURISTIC,
                suggested_category=suggestion.category,
                confidence=suggestion.confidence,
            )

    return UNCLASSIFIED


def rule_matches(rule: ClassificationRule, activity: ActivityAttributes) -> bool:
    """Return True if *rule* matches *activity*, ignoring ``is_active``."""
    value = _attribute_for(rule.match_type, activity)
    if not value or not _string_matches(value, rule.pattern, rule.match_strategy):
        return False

    if rule.duration_seconds is not None and rule.duration_condition is not None:
        if activity.duration_seconds is None:
            return False
        compare = _DURATION_OPS[rule.duration_condition]
        return compare(activity.duration_seconds, rule.duration_seconds)

    return True


def _attribute_for(match_type: MatchType, activity: ActivityAttributes) -> Optional[str]:
    if match_type is MatchType.APP_NAME:
        return activity.app_name
    if match_type is MatchType.DOMAIN:
        return activity.domain
    return activity.title


def _string_matches(value: str, pattern: str, strategy: MatchStrategy) -> bool:
    if strategy is MatchStrategy.EXACT:
        return value == pattern
    if strategy is MatchStrategy.CONTAINS:
        return pattern.lower() in value.lower()
    if strategy is MatchStrategy.STARTS_WITH:
        return value.lower().startswith(pattern.lower())
    compiled = _compile(pattern)
    return compiled is not None and compiled.search(value) is not None


@lru_cache(maxsize=512)
def _compile(pattern: str) -> Optional[re.Pattern]:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        logger.debug("Ignoring rule with invalid regex %r: %s", pattern, exc)
        return None
