"""Rule suggestions built from a manually rated activity."""

from typing import Optional

from tracksy.core.models import (
    ActivityAttributes,
    DurationCondition,
    MatchStrategy,
    MatchType,
    Rating,
    RuleSuggestion,
)

MIN_TITLE_LENGTH = 5
TITLE_PATTERN_LENGTH = 50
TITLE_LABEL_LENGTH = 30


def generate_rule_suggestions(
    activity: ActivityAttributes, rating: int
) -> list[RuleSuggestion]:
    """Return candidate rules that would give *activity* the same *rating*."""
    verdict = "productive" if rating == Rating.PRODUCTIVE else "distracting"
    suggestions: list[RuleSuggestion] = []

    if activity.app_name:
        suggestions.append(
            RuleSuggestion(
                name=f"App: {activity.app_name}",
                description=f"Activities in {activity.app_name} are {verdict}",
                match_type=MatchType.APP_NAME,
                match_strategy=MatchStrategy.EXACT,
                pattern=activity.app_name,
                rating=rating,
            )
        )

    if activity.domain:
        suggestions.append(
            RuleSuggestion(
                name=f"Domain: {activity.domain}",
                description=f"Activities on {activity.domain} are {verdict}",
                match_type=MatchType.DOMAIN,
                match_strategy=MatchStrategy.EXACT,
                pattern=activity.domain,
                rating=rating,
            )
        )

    if activity.title and len(activity.title) > MIN_TITLE_LENGTH:
        label = activity.title[:TITLE_LABEL_LENGTH]
        if len(activity.title) > TITLE_LABEL_LENGTH:
            label += "..."
        suggestions.append(
            RuleSuggestion(
                name=f"Title contains: {label}",
                description=f'Activities with "{label}" in the title are {verdict}',
                match_type=MatchType.TITLE_PATTERN,
                match_strategy=MatchStrategy.CONTAINS,
                pattern=activity.title[:TITLE_PATTERN_LENGTH],
                rating=rating,
            )
        )

    if activity.duration_seconds:
        minutes = round(activity.duration_seconds / 60)
        if rating == Rating.PRODUCTIVE:
            condition, phrase = DurationCondition.GT, "longer than"
        else:
            condition, phrase = DurationCondition.LT, "shorter than"
        # any application, constrained by duration only
        suggestions.append(
            RuleSuggestion(
                name=f"Duration {condition.value} {minutes} minutes",
                description=f"Activities {phrase} {minutes} minutes are {verdict}",
                match_type=MatchType.APP_NAME,
                match_strategy=MatchStrategy.REGEX,
                pattern=".*",
                rating=rating,
                duration_seconds=int(activity.duration_seconds),
                duration_condition=condition,
            )
        )

    return suggestions


def best_rule_suggestion(
    activity: ActivityAttributes, rating: int
) -> Optional[RuleSuggestion]:
    """Return the single most useful suggestion: domain, then app, then title."""
    suggestions = generate_rule_suggestions(activity, rating)
    if not suggestions:
        return None

    for wanted in (MatchType.DOMAIN, MatchType.APP_NAME, MatchType.TITLE_PATTERN):
        for suggestion in suggestions:
            if suggestion.match_type is wanted and suggestion.duration_condition is None:
                return suggestion
    return suggestions[0]
