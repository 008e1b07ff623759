"""Priority scoring from business value, complexity and client urgency."""

from typing import Mapping, NamedTuple

# Points per criterion. Complexity is inverted: harder work scores lower.
PRIORITY_SCORES = {
    "business_value": {"high": 3, "medium": 2, "low": 1},
    "technical_complexity": {"high": 1, "medium": 2, "low": 3},
    "client_priority": {"urgent": 4, "high": 3, "normal": 2, "low": 1},
}

HIGH_PRIORITY_THRESHOLD = 8
MEDIUM_PRIORITY_THRESHOLD = 5

PRIORITY_LEVELS = ("high", "medium", "low")


class PriorityCriteria(NamedTuple):
    """Inputs to the priority rubric."""

    business_value: str  # high | medium | low
    technical_complexity: str  # high | medium | low
    client_priority: str  # urgent | high | normal | low

    @classmethod
    def from_mapping(cls, criteria: Mapping[str, str]) -> "PriorityCriteria":
        return cls(
            business_value=criteria["business_value"],
            technical_complexity=criteria["technical_complexity"],
            client_priority=criteria["client_priority"],
        )


def score_priority(criteria: PriorityCriteria) -> int:
    """Sum the rubric points for the three criteria (3..10)."""
    return (
        PRIORITY_SCORES["business_value"][criteria.business_value]
        + PRIORITY_SCORES["technical_complexity"][criteria.technical_complexity]
        + PRIORITY_SCORES["client_priority"][criteria.client_priority]
    )


def calculate_overall_priority(criteria: PriorityCriteria | Mapping[str, str]) -> str:
    """
    Map the three criteria onto a priority level.

    Scores of 8 or more are "high", 5 to 7 "medium", anything lower "low".

    Example:
        >>> calculate_overall_priority(PriorityCriteria("high", "low", "urgent"))
        'high'
    """
    if not isinstance(criteria, PriorityCriteria):
        criteria = PriorityCriteria.from_mapping(criteria)
    score = score_priority(criteria)
    if score >= HIGH_PRIORITY_THRESHOLD:
        return "high"
    if score >= MEDIUM_PRIORITY_THRESHOLD:
        return "medium"
    return "low"
