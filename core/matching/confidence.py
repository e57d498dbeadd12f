# core/matching/confidence.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ConfidenceTier(str, Enum):
    EXACT = "exact"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


TITLE_WEIGHT = 0.7
AUTHOR_WEIGHT = 0.3

# Ordered from strongest to weakest; the first threshold the score reaches wins.
TIER_THRESHOLDS = (
    (ConfidenceTier.EXACT, 0.97),
    (ConfidenceTier.HIGH, 0.85),
    (ConfidenceTier.MEDIUM, 0.70),
    (ConfidenceTier.LOW, 0.50),
)

TIER_RANK = {
    ConfidenceTier.NONE: 0,
    ConfidenceTier.LOW: 1,
    ConfidenceTier.MEDIUM: 2,
    ConfidenceTier.HIGH: 3,
    ConfidenceTier.EXACT: 4,
}

AUTO_LINK_TIERS = frozenset({ConfidenceTier.EXACT, ConfidenceTier.HIGH})
SUGGESTION_TIERS = frozenset({ConfidenceTier.MEDIUM, ConfidenceTier.LOW})


@dataclass(frozen=True)
class MatchConfidence:
    tier: ConfidenceTier
    score: float
    auto_linkable: bool
    suggestion_worthy: bool


def tier_for_score(score: float) -> ConfidenceTier:
    for tier, threshold in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return ConfidenceTier.NONE


def classify(title_score: float, author_score: Optional[float] = None) -> MatchConfidence:
    """Turn title/author scores into a confidence tier and link decision.

    With an author score the combined score is 70% title, 30% author.
    Without one the title decides alone but can reach ``high`` at most,
    since nothing corroborates it.
    """
    title_score = min(max(title_score or 0.0, 0.0), 1.0)
    if author_score is None:
        combined = title_score
        tier = tier_for_score(combined)
        if tier is ConfidenceTier.EXACT:
            tier = ConfidenceTier.HIGH
    else:
        author_score = min(max(author_score, 0.0), 1.0)
        combined = title_score * TITLE_WEIGHT + author_score * AUTHOR_WEIGHT
        tier = tier_for_score(combined)

    return MatchConfidence(
        tier=tier,
        score=round(combined, 4),
        auto_linkable=tier in AUTO_LINK_TIERS,
        suggestion_worthy=tier in SUGGESTION_TIERS,
    )
