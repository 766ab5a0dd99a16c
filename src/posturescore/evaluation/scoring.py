"""Shared scoring helpers: tier normalisation and gated tier aggregation."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Sequence

from posturescore.config import TIER_WEIGHTS, TierWeights
from posturescore.errors import with_message


class Tier(enum.IntEnum):
    BASIC = 1
    REVIEW = 2
    CONTEXT = 3
    THOROUGH_REVIEW = 4
    ADMIN_THOROUGH_REVIEW = 5


@dataclass
class ScoresInfo:
    basic: int = 0
    review: int = 0
    adminReview: int = 0
    context: int = 0
    thoroughReview: int = 0
    adminThoroughReview: int = 0
    codeownerReview: int = 0


# Sub-scores that make up each tier.
TIER_FIELDS: dict[Tier, tuple[str, ...]] = {
    Tier.BASIC: ("basic",),
    Tier.REVIEW: ("review", "adminReview"),
    Tier.CONTEXT: ("context",),
    Tier.THOROUGH_REVIEW: ("thoroughReview", "codeownerReview"),
    Tier.ADMIN_THOROUGH_REVIEW: ("adminThoroughReview",),
}


@dataclass
class LevelScore:
    """Sub-scores for one branch, each paired with the branch's maximum."""

    scores: ScoresInfo = field(default_factory=ScoresInfo)
    maxes: ScoresInfo = field(default_factory=ScoresInfo)

    def add(self, sub_score: str, score: int, max_score: int) -> None:
        setattr(self.scores, sub_score, getattr(self.scores, sub_score) + score)
        setattr(self.maxes, sub_score, getattr(self.maxes, sub_score) + max_score)


def normalize_score(score: int, max_score: int, weight: int) -> float:
    """Scale score/max_score to the tier weight. A zero max earns the full weight."""
    if max_score == 0:
        return float(weight)
    return score * weight / max_score


def sum_tier(tier: Tier, level_scores: Sequence[LevelScore]) -> tuple[int, int]:
    """Return (score, max) for a tier summed over all branches."""
    score = max_score = 0
    for ls in level_scores:
        for name in TIER_FIELDS[tier]:
            score += getattr(ls.scores, name)
            max_score += getattr(ls.maxes, name)
    return score, max_score


def _tier_weight(tier: Tier, weights: TierWeights) -> int:
    return {
        Tier.BASIC: weights.basic,
        Tier.REVIEW: weights.review,
        Tier.CONTEXT: weights.context,
        Tier.THOROUGH_REVIEW: weights.thorough_review,
        Tier.ADMIN_THOROUGH_REVIEW: weights.admin_thorough_review,
    }[tier]


def compute_final_score(level_scores: Sequence[LevelScore], weights: TierWeights = TIER_WEIGHTS) -> int:
    """Sequential gated scoring over the five tiers.

    Each tier adds its normalised contribution. A tier that is not complete
    stops the ladder, so higher tiers earn nothing until every lower tier is
    fully satisfied. Truncation to int happens once, at the end.
    Raises InternalError when there is nothing to score.
    """
    if not level_scores:
        raise with_message("scores are empty")

    score = 0.0
    for tier in Tier:
        tier_score, tier_max = sum_tier(tier, level_scores)
        score += normalize_score(tier_score, tier_max, _tier_weight(tier, weights))
        if tier_score < tier_max:
            break
    return int(score)
