# triage/scoring/engine.py
"""
Per-item quality scores used for leaderboard ranking.

Two profiles exist. ``tiered_rating`` is the default and only looks at the
customer rating and the manager's internal rating. ``weighted_sentiment`` is
the older multi-factor formula, kept selectable for deployments that still
rank by it.
"""

from enum import Enum
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from triage.models.schemas import FeedbackItem, Sentiment


class ScoringProfile(str, Enum):
    TIERED_RATING = "tiered_rating"
    WEIGHTED_SENTIMENT = "weighted_sentiment"


DEFAULT_PROFILE = ScoringProfile.TIERED_RATING


class TieredRatingWeights(BaseModel):
    """(minimum rating, points) pairs checked from the highest threshold down."""
    tiers: List[Tuple[int, int]] = Field(default_factory=lambda: [(5, 10), (4, 7), (3, 3), (2, 1)])


class WeightedSentimentWeights(BaseModel):
    rating_multiplier: int = 8
    positive_bonus: int = 35
    neutral_bonus: int = 12
    negative_bonus: int = -30
    keyword_points: int = 5
    keyword_cap: int = 25
    theme_bonus: int = 8


Weights = Union[TieredRatingWeights, WeightedSentimentWeights]


def _tier(value: Optional[int], tiers: List[Tuple[int, int]]) -> int:
    if value is None:
        return 0
    for threshold, points in sorted(tiers, reverse=True):
        if value >= threshold:
            return points
    return 0


def score_tiered(item: FeedbackItem, weights: Optional[TieredRatingWeights] = None) -> int:
    weights = weights or TieredRatingWeights()
    return _tier(item.rating, weights.tiers) + _tier(item.manager_rating, weights.tiers)


def score_weighted(item: FeedbackItem, weights: Optional[WeightedSentimentWeights] = None) -> int:
    weights = weights or WeightedSentimentWeights()

    rating_score = 0 if item.rating is None else item.rating * weights.rating_multiplier
    if item.sentiment == Sentiment.POSITIVE:
        sentiment_score = weights.positive_bonus
    elif item.sentiment == Sentiment.NEUTRAL:
        sentiment_score = weights.neutral_bonus
    else:
        sentiment_score = weights.negative_bonus
    keyword_score = min(weights.keyword_cap, len(item.keywords) * weights.keyword_points)
    theme_score = weights.theme_bonus if item.theme else 0

    return rating_score + sentiment_score + keyword_score + theme_score


def score(
    item: FeedbackItem,
    profile: Union[ScoringProfile, str] = DEFAULT_PROFILE,
    weights: Optional[Weights] = None
) -> int:
    """
    Score one feedback item.

    Args:
        item: Feedback item to score
        profile: Scoring profile name
        weights: Optional weight overrides matching the profile

    Returns:
        Integer score; absent ratings, keywords and themes contribute nothing
    """
    profile = ScoringProfile(profile)
    if profile == ScoringProfile.WEIGHTED_SENTIMENT:
        if weights is not None and not isinstance(weights, WeightedSentimentWeights):
            raise TypeError("weighted_sentiment profile requires WeightedSentimentWeights")
        return score_weighted(item, weights)

    if weights is not None and not isinstance(weights, TieredRatingWeights):
        raise TypeError("tiered_rating profile requires TieredRatingWeights")
    return score_tiered(item, weights)
