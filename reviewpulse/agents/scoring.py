"""
Score Normalizer.

Bounded 0-100 engagement, virality and quality scores computed against
fixed benchmark constants.
"""

import logging
from typing import List

import config.settings as settings
from reviewpulse.models.metrics import PeriodMetrics, Scores
from reviewpulse.models.review import Review

logger = logging.getLogger(__name__)


def clamp_score(value: float) -> float:
    """Clamp to [0, 100] and round to two decimals."""
    return round(max(0.0, min(100.0, value)), 2)


class ScoreNormalizer:
    """
    Derives dashboard scores from a PeriodMetrics record.

    The benchmark divisors (10 engagements, 1 photo, 10 likes, 5 comments)
    put a business performing at a typical baseline near 50.
    """

    def __init__(
        self,
        engagement_benchmark: float = settings.ENGAGEMENT_BENCHMARK,
        photo_benchmark: float = settings.PHOTO_BENCHMARK,
        likes_benchmark: float = settings.LIKES_BENCHMARK,
        comments_benchmark: float = settings.COMMENTS_BENCHMARK
    ):
        self.engagement_benchmark = engagement_benchmark
        self.photo_benchmark = photo_benchmark
        self.likes_benchmark = likes_benchmark
        self.comments_benchmark = comments_benchmark

    def normalize(self, metrics: PeriodMetrics) -> Scores:
        """Each score is clamped independently after computation."""
        return Scores(
            engagement=self.engagement_score(metrics),
            virality=self.virality_score(metrics),
            quality=clamp_score(metrics.review_quality),
        )

    def engagement_score(self, metrics: PeriodMetrics) -> float:
        engagement = 50 * min(1.0, metrics.average_engagement_per_review / self.engagement_benchmark)
        photos = 25 * min(1.0, metrics.average_photos_per_review / self.photo_benchmark)
        responses = 25 * (metrics.response_rate / 100)
        return clamp_score(engagement + photos + responses)

    def virality_score(self, metrics: PeriodMetrics) -> float:
        approval = metrics.recommendation_rate
        if approval is None:
            approval = metrics.approval_rate

        likes = 30 * min(1.0, metrics.average_likes_per_review / self.likes_benchmark)
        comments = 40 * min(1.0, metrics.average_comments_per_review / self.comments_benchmark)
        return clamp_score(likes + comments + 30 * (approval / 100))

    @staticmethod
    def review_quality(review: Review) -> float:
        """
        Per-review quality: base 50, +20 when annotated, +20/+10 for
        at least 5/2 keywords, +10/+5 for engagement above 5/0. Max 100.
        """
        score = 50.0
        if review.annotation is not None:
            score += 20
            keyword_count = len(review.annotation.keywords)
            if keyword_count >= 5:
                score += 20
            elif keyword_count >= 2:
                score += 10

        if review.engagement > 5:
            score += 10
        elif review.engagement > 0:
            score += 5

        return min(100.0, score)

    def quality_score(self, reviews: List[Review]) -> float:
        """Average per-review quality, 0 for no reviews."""
        if not reviews:
            return 0.0
        return clamp_score(sum(self.review_quality(r) for r in reviews) / len(reviews))
