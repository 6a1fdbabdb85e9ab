"""
Distribution Calculator.

Breaks the full review set into mutually exclusive buckets along
independent dimensions.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List

import config.settings as settings
from reviewpulse.agents.metrics import rating_bucket
from reviewpulse.models.metrics import DistributionSnapshot
from reviewpulse.models.review import Review, as_utc
from reviewpulse.platforms.base import PlatformAdapter

logger = logging.getLogger(__name__)

RECENCY_BUCKETS = ("last_week", "last_month", "last_six_months")


class DistributionCalculator:
    """Computes a DistributionSnapshot over all reviews of a business."""

    def __init__(self, adapter: PlatformAdapter):
        self.adapter = adapter

    def compute(self, reviews: List[Review], now: datetime) -> DistributionSnapshot:
        """
        Args:
            reviews: All reviews for the business
            now: The run's snapshot time

        Returns:
            DistributionSnapshot where every dimension except categories
            sums to the number of reviews
        """
        now = as_utc(now)
        snapshot = DistributionSnapshot(
            total_reviews=len(reviews),
            category_field=self.adapter.category_field,
            categories={bucket: 0 for bucket in self.adapter.category_buckets()},
        )

        if self.adapter.rating_based:
            snapshot.rating = {str(i): 0 for i in range(1, 6)}
        else:
            snapshot.recommendation = {"recommended": 0, "not_recommended": 0}

        cutoffs = [now - timedelta(days=d) for d in settings.RECENCY_THRESHOLDS_DAYS]

        for review in reviews:
            self._count_rating(snapshot, review)
            snapshot.engagement[self.engagement_level(review)] += 1
            snapshot.photos["with" if review.photo_count > 0 else "without"] += 1
            snapshot.tags["with" if review.tags else "without"] += 1
            snapshot.responses["with" if review.has_reply else "without"] += 1
            snapshot.recency[self._recency_bucket(review.published_at, cutoffs)] += 1

            category = self.adapter.category_of(review)
            if category is not None:
                snapshot.categories[category] += 1

        logger.info(
            f"Distribution over {snapshot.total_reviews} reviews: "
            f"engagement={snapshot.engagement}, recency={snapshot.recency}"
        )
        return snapshot

    def _count_rating(self, snapshot: DistributionSnapshot, review: Review) -> None:
        if not self.adapter.rating_based:
            key = "recommended" if self.adapter.is_recommended(review) else "not_recommended"
            snapshot.recommendation[key] += 1
            return

        rating = self.adapter.extract_rating(review)
        if rating is None:
            snapshot.rating["unrated"] = snapshot.rating.get("unrated", 0) + 1
        else:
            snapshot.rating[str(rating_bucket(rating))] += 1

    @staticmethod
    def engagement_level(review: Review) -> str:
        """high and low are decided first; medium is the remainder."""
        if review.likes > settings.HIGH_ENGAGEMENT_LIKES or review.comments > settings.HIGH_ENGAGEMENT_COMMENTS:
            return "high"
        if review.likes == 0 and review.comments == 0:
            return "low"
        return "medium"

    @staticmethod
    def _recency_bucket(published_at: datetime, cutoffs: List[datetime]) -> str:
        for bucket, cutoff in zip(RECENCY_BUCKETS, cutoffs):
            if published_at >= cutoff:
                return bucket
        return "older"


def bucket_totals(snapshot: DistributionSnapshot) -> Dict[str, int]:
    """Sum of each exhaustive dimension, for consistency checks."""
    return {name: sum(buckets.values()) for name, buckets in snapshot.exhaustive_dimensions().items()}
