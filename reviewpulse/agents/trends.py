"""
Trend Analyzer.

Monthly review trends, seasonal patterns by calendar month, the overall
engagement trend and content-quality / emotional breakdowns.
"""

import calendar
import logging
from collections import defaultdict
from typing import Dict, List, Sequence

import config.settings as settings
from reviewpulse.models.metrics import MonthlyTrend, SeasonalPattern
from reviewpulse.models.review import EMOTIONAL_CATEGORIES, Review
from reviewpulse.platforms.base import PlatformAdapter

logger = logging.getLogger(__name__)


def slope_direction(values: Sequence[float], tolerance: float = settings.TREND_TOLERANCE) -> str:
    """
    Three-point slope comparison over the last three values.

    The slope (last - first) / (n - 1) is compared with tolerance times the
    mean magnitude of the points; anything within it is "stable".
    """
    points = list(values)[-3:]
    if len(points) < 2:
        return "stable"

    slope = (points[-1] - points[0]) / (len(points) - 1)
    threshold = tolerance * abs(sum(points) / len(points))

    if slope > threshold:
        return "increasing"
    if slope < -threshold:
        return "decreasing"
    return "stable"


def performance_label(approval: float) -> str:
    if approval > 80:
        return "High Performance"
    if approval > 60:
        return "Good Performance"
    return "Below Average"


class TrendAnalyzer:
    """Time-series views over the full review set of one business."""

    def __init__(self, adapter: PlatformAdapter, recent_months: int = settings.RECENT_MONTHS):
        self.adapter = adapter
        self.recent_months = recent_months

    def monthly_trends(self, reviews: List[Review]) -> List[MonthlyTrend]:
        """
        One entry per month with reviews, oldest first, limited to the
        most recent months. Each month's trend_direction compares approval
        with up to two preceding months.
        """
        by_month: Dict[str, List[Review]] = defaultdict(list)
        for review in reviews:
            by_month[review.published_at.strftime("%Y-%m")].append(review)

        trends = []
        for month in sorted(by_month)[-self.recent_months:]:
            month_reviews = by_month[month]
            ratings = [r for r in map(self.adapter.extract_rating, month_reviews) if r is not None]
            trends.append(MonthlyTrend(
                period=month,
                review_count=len(month_reviews),
                average_rating=round(sum(ratings) / len(ratings), 2) if ratings else None,
                approval_rate=self._approval(month_reviews),
                average_engagement=self._average_engagement(month_reviews),
            ))

        for index, trend in enumerate(trends):
            window = [t.approval_rate for t in trends[max(0, index - 2):index + 1]]
            trend.trend_direction = slope_direction(window)

        return trends

    def seasonal_patterns(self, reviews: List[Review]) -> List[SeasonalPattern]:
        """Reviews grouped by calendar month regardless of year."""
        by_month: Dict[int, List[Review]] = defaultdict(list)
        for review in reviews:
            by_month[review.published_at.month].append(review)

        patterns = []
        for month_number in sorted(by_month):
            month_reviews = by_month[month_number]
            approval = self._approval(month_reviews)
            patterns.append(SeasonalPattern(
                month_number=month_number,
                month_name=calendar.month_name[month_number],
                review_count=len(month_reviews),
                average_approval=approval,
                average_engagement=self._average_engagement(month_reviews),
                pattern=performance_label(approval),
            ))
        return patterns

    def engagement_trend(self, trends: List[MonthlyTrend]) -> str:
        return slope_direction([t.average_engagement for t in trends])

    @staticmethod
    def content_quality(reviews: List[Review]) -> Dict[str, int]:
        """detailed: >= 5 keywords, brief: >= 1, minimal: none or unannotated."""
        buckets = {"detailed": 0, "brief": 0, "minimal": 0}
        for review in reviews:
            keyword_count = len(review.annotation.keywords) if review.annotation is not None else 0
            if keyword_count >= settings.MAX_REVIEW_KEYWORDS:
                buckets["detailed"] += 1
            elif keyword_count >= 1:
                buckets["brief"] += 1
            else:
                buckets["minimal"] += 1
        return buckets

    @staticmethod
    def emotional_breakdown(reviews: List[Review]) -> Dict[str, float]:
        """Share of reviews per emotional category, unannotated as neutral."""
        counts = {category: 0 for category in EMOTIONAL_CATEGORIES}
        for review in reviews:
            category = review.annotation.emotional if review.annotation is not None else "neutral"
            counts[category] += 1

        total = len(reviews)
        return {
            category: round(count / total, 4) if total else 0.0
            for category, count in counts.items()
        }

    def _approval(self, reviews: List[Review]) -> float:
        if self.adapter.rating_based:
            ratings = [r for r in map(self.adapter.extract_rating, reviews) if r is not None]
            if not ratings:
                return 0.0
            approving = sum(1 for rating in ratings if rating >= settings.APPROVAL_MIN_RATING)
            return round(approving / len(ratings) * 100, 2)

        if not reviews:
            return 0.0
        recommended = sum(1 for r in reviews if self.adapter.is_recommended(r))
        return round(recommended / len(reviews) * 100, 2)

    @staticmethod
    def _average_engagement(reviews: List[Review]) -> float:
        if not reviews:
            return 0.0
        return round(sum(r.engagement for r in reviews) / len(reviews), 2)
