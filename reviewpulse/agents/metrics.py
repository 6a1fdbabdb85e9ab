"""
Metric Calculator.

Computes one PeriodMetrics record from the (annotated) reviews of a window.
"""

import logging
import math
import statistics
from collections import Counter, defaultdict
from typing import Dict, List, Optional

import config.settings as settings
from reviewpulse.agents.scoring import ScoreNormalizer
from reviewpulse.models.metrics import (
    KeywordFrequency,
    PeriodDefinition,
    PeriodMetrics,
    TagFrequency,
    TopicFrequency,
)
from reviewpulse.models.review import Review
from reviewpulse.platforms.base import PlatformAdapter

logger = logging.getLogger(__name__)


def _percent(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


def _mean(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return round(sum(values) / len(values), 2)


def rating_bucket(rating: float) -> int:
    """Histogram bucket: rating rounded half-up, clamped to 1-5."""
    return max(1, min(5, int(math.floor(rating + 0.5))))


def _ranked(counter: Counter, limit: int) -> List[tuple]:
    """Entries sorted by count descending, then by name."""
    entries = [(name, count) for name, count in counter.items() if len(name) >= settings.MIN_KEYWORD_LENGTH]
    entries.sort(key=lambda item: (-item[1], item[0]))
    return entries[:limit]


class MetricCalculator:
    """
    Aggregates one window of reviews for a platform.

    Ratings and recommendation flags are read through the platform adapter,
    so the same calculator serves every platform.
    """

    def __init__(
        self,
        adapter: PlatformAdapter,
        normalizer: Optional[ScoreNormalizer] = None,
        top_k: int = settings.TOP_K_KEYWORDS
    ):
        self.adapter = adapter
        self.normalizer = normalizer or ScoreNormalizer()
        self.top_k = top_k

    def compute(self, reviews: List[Review], period: PeriodDefinition) -> PeriodMetrics:
        """
        Compute metrics for one window. Zero reviews yield the empty record.

        Scores are left at zero; the orchestrator applies the normalizer.
        """
        metrics = PeriodMetrics.empty(period)
        total = len(reviews)
        if total == 0:
            return metrics

        metrics.review_count = total
        self._rating_metrics(metrics, reviews)
        self._engagement_metrics(metrics, reviews)
        self._sentiment_metrics(metrics, reviews)
        self._response_metrics(metrics, reviews)
        self._platform_extras(metrics, reviews)

        metrics.top_keywords = self.top_keywords(reviews)
        metrics.top_tags = self.top_tags(reviews)
        metrics.top_topics = self.top_topics(reviews)
        metrics.category_counts = self.category_counts(reviews)
        metrics.review_quality = self.normalizer.quality_score(reviews)

        logger.debug(f"Computed {period.label}: {total} reviews, avg rating={metrics.average_rating}")
        return metrics

    def _rating_metrics(self, metrics: PeriodMetrics, reviews: List[Review]) -> None:
        ratings = []
        for review in reviews:
            rating = self.adapter.extract_rating(review)
            if rating is None:
                if self.adapter.rating_based:
                    metrics.unrated_count += 1
                continue
            ratings.append(rating)
            metrics.rating_histogram[rating_bucket(rating)] += 1

        metrics.average_rating = _mean(ratings)
        metrics.recommended_count = sum(1 for r in reviews if self.adapter.is_recommended(r))
        metrics.not_recommended_count = len(reviews) - metrics.recommended_count

        if self.adapter.rating_based:
            approving = sum(1 for rating in ratings if rating >= settings.APPROVAL_MIN_RATING)
            metrics.approval_rate = _percent(approving, len(ratings))
        else:
            metrics.recommendation_rate = _percent(metrics.recommended_count, len(reviews))
            metrics.approval_rate = metrics.recommendation_rate

    @staticmethod
    def _engagement_metrics(metrics: PeriodMetrics, reviews: List[Review]) -> None:
        total = len(reviews)
        metrics.total_likes = sum(r.likes for r in reviews)
        metrics.total_comments = sum(r.comments for r in reviews)
        metrics.total_photos = sum(r.photo_count for r in reviews)
        metrics.reviews_with_photos = sum(1 for r in reviews if r.photo_count > 0)

        metrics.average_likes_per_review = round(metrics.total_likes / total, 2)
        metrics.average_comments_per_review = round(metrics.total_comments / total, 2)
        metrics.average_photos_per_review = round(metrics.total_photos / total, 2)
        metrics.average_engagement_per_review = round(
            (metrics.total_likes + metrics.total_comments) / total, 2
        )

    @staticmethod
    def _sentiment_metrics(metrics: PeriodMetrics, reviews: List[Review]) -> None:
        counts = Counter(
            r.annotation.emotional if r.annotation is not None else "neutral"
            for r in reviews
        )
        metrics.sentiment_positive = counts["positive"]
        metrics.sentiment_neutral = counts["neutral"]
        metrics.sentiment_negative = counts["negative"]
        metrics.sentiment_score = round(
            (metrics.sentiment_positive - metrics.sentiment_negative) / len(reviews), 2
        )

    @staticmethod
    def _response_metrics(metrics: PeriodMetrics, reviews: List[Review]) -> None:
        replied = [r for r in reviews if r.has_reply]
        metrics.response_rate = _percent(len(replied), len(reviews))

        # Only strictly positive deltas count; missing or early reply dates are skipped
        hours = []
        for review in replied:
            if review.reply_at is None:
                continue
            delta = (review.reply_at - review.published_at).total_seconds() / 3600
            if delta > 0:
                hours.append(delta)

        if hours:
            metrics.average_response_hours = round(sum(hours) / len(hours), 2)
            metrics.median_response_hours = round(statistics.median(hours), 2)

    def _platform_extras(self, metrics: PeriodMetrics, reviews: List[Review]) -> None:
        """Sub-rating averages, stay lengths and room tips."""
        metrics.sub_rating_averages = {
            name: _mean([r.sub_ratings[name] for r in reviews if name in r.sub_ratings])
            for name in self.adapter.sub_rating_names()
        }

        nights = [r.length_of_stay for r in reviews if r.length_of_stay is not None]
        metrics.average_length_of_stay = _mean(nights)
        for n in nights:
            if n < settings.SHORT_STAY_MAX_NIGHTS:
                metrics.stay_lengths["short"] += 1
            elif n > settings.LONG_STAY_MIN_NIGHTS:
                metrics.stay_lengths["long"] += 1
            else:
                metrics.stay_lengths["medium"] += 1

        metrics.reviews_with_room_tips = sum(1 for r in reviews if r.room_tip and r.room_tip.strip())

    def top_keywords(self, reviews: List[Review]) -> List[KeywordFrequency]:
        counter = Counter()
        for review in reviews:
            if review.annotation is not None:
                counter.update(review.annotation.keywords)
        return [KeywordFrequency(keyword, count) for keyword, count in _ranked(counter, self.top_k)]

    def top_tags(self, reviews: List[Review]) -> List[TagFrequency]:
        """Tags with their average 5-point rating and average sentiment."""
        counter = Counter()
        ratings: Dict[str, List[float]] = defaultdict(list)
        sentiments: Dict[str, List[float]] = defaultdict(list)

        for review in reviews:
            rating = self.adapter.extract_rating(review)
            sentiment = review.annotation.sentiment if review.annotation is not None else 0.0
            for tag in set(self.adapter.tags_of(review)):
                counter[tag] += 1
                sentiments[tag].append(sentiment)
                if rating is not None:
                    ratings[tag].append(rating)

        return [
            TagFrequency(
                tag=tag,
                count=count,
                average_rating=_mean(ratings[tag]),
                average_sentiment=_mean(sentiments[tag]) or 0.0,
            )
            for tag, count in _ranked(counter, self.top_k)
        ]

    def top_topics(self, reviews: List[Review]) -> List[TopicFrequency]:
        """Topics with the keywords most often seen alongside them."""
        counter = Counter()
        co_keywords: Dict[str, Counter] = defaultdict(Counter)

        for review in reviews:
            if review.annotation is None:
                continue
            for topic in review.annotation.topics:
                counter[topic] += 1
                co_keywords[topic].update(review.annotation.keywords)

        topics = []
        for topic, count in _ranked(counter, self.top_k):
            keywords = [k for k, _ in _ranked(co_keywords[topic], settings.MAX_REVIEW_KEYWORDS)]
            topics.append(TopicFrequency(topic=topic, count=count, keywords=keywords))
        return topics

    def category_counts(self, reviews: List[Review]) -> Dict[str, int]:
        counts = {bucket: 0 for bucket in self.adapter.category_buckets()}
        for review in reviews:
            bucket = self.adapter.category_of(review)
            if bucket is not None:
                counts[bucket] += 1
        return counts
