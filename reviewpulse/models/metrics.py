"""
Analytics data models.

PeriodDefinition, PeriodMetrics, DistributionSnapshot and the combined
AnalyticsResult produced by one run of the engine.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, List, Optional

import config.settings as settings


@dataclass(frozen=True)
class PeriodDefinition:
    """A trailing window of N days, or all time when days is None."""
    key: int
    days: Optional[int]
    label: str

    def __post_init__(self):
        if self.days is not None and self.days <= 0:
            raise ValueError(f"Invalid window length: {self.days}. Must be positive or None")

    @property
    def is_all_time(self) -> bool:
        return self.days is None


def default_periods() -> List[PeriodDefinition]:
    """The fixed seven-entry period table from settings."""
    return [PeriodDefinition(key, days, label) for key, days, label in settings.PERIOD_DEFINITIONS]


@dataclass
class KeywordFrequency:
    keyword: str
    count: int


@dataclass
class TagFrequency:
    tag: str
    count: int
    average_rating: Optional[float] = None
    average_sentiment: float = 0.0


@dataclass
class TopicFrequency:
    topic: str
    count: int
    keywords: List[str] = field(default_factory=list)


@dataclass
class Scores:
    engagement: float
    virality: float
    quality: float


@dataclass
class PeriodMetrics:
    """
    Aggregated metrics for one window.
    All counts >= 0, rates in [0, 100], scores in [0, 100].
    """
    period_key: int
    period_label: str
    review_count: int = 0

    # Ratings (5-point scale) or recommendations
    average_rating: Optional[float] = None
    rating_histogram: Dict[int, int] = field(default_factory=lambda: {i: 0 for i in range(1, 6)})
    unrated_count: int = 0
    recommended_count: int = 0
    not_recommended_count: int = 0
    recommendation_rate: Optional[float] = None  # recommend-based platforms only
    approval_rate: float = 0.0

    # Engagement
    total_likes: int = 0
    total_comments: int = 0
    total_photos: int = 0
    reviews_with_photos: int = 0
    average_likes_per_review: float = 0.0
    average_comments_per_review: float = 0.0
    average_photos_per_review: float = 0.0
    average_engagement_per_review: float = 0.0

    # Content analysis
    sentiment_positive: int = 0
    sentiment_neutral: int = 0
    sentiment_negative: int = 0
    sentiment_score: float = 0.0
    top_keywords: List[KeywordFrequency] = field(default_factory=list)
    top_tags: List[TagFrequency] = field(default_factory=list)
    top_topics: List[TopicFrequency] = field(default_factory=list)
    category_counts: Dict[str, int] = field(default_factory=dict)

    # Platform extras (empty or None where the platform has none)
    sub_rating_averages: Dict[str, Optional[float]] = field(default_factory=dict)  # platform scale
    average_length_of_stay: Optional[float] = None
    stay_lengths: Dict[str, int] = field(default_factory=lambda: {"short": 0, "medium": 0, "long": 0})
    reviews_with_room_tips: int = 0

    # Responses
    response_rate: float = 0.0
    average_response_hours: Optional[float] = None
    median_response_hours: Optional[float] = None

    # Derived scores
    review_quality: float = 0.0
    engagement_score: float = 0.0
    virality_score: float = 0.0
    quality_score: float = 0.0

    @classmethod
    def empty(cls, period: PeriodDefinition) -> "PeriodMetrics":
        return cls(period_key=period.key, period_label=period.label)

    @property
    def histogram_total(self) -> int:
        """Rating buckets, or the recommended split on recommend-based platforms."""
        if self.recommendation_rate is not None:
            return self.recommended_count + self.not_recommended_count
        return sum(self.rating_histogram.values())

    def apply_scores(self, scores: Scores) -> None:
        self.engagement_score = scores.engagement
        self.virality_score = scores.virality
        self.quality_score = scores.quality

    def to_record(self) -> dict:
        """Numeric row for the period table (child lists excluded)."""
        record = asdict(self)
        for child in ("top_keywords", "top_tags", "top_topics"):
            record.pop(child)
        record["rating_histogram"] = {str(k): v for k, v in self.rating_histogram.items()}
        return record

    def to_dict(self) -> dict:
        data = asdict(self)
        data["rating_histogram"] = {str(k): v for k, v in self.rating_histogram.items()}
        return data


@dataclass
class DistributionSnapshot:
    """
    Mutually exclusive bucket counts per dimension over all reviews.
    Every dimension except categories sums to total_reviews.
    """
    total_reviews: int = 0
    rating: Dict[str, int] = field(default_factory=dict)
    recommendation: Dict[str, int] = field(default_factory=dict)
    engagement: Dict[str, int] = field(default_factory=lambda: {"high": 0, "medium": 0, "low": 0})
    photos: Dict[str, int] = field(default_factory=lambda: {"with": 0, "without": 0})
    tags: Dict[str, int] = field(default_factory=lambda: {"with": 0, "without": 0})
    responses: Dict[str, int] = field(default_factory=lambda: {"with": 0, "without": 0})
    recency: Dict[str, int] = field(
        default_factory=lambda: {"last_week": 0, "last_month": 0, "last_six_months": 0, "older": 0}
    )
    category_field: Optional[str] = None
    categories: Dict[str, int] = field(default_factory=dict)

    def exhaustive_dimensions(self) -> Dict[str, Dict[str, int]]:
        """Dimensions whose buckets must sum to total_reviews."""
        dims = {
            "engagement": self.engagement,
            "photos": self.photos,
            "tags": self.tags,
            "responses": self.responses,
            "recency": self.recency,
        }
        if self.rating:
            dims["rating"] = self.rating
        if self.recommendation:
            dims["recommendation"] = self.recommendation
        return dims

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MonthlyTrend:
    period: str  # YYYY-MM
    review_count: int
    average_rating: Optional[float]
    approval_rate: float
    average_engagement: float
    trend_direction: str = "stable"


@dataclass
class SeasonalPattern:
    month_number: int
    month_name: str
    review_count: int
    average_approval: float
    average_engagement: float
    pattern: str


@dataclass
class AnalyticsResult:
    """
    Output of one run. Fully replaces the previous result for the business.
    """
    business_id: str
    platform: str
    computed_at: datetime
    overview: PeriodMetrics
    periods: List[PeriodMetrics]
    distribution: DistributionSnapshot
    monthly_trends: List[MonthlyTrend] = field(default_factory=list)
    seasonal_patterns: List[SeasonalPattern] = field(default_factory=list)
    engagement_trend: str = "stable"
    content_quality: Dict[str, int] = field(default_factory=dict)
    emotional_breakdown: Dict[str, float] = field(default_factory=dict)

    def period(self, key: int) -> Optional[PeriodMetrics]:
        for metrics in self.periods:
            if metrics.period_key == key:
                return metrics
        return None

    def overview_record(self) -> dict:
        """Root record for the overview upsert."""
        record = self.overview.to_record()
        record.update({
            "business_id": self.business_id,
            "platform": self.platform,
            "computed_at": self.computed_at.isoformat(),
            "engagement_trend": self.engagement_trend,
            "content_quality": dict(self.content_quality),
            "emotional_breakdown": dict(self.emotional_breakdown),
            "monthly_trends": [asdict(t) for t in self.monthly_trends],
            "seasonal_patterns": [asdict(p) for p in self.seasonal_patterns],
        })
        return record

    def to_dict(self) -> dict:
        return {
            "business_id": self.business_id,
            "platform": self.platform,
            "computed_at": self.computed_at.isoformat(),
            "overview": self.overview.to_dict(),
            "periods": [p.to_dict() for p in self.periods],
            "distribution": self.distribution.to_dict(),
            "monthly_trends": [asdict(t) for t in self.monthly_trends],
            "seasonal_patterns": [asdict(p) for p in self.seasonal_patterns],
            "engagement_trend": self.engagement_trend,
            "content_quality": dict(self.content_quality),
            "emotional_breakdown": dict(self.emotional_breakdown),
        }
