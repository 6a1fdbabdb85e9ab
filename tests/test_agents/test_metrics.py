"""
Unit tests for the Metric Calculator.
"""

from datetime import timedelta

import pytest

from reviewpulse.agents.metrics import MetricCalculator, rating_bucket
from reviewpulse.models.metrics import PeriodDefinition
from reviewpulse.platforms import get_adapter

ALL_TIME = PeriodDefinition(0, None, "All Time")


def test_rating_bucket_rounds_half_up_and_clamps():
    assert rating_bucket(4.5) == 5
    assert rating_bucket(2.4) == 2
    assert rating_bucket(2.5) == 3
    assert rating_bucket(0.2) == 1
    assert rating_bucket(7.0) == 5


def test_empty_window_returns_empty_record():
    metrics = MetricCalculator(get_adapter("google")).compute([], ALL_TIME)

    assert metrics.review_count == 0
    assert metrics.average_rating is None
    assert metrics.histogram_total == 0
    assert metrics.response_rate == 0.0
    assert metrics.average_response_hours is None
    assert metrics.median_response_hours is None
    assert metrics.top_keywords == []
    assert metrics.period_label == "All Time"


def test_rating_histogram_and_unrounded_average(make_review):
    reviews = [
        make_review(rating=5, text="great service"),
        make_review(rating=4.5),
        make_review(rating=2.4),
        make_review(rating=1),
    ]

    metrics = MetricCalculator(get_adapter("google")).compute(reviews, ALL_TIME)

    assert metrics.rating_histogram == {1: 1, 2: 1, 3: 0, 4: 0, 5: 2}
    assert metrics.histogram_total == 4
    assert metrics.average_rating == pytest.approx(3.23, abs=0.01)
    assert metrics.approval_rate == 50.0
    assert metrics.recommendation_rate is None


def test_unrated_reviews_are_counted_separately(make_review):
    reviews = [make_review(rating=5), make_review(rating=None)]

    metrics = MetricCalculator(get_adapter("google")).compute(reviews, ALL_TIME)

    assert metrics.unrated_count == 1
    assert metrics.histogram_total + metrics.unrated_count == metrics.review_count
    assert metrics.average_rating == 5.0
    assert metrics.approval_rate == 100.0


def test_booking_ratings_are_scaled(make_review):
    reviews = [make_review(rating=10, platform="booking"), make_review(rating=7, platform="booking")]

    metrics = MetricCalculator(get_adapter("booking")).compute(reviews, ALL_TIME)

    assert metrics.rating_histogram[5] == 1
    assert metrics.rating_histogram[4] == 1
    assert metrics.average_rating == 4.25


def test_recommendation_rate_for_recommend_platform(make_review):
    reviews = [make_review(platform="facebook", recommended=True) for _ in range(3)]
    reviews.append(make_review(platform="facebook", recommended=False))

    metrics = MetricCalculator(get_adapter("facebook")).compute(reviews, ALL_TIME)

    assert metrics.recommendation_rate == 75.0
    assert metrics.approval_rate == 75.0
    assert metrics.recommended_count == 3
    assert metrics.not_recommended_count == 1
    assert metrics.histogram_total == metrics.review_count
    assert sum(metrics.rating_histogram.values()) == 0
    assert metrics.unrated_count == 0
    assert metrics.average_rating is None


def test_engagement_totals_and_averages(make_review):
    reviews = [
        make_review(likes=4, comments=2, photo_count=3),
        make_review(likes=0, comments=0, photo_count=0),
    ]

    metrics = MetricCalculator(get_adapter("google")).compute(reviews, ALL_TIME)

    assert metrics.total_likes == 4
    assert metrics.total_comments == 2
    assert metrics.total_photos == 3
    assert metrics.reviews_with_photos == 1
    assert metrics.average_likes_per_review == 2.0
    assert metrics.average_comments_per_review == 1.0
    assert metrics.average_photos_per_review == 1.5
    assert metrics.average_engagement_per_review == 3.0


def test_sentiment_breakdown_defaults_to_neutral(make_review, annotation):
    reviews = [
        make_review(annotation=annotation("positive", 0.8)),
        make_review(annotation=annotation("positive", 0.6)),
        make_review(annotation=annotation("negative", -0.7)),
        make_review(),
    ]

    metrics = MetricCalculator(get_adapter("google")).compute(reviews, ALL_TIME)

    assert (metrics.sentiment_positive, metrics.sentiment_neutral, metrics.sentiment_negative) == (2, 1, 1)
    assert metrics.sentiment_score == 0.25


def test_response_latency_uses_positive_deltas_only(make_review, now):
    published = now - timedelta(days=1)
    reviews = [
        make_review(published, reply_text="Thanks!", reply_at=published + timedelta(hours=2)),
        make_review(published, reply_text="Sorry", reply_at=published - timedelta(hours=5)),
        make_review(published, reply_text="Noted", reply_at=published),
        make_review(published, reply_text="   ", reply_at=published + timedelta(hours=1)),
        make_review(published),
    ]

    metrics = MetricCalculator(get_adapter("google")).compute(reviews, ALL_TIME)

    assert metrics.response_rate == 60.0
    assert metrics.average_response_hours == 2.0
    assert metrics.median_response_hours == 2.0


def test_response_latency_absent_when_no_valid_delta(make_review, now):
    reviews = [make_review(now, reply_text="Thanks", reply_at=now - timedelta(hours=1))]

    metrics = MetricCalculator(get_adapter("google")).compute(reviews, ALL_TIME)

    assert metrics.response_rate == 100.0
    assert metrics.average_response_hours is None


def test_top_keywords_sorted_and_filtered(make_review, annotation):
    reviews = [
        make_review(annotation=annotation(keywords=["service", "pizza", "ok"])),
        make_review(annotation=annotation(keywords=["service", "crust"])),
        make_review(annotation=annotation(keywords=["pizza", "ok"])),
    ]

    metrics = MetricCalculator(get_adapter("google")).compute(reviews, ALL_TIME)

    assert [(k.keyword, k.count) for k in metrics.top_keywords] == [
        ("pizza", 2), ("service", 2), ("crust", 1),
    ]


def test_top_keywords_limited_to_ten(make_review, annotation):
    reviews = [
        make_review(annotation=annotation(keywords=[f"word{i:02d}" for i in range(j, j + 5)]))
        for j in range(0, 15, 5)
    ]

    metrics = MetricCalculator(get_adapter("google")).compute(reviews, ALL_TIME)

    assert len(metrics.top_keywords) == 10


def test_top_tags_carry_rating_and_sentiment(make_review, annotation):
    adapter = get_adapter("tripadvisor")
    reviews = [
        make_review(platform="tripadvisor", rating=5, tags=["view"],
                    attributes={"trip_type": "Couples"}, annotation=annotation("positive", 0.8)),
        make_review(platform="tripadvisor", rating=3, tags=["view"],
                    annotation=annotation("neutral", 0.2)),
    ]

    metrics = MetricCalculator(adapter).compute(reviews, ALL_TIME)
    tags = {t.tag: t for t in metrics.top_tags}

    assert tags["view"].count == 2
    assert tags["view"].average_rating == 4.0
    assert tags["view"].average_sentiment == 0.5
    assert tags["Couples"].count == 1
    assert metrics.category_counts["couples"] == 1
    assert metrics.category_counts["family"] == 0


def test_top_topics_collect_co_occurring_keywords(make_review, annotation):
    reviews = [
        make_review(annotation=annotation(keywords=["waiter", "pasta"], topics=["service", "food"])),
        make_review(annotation=annotation(keywords=["waiter"], topics=["service"])),
    ]

    metrics = MetricCalculator(get_adapter("google")).compute(reviews, ALL_TIME)
    topics = {t.topic: t for t in metrics.top_topics}

    assert [t.topic for t in metrics.top_topics] == ["service", "food"]
    assert topics["service"].count == 2
    assert topics["service"].keywords == ["waiter", "pasta"]
    assert topics["food"].keywords == ["pasta", "waiter"]


def test_review_quality_is_averaged(make_review, annotation):
    reviews = [
        make_review(likes=6, annotation=annotation(keywords=["aaaa", "bbbb", "cccc", "dddd", "eeee"])),
        make_review(),
    ]

    metrics = MetricCalculator(get_adapter("google")).compute(reviews, ALL_TIME)

    # 100 and 50
    assert metrics.review_quality == 75.0


def test_compute_is_deterministic(make_review, annotation):
    reviews = [
        make_review(rating=r, likes=r, annotation=annotation(keywords=["food", "staff"]))
        for r in (1, 2, 3, 4, 5)
    ]
    calculator = MetricCalculator(get_adapter("google"))

    assert calculator.compute(reviews, ALL_TIME) == calculator.compute(reviews, ALL_TIME)


def test_negative_counters_never_produce_negative_counts(make_review):
    reviews = [
        make_review(likes=-7, comments=-3, photo_count=-2),
        make_review(likes=2, comments=1, photo_count=1),
    ]

    metrics = MetricCalculator(get_adapter("google")).compute(reviews, ALL_TIME)

    assert metrics.total_likes == 2
    assert metrics.total_comments == 1
    assert metrics.total_photos == 1
    assert metrics.reviews_with_photos == 1
    assert metrics.average_engagement_per_review == 1.5


def test_tripadvisor_sub_ratings_and_room_tips():
    adapter = get_adapter("tripadvisor")
    reviews = [
        adapter.from_record({
            "id": "ta-1", "publishedDate": "2024-06-01", "rating": 5, "helpfulVotes": 3,
            "subRatings": {"service": 5, "rooms": 4, "sleepQuality": 4},
            "roomTip": "Ask for a high floor",
        }),
        adapter.from_record({
            "id": "ta-2", "publishedDate": "2024-06-02", "rating": 3, "helpfulVotes": 1,
            "subRatings": {"service": 2, "rooms": None},
            "roomTip": "   ",
        }),
    ]

    metrics = MetricCalculator(adapter).compute(reviews, ALL_TIME)

    assert metrics.sub_rating_averages["service"] == 3.5
    assert metrics.sub_rating_averages["rooms"] == 4.0
    assert metrics.sub_rating_averages["sleep_quality"] == 4.0
    assert metrics.sub_rating_averages["food"] is None
    assert metrics.reviews_with_room_tips == 1
    # Helpful votes are the comment counter on TripAdvisor
    assert metrics.total_comments == 4
    assert metrics.average_comments_per_review == 2.0


def test_booking_sub_ratings_and_stay_lengths():
    adapter = get_adapter("booking")
    records = [
        {"id": "b-1", "date": "2024-06-01", "rating": 9, "lengthOfStay": 1,
         "subRatings": {"cleanlinessRating": 9, "wifiRating": 6}},
        {"id": "b-2", "date": "2024-06-02", "rating": 7, "lengthOfStay": 3,
         "subRatings": {"cleanlinessRating": 8}},
        {"id": "b-3", "date": "2024-06-03", "rating": 8, "lengthOfStay": 7},
        {"id": "b-4", "date": "2024-06-04", "rating": 6, "lengthOfStay": 10},
        {"id": "b-5", "date": "2024-06-05", "rating": 6},
    ]
    reviews = [adapter.from_record(record) for record in records]

    metrics = MetricCalculator(adapter).compute(reviews, ALL_TIME)

    assert metrics.sub_rating_averages["cleanliness"] == 8.5
    assert metrics.sub_rating_averages["wifi"] == 6.0
    assert metrics.sub_rating_averages["staff"] is None
    assert metrics.average_length_of_stay == 5.25
    assert metrics.stay_lengths == {"short": 1, "medium": 2, "long": 1}


def test_platforms_without_extras(make_review):
    metrics = MetricCalculator(get_adapter("google")).compute([make_review(rating=4)], ALL_TIME)

    assert metrics.sub_rating_averages == {}
    assert metrics.average_length_of_stay is None
    assert metrics.stay_lengths == {"short": 0, "medium": 0, "long": 0}
    assert metrics.reviews_with_room_tips == 0
