"""
Unit tests for the Distribution Calculator.
"""

from datetime import timedelta

from reviewpulse.agents.distribution import DistributionCalculator, bucket_totals
from reviewpulse.platforms import get_adapter


def test_engagement_levels_are_exclusive(make_review, now):
    """Test likes=0/comments=0 is low only; likes=6 is high only."""
    quiet = make_review(likes=0, comments=0)
    popular = make_review(likes=6, comments=0)

    snapshot = DistributionCalculator(get_adapter("google")).compute([quiet], now)
    assert snapshot.engagement == {"high": 0, "medium": 0, "low": 1}

    snapshot = DistributionCalculator(get_adapter("google")).compute([popular], now)
    assert snapshot.engagement == {"high": 1, "medium": 0, "low": 0}


def test_engagement_thresholds(make_review):
    level = DistributionCalculator.engagement_level

    assert level(make_review(likes=5, comments=2)) == "medium"
    assert level(make_review(likes=0, comments=3)) == "high"
    assert level(make_review(likes=1, comments=0)) == "medium"


def test_every_dimension_sums_to_total(make_review, now):
    reviews = [
        make_review(now - timedelta(days=d), rating=r, likes=l, comments=c,
                    photo_count=p, tags=t, reply_text=reply)
        for d, r, l, c, p, t, reply in [
            (1, 5, 0, 0, 0, [], None),
            (3, 4, 6, 0, 2, ["wifi"], "Thanks"),
            (12, None, 1, 1, 0, [], None),
            (45, 2, 0, 3, 1, ["noise"], "Sorry"),
            (400, 1, 2, 0, 0, [], None),
        ]
    ]

    snapshot = DistributionCalculator(get_adapter("google")).compute(reviews, now)

    assert snapshot.total_reviews == 5
    assert all(total == 5 for total in bucket_totals(snapshot).values())
    assert snapshot.rating == {"1": 1, "2": 1, "3": 0, "4": 1, "5": 1, "unrated": 1}
    assert snapshot.engagement == {"high": 2, "medium": 2, "low": 1}
    assert snapshot.photos == {"with": 2, "without": 3}
    assert snapshot.tags == {"with": 2, "without": 3}
    assert snapshot.responses == {"with": 2, "without": 3}


def test_recency_buckets_are_strictly_partitioned(make_review, now):
    reviews = [
        make_review(now - timedelta(days=1)),
        make_review(now - timedelta(days=7)),
        make_review(now - timedelta(days=10)),
        make_review(now - timedelta(days=30)),
        make_review(now - timedelta(days=100)),
        make_review(now - timedelta(days=400)),
    ]

    snapshot = DistributionCalculator(get_adapter("google")).compute(reviews, now)

    assert snapshot.recency == {
        "last_week": 2,
        "last_month": 2,
        "last_six_months": 1,
        "older": 1,
    }


def test_recommendation_dimension_for_facebook(make_review, now):
    reviews = [
        make_review(platform="facebook", recommended=True),
        make_review(platform="facebook", recommended=False),
        make_review(platform="facebook", recommended=True),
    ]

    snapshot = DistributionCalculator(get_adapter("facebook")).compute(reviews, now)

    assert snapshot.rating == {}
    assert snapshot.recommendation == {"recommended": 2, "not_recommended": 1}
    assert "rating" not in snapshot.exhaustive_dimensions()


def test_trip_type_categories(make_review, now):
    reviews = [
        make_review(platform="tripadvisor", attributes={"trip_type": "Traveled with family"}),
        make_review(platform="tripadvisor", attributes={"trip_type": "COUPLES"}),
        make_review(platform="tripadvisor", attributes={"trip_type": "Traveled on business"}),
        make_review(platform="tripadvisor", attributes={"trip_type": "Pilgrimage"}),
        make_review(platform="tripadvisor"),
    ]

    snapshot = DistributionCalculator(get_adapter("tripadvisor")).compute(reviews, now)

    assert snapshot.category_field == "trip_type"
    assert snapshot.categories == {
        "family": 1, "couples": 1, "solo": 0, "business": 1, "friends": 0,
    }
    assert sum(snapshot.categories.values()) < snapshot.total_reviews


def test_guest_type_first_rule_wins(make_review, now):
    reviews = [
        make_review(platform="booking", rating=8, attributes={"guest_type": "Family with older children"}),
        make_review(platform="booking", rating=8, attributes={"guest_type": "Family with young children"}),
        make_review(platform="booking", rating=8, attributes={"guest_type": "Group of friends"}),
    ]

    snapshot = DistributionCalculator(get_adapter("booking")).compute(reviews, now)

    assert snapshot.categories["families_with_older_children"] == 1
    assert snapshot.categories["families_with_young_children"] == 1
    assert snapshot.categories["groups_of_friends"] == 1
    assert snapshot.rating["4"] == 3


def test_guest_type_enum_values(make_review, now):
    guest_types = [
        "FAMILY_WITH_OLDER_CHILDREN", "FAMILY_OLDER", "FAMILY_WITH_YOUNG_CHILDREN",
        "FAMILY_YOUNG", "GROUP_OF_FRIENDS", "BUSINESS_TRAVELER", "COUPLE", "SOLO_TRAVELER",
    ]
    reviews = [
        make_review(platform="booking", rating=8, attributes={"guest_type": guest_type})
        for guest_type in guest_types
    ]

    snapshot = DistributionCalculator(get_adapter("booking")).compute(reviews, now)

    assert snapshot.categories == {
        "families_with_older_children": 2,
        "families_with_young_children": 2,
        "groups_of_friends": 1,
        "business_travelers": 1,
        "couples": 1,
        "solo_travelers": 1,
    }


def test_empty_review_list(now):
    snapshot = DistributionCalculator(get_adapter("google")).compute([], now)

    assert snapshot.total_reviews == 0
    assert all(total == 0 for total in bucket_totals(snapshot).values())
