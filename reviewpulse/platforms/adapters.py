"""
Concrete platform adapters: Google, Facebook, TripAdvisor, Booking.com.
"""

from reviewpulse.platforms.base import PlatformAdapter


class GoogleAdapter(PlatformAdapter):
    """Google Maps: 1-5 stars, no categorical dimension."""
    name = "google"


class FacebookAdapter(PlatformAdapter):
    """Facebook pages: recommend / not recommend, likes and comments."""
    name = "facebook"
    rating_based = False
    field_map = dict(
        PlatformAdapter.field_map,
        text=("text", "reviewText", "message"),
    )


class TripAdvisorAdapter(PlatformAdapter):
    """TripAdvisor: 1-5 bubbles, helpful votes, trip type, room tips, sub-ratings."""
    name = "tripadvisor"
    engagement_fields = {
        "likes": ("likes", "likesCount"),
        "comments": ("comments", "helpful_votes", "helpfulVotes"),
        "photo_count": ("photo_count", "photoCount"),
    }
    category_field = "trip_type"
    category_source_keys = ("trip_type", "tripType")
    category_rules = [
        ("family", ("family", "families")),
        ("couples", ("couple",)),
        ("solo", ("solo", "alone")),
        ("business", ("business",)),
        ("friends", ("friend",)),
    ]
    sub_rating_fields = {
        "service": (),
        "food": (),
        "value": (),
        "atmosphere": (),
        "cleanliness": (),
        "location": (),
        "rooms": (),
        "sleep_quality": ("sleepQuality",),
    }


class BookingAdapter(PlatformAdapter):
    """Booking.com: 1-10 scores scaled to 5 points, guest type, stay length, sub-ratings."""
    name = "booking"
    rating_scale = 10.0
    field_map = dict(
        PlatformAdapter.field_map,
        text=("text", "reviewText", "likedText"),
    )
    engagement_fields = {
        "likes": ("likes", "likesCount"),
        "comments": ("comments", "helpful_votes", "helpfulVotes"),
        "photo_count": ("photo_count", "photoCount"),
    }
    category_field = "guest_type"
    category_source_keys = ("guest_type", "guestType", "travelerType")
    # Older-children rules come before the generic family rule
    category_rules = [
        ("families_with_older_children", ("older children", "family older", "teen")),
        ("families_with_young_children", ("young children", "family", "children")),
        ("groups_of_friends", ("group", "friend")),
        ("business_travelers", ("business",)),
        ("couples", ("couple",)),
        ("solo_travelers", ("solo",)),
    ]
    sub_rating_fields = {
        "cleanliness": ("cleanlinessRating",),
        "comfort": ("comfortRating",),
        "location": ("locationRating",),
        "facilities": ("facilitiesRating",),
        "staff": ("staffRating",),
        "value_for_money": ("valueForMoneyRating",),
        "wifi": ("wifiRating",),
    }
