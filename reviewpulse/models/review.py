"""
Review and annotation data models.

A Review is the normalized, platform-independent input record.
An Annotation is the sentiment/keyword/topic/urgency enrichment of one review.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

EMOTIONAL_CATEGORIES = ("positive", "neutral", "negative")

TOPIC_TAXONOMY = (
    "service",
    "food",
    "ambiance",
    "value",
    "location",
    "timing",
    "quality",
    "experience",
)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass through a datetime) into UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


@dataclass(frozen=True)
class Annotation:
    """
    Enrichment attached to one review.
    Output of the Sentiment/Keyword Annotator.
    """
    sentiment: float  # [-1, 1], two decimals
    emotional: str  # "positive", "neutral" or "negative"
    keywords: List[str] = field(default_factory=list)  # up to 5, ordered by importance
    topics: List[str] = field(default_factory=list)  # subset of TOPIC_TAXONOMY
    urgency: int = 3  # 1-10

    def __post_init__(self):
        if not (-1.0 <= self.sentiment <= 1.0):
            raise ValueError(f"Invalid sentiment: {self.sentiment}. Must be in [-1, 1]")

        if self.emotional not in EMOTIONAL_CATEGORIES:
            raise ValueError(
                f"Invalid emotional category: {self.emotional}. "
                f"Must be one of {EMOTIONAL_CATEGORIES}"
            )

        if not (1 <= self.urgency <= 10):
            raise ValueError(f"Invalid urgency: {self.urgency}. Must be 1-10")

        unknown = [t for t in self.topics if t not in TOPIC_TAXONOMY]
        if unknown:
            raise ValueError(f"Unknown topics: {unknown}")

    @classmethod
    def neutral(cls) -> "Annotation":
        """Default annotation for empty text or a failed classifier."""
        return cls(sentiment=0.0, emotional="neutral", keywords=[], topics=[], urgency=3)

    @classmethod
    def from_dict(cls, data: dict) -> "Annotation":
        return cls(
            sentiment=float(data.get("sentiment", 0.0)),
            emotional=data.get("emotional", "neutral"),
            keywords=list(data.get("keywords") or []),
            topics=list(data.get("topics") or []),
            urgency=int(data.get("urgency", 3)),
        )

    def to_dict(self) -> dict:
        return {
            "sentiment": self.sentiment,
            "emotional": self.emotional,
            "keywords": list(self.keywords),
            "topics": list(self.topics),
            "urgency": self.urgency,
        }


@dataclass
class Review:
    """
    Normalized review from any supported platform.

    rating is on the platform's own scale and may be absent on
    recommend-based platforms; platform adapters convert it.
    """
    review_id: str
    published_at: datetime
    platform: str = "google"
    rating: Optional[float] = None
    text: Optional[str] = None
    reply_text: Optional[str] = None
    reply_at: Optional[datetime] = None
    likes: int = 0
    comments: int = 0  # comments or helpful votes
    photo_count: int = 0
    tags: List[str] = field(default_factory=list)
    recommended: Optional[bool] = None
    attributes: Dict[str, str] = field(default_factory=dict)  # e.g. trip_type, guest_type
    annotation: Optional[Annotation] = None
    sub_ratings: Dict[str, float] = field(default_factory=dict)  # e.g. cleanliness, platform scale
    length_of_stay: Optional[int] = None  # nights
    room_tip: Optional[str] = None

    def __post_init__(self):
        self.published_at = as_utc(self.published_at)
        if self.reply_at is not None:
            self.reply_at = as_utc(self.reply_at)
        # Upstream counters can arrive negative from corrupt records
        self.likes = max(0, int(self.likes))
        self.comments = max(0, int(self.comments))
        self.photo_count = max(0, int(self.photo_count))
        if self.length_of_stay is not None and self.length_of_stay < 0:
            self.length_of_stay = None

    @property
    def has_reply(self) -> bool:
        return bool(self.reply_text and self.reply_text.strip())

    @property
    def engagement(self) -> int:
        return self.likes + self.comments

    @classmethod
    def from_dict(cls, data: dict) -> "Review":
        """Create Review from its own JSON dict (see to_dict)."""
        annotation = data.get("annotation")
        return cls(
            review_id=str(data["review_id"]),
            published_at=parse_timestamp(data["published_at"]),
            platform=data.get("platform", "google"),
            rating=data.get("rating"),
            text=data.get("text"),
            reply_text=data.get("reply_text"),
            reply_at=parse_timestamp(data.get("reply_at")),
            likes=int(data.get("likes") or 0),
            comments=int(data.get("comments") or 0),
            photo_count=int(data.get("photo_count") or 0),
            tags=list(data.get("tags") or []),
            recommended=data.get("recommended"),
            attributes=dict(data.get("attributes") or {}),
            annotation=Annotation.from_dict(annotation) if annotation else None,
            sub_ratings={k: float(v) for k, v in (data.get("sub_ratings") or {}).items()},
            length_of_stay=data.get("length_of_stay"),
            room_tip=data.get("room_tip"),
        )

    def to_dict(self) -> dict:
        return {
            "review_id": self.review_id,
            "published_at": self.published_at.isoformat(),
            "platform": self.platform,
            "rating": self.rating,
            "text": self.text,
            "reply_text": self.reply_text,
            "reply_at": self.reply_at.isoformat() if self.reply_at else None,
            "likes": self.likes,
            "comments": self.comments,
            "photo_count": self.photo_count,
            "tags": list(self.tags),
            "recommended": self.recommended,
            "attributes": dict(self.attributes),
            "annotation": self.annotation.to_dict() if self.annotation else None,
            "sub_ratings": dict(self.sub_ratings),
            "length_of_stay": self.length_of_stay,
            "room_tip": self.room_tip,
        }
