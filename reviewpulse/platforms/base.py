"""
Platform adapter base class.

One generic engine, parameterized per platform by:
- a rating extractor (platform scale -> 5-point scale, or recommend flag)
- a categorical dimension extractor (trip type, guest type)
- an engagement field mapping (raw record fields -> likes/comments/photos)
"""

import logging
from typing import Dict, List, Optional, Tuple

from reviewpulse.models.review import Annotation, Review, parse_timestamp

logger = logging.getLogger(__name__)


class PlatformAdapter:
    """
    Maps raw platform records onto Review and exposes the platform traits
    the engine needs. Subclasses override class attributes only, plus
    hooks where a platform needs special handling.
    """

    name: str = "generic"
    rating_based: bool = True
    rating_scale: float = 5.0

    # Review field -> candidate raw record keys, first present wins
    field_map: Dict[str, Tuple[str, ...]] = {
        "review_id": ("review_id", "reviewId", "id"),
        "published_at": ("published_at", "publishedAtDate", "publishedDate", "date"),
        "rating": ("rating", "stars"),
        "text": ("text", "reviewText"),
        "reply_text": ("reply_text", "responseFromOwnerText", "reply"),
        "reply_at": ("reply_at", "responseFromOwnerDate", "replyDate"),
        "tags": ("tags",),
        "recommended": ("recommended", "isRecommended"),
        "length_of_stay": ("length_of_stay", "lengthOfStay"),
        "room_tip": ("room_tip", "roomTip"),
    }
    engagement_fields: Dict[str, Tuple[str, ...]] = {
        "likes": ("likes", "likesCount"),
        "comments": ("comments", "commentsCount"),
        "photo_count": ("photo_count", "photoCount"),
    }

    # Categorical dimension: attribute name and ordered (bucket, substrings) rules
    category_field: Optional[str] = None
    category_source_keys: Tuple[str, ...] = ()
    category_rules: List[Tuple[str, Tuple[str, ...]]] = []

    # Sub-rating name -> candidate keys inside the record's subRatings object
    sub_rating_fields: Dict[str, Tuple[str, ...]] = {}

    def from_record(self, record: dict) -> Review:
        """
        Build a Review from a raw platform record.

        Raises:
            ValueError: If the record has no id or no publish date
        """
        review_id = self._pick(record, self.field_map["review_id"])
        published_at = self._pick(record, self.field_map["published_at"])
        if review_id is None or published_at is None:
            raise ValueError(f"{self.name} record missing id or publish date: {record!r}")

        attributes = {}
        if self.category_field:
            value = self._pick(record, self.category_source_keys or (self.category_field,))
            if value:
                attributes[self.category_field] = str(value)

        annotation = record.get("annotation")
        rating = self._pick(record, self.field_map["rating"])
        photo_count = self._pick(record, self.engagement_fields["photo_count"])
        if photo_count is None and isinstance(record.get("photos"), list):
            photo_count = len(record["photos"])

        return Review(
            review_id=str(review_id),
            published_at=parse_timestamp(published_at),
            platform=self.name,
            rating=float(rating) if rating is not None else None,
            text=self._pick(record, self.field_map["text"]),
            reply_text=self._pick(record, self.field_map["reply_text"]),
            reply_at=parse_timestamp(self._pick(record, self.field_map["reply_at"])),
            likes=int(self._pick(record, self.engagement_fields["likes"]) or 0),
            comments=int(self._pick(record, self.engagement_fields["comments"]) or 0),
            photo_count=int(photo_count or 0),
            tags=list(self._pick(record, self.field_map["tags"]) or []),
            recommended=self._pick(record, self.field_map["recommended"]),
            attributes=attributes,
            annotation=Annotation.from_dict(annotation) if annotation else None,
            sub_ratings=self._sub_ratings(record),
            length_of_stay=self._length_of_stay(record),
            room_tip=self._pick(record, self.field_map["room_tip"]),
        )

    def extract_rating(self, review: Review) -> Optional[float]:
        """Rating on the 5-point scale, or None when the review has none."""
        if not self.rating_based or review.rating is None:
            return None
        return review.rating * 5.0 / self.rating_scale

    def is_recommended(self, review: Review) -> bool:
        if review.recommended is not None:
            return bool(review.recommended)
        rating = self.extract_rating(review)
        return rating is not None and rating >= 4

    def category_of(self, review: Review) -> Optional[str]:
        """First bucket whose substrings match the review's category value."""
        if not self.category_field:
            return None
        value = review.attributes.get(self.category_field)
        if not value:
            return None
        # Stored enum values such as FAMILY_WITH_OLDER_CHILDREN read as words
        lowered = value.lower().replace("_", " ")
        for bucket, needles in self.category_rules:
            if any(needle in lowered for needle in needles):
                return bucket
        return None

    def category_buckets(self) -> List[str]:
        return [bucket for bucket, _ in self.category_rules]

    def sub_rating_names(self) -> List[str]:
        return list(self.sub_rating_fields)

    def tags_of(self, review: Review) -> List[str]:
        """Tag values feeding the top-tags table."""
        tags = list(review.tags)
        if self.category_field and review.attributes.get(self.category_field):
            tags.append(review.attributes[self.category_field])
        return tags

    def _sub_ratings(self, record: dict) -> Dict[str, float]:
        source = record.get("subRatings") or record.get("sub_ratings") or {}
        ratings = {}
        for name, keys in self.sub_rating_fields.items():
            value = self._pick(source, (name,) + keys)
            if value is not None:
                ratings[name] = float(value)
        return ratings

    def _length_of_stay(self, record: dict) -> Optional[int]:
        nights = self._pick(record, self.field_map["length_of_stay"])
        return int(nights) if nights is not None else None

    @staticmethod
    def _pick(record: dict, keys: Tuple[str, ...]):
        for key in keys:
            if key in record and record[key] is not None:
                return record[key]
        return None
