"""
Review sources.

Supply the reviews of one business, newest first. The file source reads
raw platform records and normalizes them through the platform adapter.
"""

import json
import os
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List

from reviewpulse.models.review import Review
from reviewpulse.platforms.base import PlatformAdapter

logger = logging.getLogger(__name__)


def newest_first(reviews: Iterable[Review]) -> List[Review]:
    return sorted(reviews, key=lambda r: r.published_at, reverse=True)


class ReviewSource(ABC):
    """Input port: all reviews of a business, ordered by published_at descending."""

    @abstractmethod
    def load_reviews(self, business_id: str) -> List[Review]:
        ...


class InMemoryReviewSource(ReviewSource):
    """Reviews held in memory, keyed by business id."""

    def __init__(self, reviews_by_business: Dict[str, List[Review]] = None):
        self.reviews_by_business = dict(reviews_by_business or {})

    def add(self, business_id: str, reviews: List[Review]) -> None:
        self.reviews_by_business.setdefault(business_id, []).extend(reviews)

    def load_reviews(self, business_id: str) -> List[Review]:
        return newest_first(self.reviews_by_business.get(business_id, []))


class ReviewFileSource(ReviewSource):
    """
    Reads raw review records from JSON files.

    Layout:
    - data/reviews/<business_id>.json (list of raw platform records)

    Records sharing a review id are kept once (first occurrence wins).
    """

    def __init__(self, data_root: str, adapter: PlatformAdapter):
        """
        Args:
            data_root: Root data directory (e.g., /path/to/data)
            adapter: Adapter for the platform the files come from
        """
        self.data_root = str(data_root)
        self.adapter = adapter
        self.reviews_dir = os.path.join(self.data_root, "reviews")

        os.makedirs(self.reviews_dir, exist_ok=True)

        logger.info(f"Initialized ReviewFileSource with data_root={data_root}, platform={adapter.name}")

    def path_for(self, business_id: str) -> str:
        return os.path.join(self.reviews_dir, f"{business_id}.json")

    def load_reviews(self, business_id: str) -> List[Review]:
        """
        Load and normalize all reviews for a business.

        Returns:
            Reviews newest first; empty list if the business has no file

        Raises:
            json.JSONDecodeError: If the file is not valid JSON
            ValueError: If a record lacks an id or publish date
        """
        filepath = self.path_for(business_id)

        if not os.path.exists(filepath):
            logger.warning(f"No review file found for {business_id} at {filepath}")
            return []

        try:
            with open(filepath, 'r') as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load reviews for {business_id}: {e}")
            raise

        reviews = {}
        for record in records:
            review = self.adapter.from_record(record)
            if review.review_id in reviews:
                logger.debug(f"Duplicate review {review.review_id} for {business_id}, skipping")
                continue
            reviews[review.review_id] = review

        logger.info(f"Loaded {len(reviews)} reviews for {business_id} from {filepath}")
        return newest_first(reviews.values())

    def save_records(self, business_id: str, records: List[Dict]) -> str:
        """
        Write raw records for a business (used to seed data directories).

        Returns:
            Path to the written file
        """
        filepath = self.path_for(business_id)

        try:
            with open(filepath, 'w') as f:
                json.dump(records, f, indent=2)
            logger.info(f"Saved {len(records)} raw reviews to {filepath}")
        except OSError as e:
            logger.error(f"Failed to save reviews for {business_id}: {e}")
            raise

        return filepath
