"""
Shared fixtures for ReviewPulse tests.
"""

from datetime import datetime, timezone

import pytest

from reviewpulse.models.review import Annotation, Review

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed snapshot time for every test run."""
    return NOW


@pytest.fixture
def make_review():
    """Factory for reviews with sensible defaults."""
    counter = {"n": 0}

    def _make(published_at=NOW, **kwargs):
        counter["n"] += 1
        kwargs.setdefault("review_id", f"r-{counter['n']}")
        return Review(published_at=published_at, **kwargs)

    return _make


@pytest.fixture
def annotation():
    """Factory for annotations."""
    def _make(emotional="neutral", sentiment=0.0, keywords=None, topics=None, urgency=3):
        return Annotation(
            sentiment=sentiment,
            emotional=emotional,
            keywords=keywords or [],
            topics=topics or [],
            urgency=urgency,
        )

    return _make
