"""
Error taxonomy for the analytics engine.

Computation errors degrade to defaults; only root persistence errors
abort a run.
"""


class ReviewPulseError(Exception):
    """Base class for all engine errors."""


class NoDataError(ReviewPulseError):
    """The business has no reviews. Not a failure: there is nothing to compute."""

    def __init__(self, business_id: str):
        super().__init__(f"No reviews found for business {business_id}")
        self.business_id = business_id


class AnnotationError(ReviewPulseError):
    """The sentiment capability failed for a single review."""


class PersistenceError(ReviewPulseError):
    """A root record (overview, distribution or period row) could not be written."""


class ChildWriteError(ReviewPulseError):
    """A keyword/tag/topic child list could not be replaced for one owner."""

    def __init__(self, owner_id: str, kind: str, cause: Exception):
        super().__init__(f"Failed to replace {kind} for {owner_id}: {cause}")
        self.owner_id = owner_id
        self.kind = kind
        self.cause = cause
