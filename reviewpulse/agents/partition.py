"""
Period Partitioner.

Splits a review list into the trailing windows of the period table,
all evaluated against a single "now" snapshot.
"""

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Tuple

from reviewpulse.models.metrics import PeriodDefinition
from reviewpulse.models.review import Review, as_utc

logger = logging.getLogger(__name__)


def window_bounds(days: int, now: datetime) -> Tuple[datetime, datetime]:
    """
    Closed UTC interval for a trailing window of N days.

    Starts at midnight N days before now's date and ends at the last
    microsecond of now's date.
    """
    today = as_utc(now).date()
    start = datetime.combine(today - timedelta(days=days), time.min, tzinfo=timezone.utc)
    end = datetime.combine(today, time.max, tzinfo=timezone.utc)
    return start, end


class PeriodPartitioner:
    """Classifies reviews into every window they fall within."""

    def partition(
        self,
        reviews: List[Review],
        periods: Iterable[PeriodDefinition],
        now: datetime
    ) -> Dict[int, List[Review]]:
        """
        Args:
            reviews: All reviews for the business
            periods: Period definitions to evaluate
            now: The run's snapshot time

        Returns:
            Mapping of period key to the reviews inside that window.
            Windows are independent; a review appears in every window
            that contains it. The input list is not modified.
        """
        partitions = {}
        for period in periods:
            if period.is_all_time:
                partitions[period.key] = list(reviews)
                continue

            start, end = window_bounds(period.days, now)
            partitions[period.key] = [r for r in reviews if start <= r.published_at <= end]

            logger.debug(
                f"Window {period.label}: {len(partitions[period.key])} reviews "
                f"in [{start.isoformat()}, {end.isoformat()}]"
            )

        return partitions
