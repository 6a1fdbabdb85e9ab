"""
Persistence Coordinator.

Idempotent write protocol for one AnalyticsResult:
1. Root rows (overview, distribution, every period row) in one transaction
2. After commit, replace each owner's keyword/tag/topic child lists

A root failure aborts and leaves the previous result untouched. A child
failure is logged, collected and skipped.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import asdict
from typing import Dict, List

from reviewpulse.errors import ChildWriteError, PersistenceError
from reviewpulse.models.metrics import AnalyticsResult, PeriodMetrics
from reviewpulse.store.port import AnalyticsStore

logger = logging.getLogger(__name__)


class KeyedLock:
    """One lock per key, held only while some caller uses or waits on it."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if self._users[key] == 0:
                    del self._users[key]
                    del self._locks[key]


def child_rows(metrics: PeriodMetrics) -> Dict[str, List[dict]]:
    """Child lists of one metrics record, by kind."""
    return {
        "keywords": [asdict(k) for k in metrics.top_keywords],
        "tags": [asdict(t) for t in metrics.top_tags],
        "topics": [asdict(t) for t in metrics.top_topics],
    }


class PersistenceCoordinator:
    """
    Writes results through an AnalyticsStore.

    Runs for the same business serialize on a per-business lock, so two
    concurrent runs end as last-write-wins rather than interleaved
    child replacements.
    """

    def __init__(self, store: AnalyticsStore):
        self.store = store
        self.locks = KeyedLock()

    def persist(self, result: AnalyticsResult) -> List[ChildWriteError]:
        """
        Args:
            result: The run's AnalyticsResult

        Returns:
            Child write failures (empty when every child list was replaced)

        Raises:
            PersistenceError: If any root row could not be written
        """
        business_id = result.business_id

        with self.locks.hold(business_id):
            overview_id, period_ids = self._write_roots(result)
            logger.info(f"Committed {len(period_ids)} period rows for {business_id} (overview {overview_id})")

            owners = [(overview_id, result.overview)]
            owners.extend((period_ids[m.period_key], m) for m in result.periods)

            failures = []
            for owner_id, metrics in owners:
                for kind, rows in child_rows(metrics).items():
                    try:
                        self.store.replace_children(owner_id, kind, rows)
                    except Exception as e:
                        error = ChildWriteError(owner_id, kind, e)
                        logger.warning(f"Skipping child write: {error}")
                        failures.append(error)

        if failures:
            logger.warning(f"{len(failures)} child writes failed for {business_id}")
        return failures

    def _write_roots(self, result: AnalyticsResult):
        try:
            with self.store.transaction():
                overview_id = self.store.upsert_overview(result.business_id, result.overview_record())
                self.store.upsert_distribution(
                    result.business_id, overview_id, result.distribution.to_dict()
                )
                period_ids = {
                    metrics.period_key: self.store.upsert_period_metric(
                        overview_id, metrics.period_key, metrics.to_record()
                    )
                    for metrics in result.periods
                }
        except PersistenceError:
            logger.error(f"Root write failed for {result.business_id}")
            raise
        except Exception as e:
            logger.error(f"Root write failed for {result.business_id}: {e}")
            raise PersistenceError(f"Failed to persist analytics for {result.business_id}: {e}") from e

        return overview_id, period_ids
