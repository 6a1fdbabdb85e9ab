"""
In-memory analytics store.

Holds every table in plain dicts. Also the base for the JSON file store.
"""

import copy
import logging
import threading
import uuid
from typing import Dict, List, Optional, Tuple

from reviewpulse.store.port import CHILD_KINDS, AnalyticsStore

logger = logging.getLogger(__name__)


class InMemoryAnalyticsStore(AnalyticsStore):
    """
    Dict-backed store.

    A transaction snapshots the root tables and restores them on rollback.
    One transaction runs at a time; the store lock is re-entrant so
    methods called inside a transaction do not block.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._snapshot: Optional[dict] = None

        self.overviews: Dict[str, dict] = {}  # business_id -> record
        self.distributions: Dict[str, dict] = {}  # business_id -> record
        self.period_metrics: Dict[Tuple[str, int], dict] = {}  # (overview_id, period_key) -> record
        self.children: Dict[Tuple[str, str], List[dict]] = {}  # (owner_id, kind) -> rows

    # Transactions

    def _begin(self) -> None:
        self._lock.acquire()
        self._snapshot = {
            "overviews": copy.deepcopy(self.overviews),
            "distributions": copy.deepcopy(self.distributions),
            "period_metrics": copy.deepcopy(self.period_metrics),
        }

    def _commit(self) -> None:
        self._snapshot = None
        self._lock.release()

    def _rollback(self) -> None:
        try:
            if self._snapshot is not None:
                self.overviews = self._snapshot["overviews"]
                self.distributions = self._snapshot["distributions"]
                self.period_metrics = self._snapshot["period_metrics"]
                logger.warning("Rolled back analytics store transaction")
            self._snapshot = None
        finally:
            self._lock.release()

    # Writes

    def upsert_overview(self, business_id: str, record: dict) -> str:
        with self._lock:
            existing = self.overviews.get(business_id)
            overview_id = existing["id"] if existing else str(uuid.uuid4())
            self.overviews[business_id] = dict(record, id=overview_id, business_id=business_id)
            return overview_id

    def upsert_distribution(self, business_id: str, overview_id: str, record: dict) -> str:
        with self._lock:
            existing = self.distributions.get(business_id)
            distribution_id = existing["id"] if existing else str(uuid.uuid4())
            self.distributions[business_id] = dict(
                record, id=distribution_id, business_id=business_id, overview_id=overview_id
            )
            return distribution_id

    def upsert_period_metric(self, overview_id: str, period_key: int, record: dict) -> str:
        with self._lock:
            key = (overview_id, period_key)
            existing = self.period_metrics.get(key)
            metric_id = existing["id"] if existing else str(uuid.uuid4())
            self.period_metrics[key] = dict(
                record, id=metric_id, overview_id=overview_id, period_key=period_key
            )
            return metric_id

    def replace_children(self, owner_id: str, kind: str, rows: List[dict]) -> int:
        if kind not in CHILD_KINDS:
            raise ValueError(f"Unknown child kind: {kind}. Must be one of {CHILD_KINDS}")

        with self._lock:
            self.children[(owner_id, kind)] = [
                dict(row, id=str(uuid.uuid4()), owner_id=owner_id) for row in rows
            ]
            return len(rows)

    # Reads

    def get_overview(self, business_id: str) -> Optional[dict]:
        with self._lock:
            record = self.overviews.get(business_id)
            return copy.deepcopy(record) if record else None

    def get_distribution(self, business_id: str) -> Optional[dict]:
        with self._lock:
            record = self.distributions.get(business_id)
            return copy.deepcopy(record) if record else None

    def get_period_metrics(self, overview_id: str) -> Dict[int, dict]:
        with self._lock:
            return {
                period_key: copy.deepcopy(record)
                for (owner, period_key), record in self.period_metrics.items()
                if owner == overview_id
            }

    def get_children(self, owner_id: str, kind: str) -> List[dict]:
        with self._lock:
            return copy.deepcopy(self.children.get((owner_id, kind), []))
