"""
Persistence port.

The engine writes through this interface only; the caller constructs the
store once and passes it down.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, List, Optional

CHILD_KINDS = ("keywords", "tags", "topics")


class AnalyticsStore(ABC):
    """
    Storage contract for analytics results.

    Root writes (overview, distribution, period rows) are expected inside
    transaction(); replace_children is atomic per (owner_id, kind) on its own.
    """

    @contextmanager
    def transaction(self):
        """
        Group root writes. Commits on normal exit; on any exception the
        writes made inside the block are rolled back and the exception
        propagates.
        """
        self._begin()
        try:
            yield self
            self._commit()
        except BaseException:
            self._rollback()
            raise

    @abstractmethod
    def _begin(self) -> None:
        ...

    @abstractmethod
    def _commit(self) -> None:
        ...

    @abstractmethod
    def _rollback(self) -> None:
        ...

    @abstractmethod
    def upsert_overview(self, business_id: str, record: dict) -> str:
        """Insert or replace the overview keyed by business_id. Returns its id."""

    @abstractmethod
    def upsert_distribution(self, business_id: str, overview_id: str, record: dict) -> str:
        """Insert or replace the distribution keyed by business_id. Returns its id."""

    @abstractmethod
    def upsert_period_metric(self, overview_id: str, period_key: int, record: dict) -> str:
        """Insert or replace the period row keyed by (overview_id, period_key). Returns its id."""

    @abstractmethod
    def replace_children(self, owner_id: str, kind: str, rows: List[dict]) -> int:
        """
        Delete every child row of `kind` owned by owner_id, then insert rows.

        Safe only under a single writer per owner; the coordinator holds
        a per-business lock around it.

        Returns:
            Number of rows inserted
        """

    @abstractmethod
    def get_overview(self, business_id: str) -> Optional[dict]:
        ...

    @abstractmethod
    def get_distribution(self, business_id: str) -> Optional[dict]:
        ...

    @abstractmethod
    def get_period_metrics(self, overview_id: str) -> Dict[int, dict]:
        ...

    @abstractmethod
    def get_children(self, owner_id: str, kind: str) -> List[dict]:
        ...
