"""
Unit tests for the Persistence Coordinator write protocol.
"""

import threading
import time
from datetime import timedelta

import pytest

from reviewpulse.agents.annotation import ReviewAnnotator
from reviewpulse.agents.sentiment import LexiconSentimentClassifier
from reviewpulse.errors import ChildWriteError, PersistenceError
from reviewpulse.orchestrator import AggregationOrchestrator
from reviewpulse.platforms import get_adapter
from reviewpulse.store import InMemoryAnalyticsStore, KeyedLock, PersistenceCoordinator
from reviewpulse.utils.storage import InMemoryReviewSource


class FailingChildStore(InMemoryAnalyticsStore):
    """Fails every child replacement of one kind."""

    def __init__(self, failing_kind):
        super().__init__()
        self.failing_kind = failing_kind

    def replace_children(self, owner_id, kind, rows):
        if kind == self.failing_kind:
            raise RuntimeError(f"{kind} table unavailable")
        return super().replace_children(owner_id, kind, rows)


class FailingPeriodStore(InMemoryAnalyticsStore):
    """Fails the period row with the given key."""

    def __init__(self):
        super().__init__()
        self.failing_key = None

    def upsert_period_metric(self, overview_id, period_key, record):
        if period_key == self.failing_key:
            raise RuntimeError("connection reset")
        return super().upsert_period_metric(overview_id, period_key, record)


@pytest.fixture
def result_factory(make_review, now):
    """Builds an AnalyticsResult for biz-1 at a given snapshot time."""
    reviews = [
        make_review(now - timedelta(days=d), rating=r, text=text, likes=d % 4)
        for d, r, text in [
            (0, 5, "Great service and delicious food"),
            (2, 4, "Friendly staff, good value"),
            (20, 1, "Terrible wait, complaint filed"),
            (200, 3, "Average place"),
        ]
    ]
    orchestrator = AggregationOrchestrator(
        review_source=InMemoryReviewSource(),
        annotator=ReviewAnnotator(LexiconSentimentClassifier()),
        adapter=get_adapter("google"),
    )

    def _build(at=now):
        return orchestrator.compute("biz-1", reviews, at)

    return _build


def test_persist_writes_roots_and_children(result_factory):
    store = InMemoryAnalyticsStore()
    result = result_factory()

    failures = PersistenceCoordinator(store).persist(result)

    assert failures == []
    overview = store.get_overview("biz-1")
    assert overview["review_count"] == 4
    assert store.get_distribution("biz-1")["overview_id"] == overview["id"]

    rows = store.get_period_metrics(overview["id"])
    assert sorted(rows) == [0, 1, 3, 7, 30, 180, 365]

    keywords = store.get_children(overview["id"], "keywords")
    assert [k["keyword"] for k in keywords] == [k.keyword for k in result.overview.top_keywords]
    assert store.get_children(rows[7]["id"], "topics")


def test_persist_is_idempotent(result_factory):
    store = InMemoryAnalyticsStore()
    coordinator = PersistenceCoordinator(store)

    coordinator.persist(result_factory())
    first_overview = store.get_overview("biz-1")
    first_rows = store.get_period_metrics(first_overview["id"])
    first_children = store.get_children(first_overview["id"], "keywords")

    coordinator.persist(result_factory())
    second_overview = store.get_overview("biz-1")
    second_rows = store.get_period_metrics(second_overview["id"])
    second_children = store.get_children(second_overview["id"], "keywords")

    assert second_overview == first_overview
    assert second_rows == first_rows
    assert len(store.overviews) == 1
    assert len(store.period_metrics) == 7
    assert [c["keyword"] for c in second_children] == [c["keyword"] for c in first_children]


def test_child_failure_is_collected_and_skipped(result_factory):
    store = FailingChildStore("tags")

    failures = PersistenceCoordinator(store).persist(result_factory())

    # Overview plus seven periods
    assert len(failures) == 8
    assert all(isinstance(f, ChildWriteError) and f.kind == "tags" for f in failures)

    overview = store.get_overview("biz-1")
    assert overview is not None
    assert store.get_children(overview["id"], "keywords")
    assert len(store.get_period_metrics(overview["id"])) == 7


def test_root_failure_leaves_previous_result_untouched(result_factory, now):
    store = FailingPeriodStore()
    coordinator = PersistenceCoordinator(store)

    coordinator.persist(result_factory())
    before = store.get_overview("biz-1")
    before_rows = store.get_period_metrics(before["id"])
    before_children = store.get_children(before["id"], "keywords")

    store.failing_key = 30
    with pytest.raises(PersistenceError):
        coordinator.persist(result_factory(now + timedelta(days=1)))

    assert store.get_overview("biz-1") == before
    assert store.get_period_metrics(before["id"]) == before_rows
    assert store.get_children(before["id"], "keywords") == before_children


def test_persistence_error_from_store_propagates_unchanged(result_factory):
    original = PersistenceError("store offline")

    class OfflineStore(InMemoryAnalyticsStore):
        def upsert_overview(self, business_id, record):
            raise original

    with pytest.raises(PersistenceError) as excinfo:
        PersistenceCoordinator(OfflineStore()).persist(result_factory())

    assert excinfo.value is original


def test_keyed_lock_serializes_same_key():
    locks = KeyedLock()
    active = []
    overlaps = []

    def worker():
        with locks.hold("biz-1"):
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            active.pop()

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert overlaps == []


def test_keyed_lock_independent_keys():
    locks = KeyedLock()

    with locks.hold("biz-1"):
        with locks.hold("biz-2"):
            pass


def test_keyed_lock_drops_idle_keys():
    locks = KeyedLock()

    with locks.hold("biz-1"):
        with locks.hold("biz-2"):
            assert len(locks) == 2
        assert len(locks) == 1

    for i in range(100):
        with locks.hold(f"biz-{i}"):
            pass

    assert len(locks) == 0


def test_keyed_lock_released_after_error():
    locks = KeyedLock()

    with pytest.raises(RuntimeError):
        with locks.hold("biz-1"):
            raise RuntimeError("write failed")

    assert len(locks) == 0
    with locks.hold("biz-1"):
        pass


def test_coordinator_keeps_no_locks_between_runs(result_factory):
    coordinator = PersistenceCoordinator(InMemoryAnalyticsStore())

    coordinator.persist(result_factory())

    assert len(coordinator.locks) == 0
