"""
Aggregation Orchestrator.

Runs the analytics engine for one business:
Loading → Annotating → Partitioning & Scoring → Distribution → Persisting
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from reviewpulse.agents.annotation import ReviewAnnotator
from reviewpulse.agents.distribution import DistributionCalculator, bucket_totals
from reviewpulse.agents.metrics import MetricCalculator
from reviewpulse.agents.partition import PeriodPartitioner
from reviewpulse.agents.scoring import ScoreNormalizer
from reviewpulse.agents.trends import TrendAnalyzer
from reviewpulse.errors import ChildWriteError, NoDataError
from reviewpulse.models.metrics import (
    AnalyticsResult,
    DistributionSnapshot,
    PeriodDefinition,
    PeriodMetrics,
    default_periods,
)
from reviewpulse.models.review import Review, as_utc
from reviewpulse.platforms.base import PlatformAdapter
from reviewpulse.store.coordinator import PersistenceCoordinator
from reviewpulse.utils.storage import ReviewSource

logger = logging.getLogger(__name__)

ALL_TIME = PeriodDefinition(0, None, "All Time")


class RunState(Enum):
    IDLE = "idle"
    LOADING_REVIEWS = "loading_reviews"
    ANNOTATING = "annotating"
    PARTITIONING_AND_SCORING = "partitioning_and_scoring"
    COMPUTING_DISTRIBUTION = "computing_distribution"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = (RunState.DONE, RunState.FAILED)


@dataclass
class RunReport:
    """
    Outcome of one run.

    A business without reviews ends FAILED with no_data set; callers
    distinguish that from a real failure through no_data.
    """
    business_id: str
    state: RunState = RunState.IDLE
    history: List[RunState] = field(default_factory=lambda: [RunState.IDLE])
    no_data: bool = False
    error: Optional[Exception] = None
    result: Optional[AnalyticsResult] = None
    child_failures: List[ChildWriteError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == RunState.DONE

    def advance(self, state: RunState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Run for {self.business_id} already finished in state {self.state.value}")
        self.state = state
        self.history.append(state)
        logger.debug(f"[{self.business_id}] -> {state.value}")

    def fail(self, error: Exception) -> None:
        self.error = error
        self.advance(RunState.FAILED)


class AggregationOrchestrator:
    """
    Entry point of the engine.

    Coordinates:
    1. Load reviews → 2. Annotate missing annotations
    → 3. Per-window metrics and scores → 4. Distribution and trends
    → 5. Persist through the coordinator
    """

    def __init__(
        self,
        review_source: ReviewSource,
        annotator: ReviewAnnotator,
        adapter: PlatformAdapter,
        coordinator: Optional[PersistenceCoordinator] = None,
        periods: Optional[List[PeriodDefinition]] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            review_source: Supplies the reviews of a business
            annotator: Annotator with its classifier already constructed
            adapter: Platform adapter for the reviews
            coordinator: Persistence coordinator; None computes without writing
            periods: Period table (defaults to the settings table)
        """
        self.review_source = review_source
        self.annotator = annotator
        self.adapter = adapter
        self.coordinator = coordinator
        self.periods = list(periods) if periods is not None else default_periods()

        self.partitioner = PeriodPartitioner()
        self.normalizer = ScoreNormalizer()
        self.calculator = MetricCalculator(adapter, normalizer=self.normalizer)
        self.distribution_calculator = DistributionCalculator(adapter)
        self.trend_analyzer = TrendAnalyzer(adapter)

        logger.info(
            f"Initialized AggregationOrchestrator for platform={adapter.name} "
            f"with {len(self.periods)} periods"
        )

    def run(self, business_id: str, now: Optional[datetime] = None) -> RunReport:
        """
        Run the full engine for one business.

        Args:
            business_id: Business to process
            now: Snapshot time for every window (defaults to current UTC time)

        Returns:
            RunReport in state DONE, or FAILED with no_data set

        Raises:
            Exception: Loading errors propagate unchanged
            PersistenceError: If a root row could not be written
        """
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        report = RunReport(business_id)

        report.advance(RunState.LOADING_REVIEWS)
        try:
            reviews = self.review_source.load_reviews(business_id)
        except Exception as e:
            logger.error(f"Failed to load reviews for {business_id}: {e}")
            report.fail(e)
            raise

        if not reviews:
            logger.warning(f"No reviews for {business_id}, nothing to compute")
            report.no_data = True
            report.fail(NoDataError(business_id))
            return report

        logger.info(f"Starting run for {business_id}: {len(reviews)} reviews at {now.isoformat()}")

        report.advance(RunState.ANNOTATING)
        annotated = self.annotate(reviews)

        report.advance(RunState.PARTITIONING_AND_SCORING)
        overview, periods = self.compute_periods(annotated, now)

        report.advance(RunState.COMPUTING_DISTRIBUTION)
        result = self._assemble(business_id, annotated, now, overview, periods)
        report.result = result

        if self.coordinator is not None:
            report.advance(RunState.PERSISTING)
            try:
                report.child_failures = self.coordinator.persist(result)
            except Exception as e:
                report.fail(e)
                raise

        report.advance(RunState.DONE)
        logger.info(
            f"Run complete for {business_id}: {overview.review_count} reviews, "
            f"{len(report.child_failures)} child write failures"
        )
        return report

    def compute(self, business_id: str, reviews: List[Review], now: datetime) -> AnalyticsResult:
        """Annotate and aggregate an in-memory review list without persisting."""
        now = as_utc(now)
        annotated = self.annotate(reviews)
        overview, periods = self.compute_periods(annotated, now)
        return self._assemble(business_id, annotated, now, overview, periods)

    def annotate(self, reviews: List[Review]) -> List[Review]:
        """
        Annotate reviews that carry no annotation yet.

        Returns new Review objects; the input reviews are not modified.
        A classifier failure gives that review the neutral annotation.
        """
        annotated = []
        created = 0
        for review in reviews:
            if review.annotation is not None:
                annotated.append(review)
                continue
            annotation = self.annotator.annotate_safely(review.text, self.adapter.extract_rating(review))
            annotated.append(replace(review, annotation=annotation))
            created += 1

        logger.info(f"Annotated {created} reviews ({len(reviews) - created} already annotated)")
        return annotated

    def compute_periods(self, reviews: List[Review], now: datetime):
        """
        Metrics and scores for every window, in period table order.

        Returns:
            (overview, periods): the all-time metrics and one PeriodMetrics per period
        """
        partitions = self.partitioner.partition(reviews, self.periods, now)

        periods = [self._compute_window(partitions[p.key], p) for p in self.periods]

        overview = next((m for m in periods if m.period_key == ALL_TIME.key), None)
        if overview is None:
            overview = self._compute_window(reviews, ALL_TIME)

        return overview, periods

    def _compute_window(self, reviews: List[Review], period: PeriodDefinition) -> PeriodMetrics:
        try:
            metrics = self.calculator.compute(reviews, period)
            metrics.apply_scores(self.normalizer.normalize(metrics))
        except Exception as e:
            logger.error(f"Metric computation failed for {period.label}, using empty record: {e}")
            return PeriodMetrics.empty(period)

        logger.info(
            f"{period.label}: {metrics.review_count} reviews, "
            f"engagement={metrics.engagement_score}, virality={metrics.virality_score}"
        )
        return metrics

    def _assemble(
        self,
        business_id: str,
        reviews: List[Review],
        now: datetime,
        overview: PeriodMetrics,
        periods: List[PeriodMetrics]
    ) -> AnalyticsResult:
        result = AnalyticsResult(
            business_id=business_id,
            platform=self.adapter.name,
            computed_at=now,
            overview=overview,
            periods=periods,
            distribution=self._compute_distribution(reviews, now),
        )

        try:
            result.monthly_trends = self.trend_analyzer.monthly_trends(reviews)
            result.seasonal_patterns = self.trend_analyzer.seasonal_patterns(reviews)
            result.engagement_trend = self.trend_analyzer.engagement_trend(result.monthly_trends)
            result.content_quality = self.trend_analyzer.content_quality(reviews)
            result.emotional_breakdown = self.trend_analyzer.emotional_breakdown(reviews)
        except Exception as e:
            logger.error(f"Trend analysis failed for {business_id}, leaving trends empty: {e}")

        return result

    def _compute_distribution(self, reviews: List[Review], now: datetime) -> DistributionSnapshot:
        try:
            snapshot = self.distribution_calculator.compute(reviews, now)
        except Exception as e:
            logger.error(f"Distribution computation failed, using empty snapshot: {e}")
            return DistributionSnapshot()

        mismatched: Dict[str, int] = {
            name: total for name, total in bucket_totals(snapshot).items()
            if total != snapshot.total_reviews
        }
        if mismatched:
            logger.warning(f"Distribution dimensions do not sum to {snapshot.total_reviews}: {mismatched}")
        return snapshot
