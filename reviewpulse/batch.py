"""
Batch runner.

Runs the orchestrator for many businesses on a bounded worker pool and
retries runs whose root write failed.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Dict, Iterable, Optional, Union

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

import config.settings as settings
from reviewpulse.errors import PersistenceError
from reviewpulse.orchestrator import AggregationOrchestrator, RunReport

logger = logging.getLogger(__name__)


class BatchRunner:
    """
    Caller-side retry and concurrency policy.

    Only PersistenceError is retried, with exponential backoff and a
    bounded attempt count. Each business is run at most once at a time.
    """

    def __init__(
        self,
        orchestrator: AggregationOrchestrator,
        max_workers: int = settings.MAX_WORKERS,
        max_attempts: int = settings.RUN_MAX_RETRIES,
        base_delay: float = settings.RETRY_BASE_DELAY
    ):
        if max_workers < 1:
            raise ValueError(f"Invalid max_workers: {max_workers}. Must be >= 1")

        self.orchestrator = orchestrator
        self.max_workers = max_workers
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    def run_one(self, business_id: str, now: Optional[datetime] = None) -> RunReport:
        """
        Run one business with retries.

        Raises:
            PersistenceError: If every attempt failed to write
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay, max=self.base_delay * 10),
            retry=retry_if_exception_type(PersistenceError),
            before_sleep=lambda state: logger.warning(
                f"Persisting {business_id} failed (attempt {state.attempt_number}), retrying"
            ),
            reraise=True,
        )
        return retrying(self.orchestrator.run, business_id, now)

    def run_all(
        self,
        business_ids: Iterable[str],
        now: Optional[datetime] = None
    ) -> Dict[str, Union[RunReport, Exception]]:
        """
        Run every business on the worker pool.

        Returns:
            Mapping of business id to its RunReport, or to the exception
            that ended its last attempt
        """
        unique_ids = list(dict.fromkeys(business_ids))
        outcomes: Dict[str, Union[RunReport, Exception]] = {}

        logger.info(f"Running {len(unique_ids)} businesses with {self.max_workers} workers")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self.run_one, business_id, now): business_id
                for business_id in unique_ids
            }
            for future in as_completed(futures):
                business_id = futures[future]
                try:
                    outcomes[business_id] = future.result()
                except Exception as e:
                    logger.error(f"Run failed for {business_id}: {e}")
                    outcomes[business_id] = e

        succeeded = sum(1 for o in outcomes.values() if isinstance(o, RunReport) and o.succeeded)
        logger.info(f"Batch complete: {succeeded}/{len(unique_ids)} succeeded")

        return {business_id: outcomes[business_id] for business_id in unique_ids}
