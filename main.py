"""
ReviewPulse - Review Analytics Aggregation Engine

CLI entry point for running the analytics engine over review files.
"""

import argparse
import logging
import sys

from reviewpulse.agents.annotation import ReviewAnnotator
from reviewpulse.agents.sentiment import build_classifier
from reviewpulse.batch import BatchRunner
from reviewpulse.orchestrator import AggregationOrchestrator, RunReport
from reviewpulse.platforms import get_adapter, supported_platforms
from reviewpulse.store import JsonAnalyticsStore, PersistenceCoordinator
from reviewpulse.utils.export import export_result
from reviewpulse.utils.storage import ReviewFileSource
import config.settings as settings


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler("reviewpulse.log")
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ReviewPulse - Review Analytics Aggregation Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze one Google Maps business from data/reviews/cafe-123.json
  python main.py --business-id cafe-123

  # Several TripAdvisor businesses on 8 workers
  python main.py --platform tripadvisor \\
                 --business-id hotel-1 --business-id hotel-2 \\
                 --max-workers 8

  # Use Gemini for sentiment (needs GOOGLE_API_KEY)
  python main.py --business-id cafe-123 --sentiment-backend gemini
        """
    )

    parser.add_argument(
        "--business-id",
        action="append",
        required=True,
        dest="business_ids",
        help="Business to analyze (repeat for several)"
    )

    parser.add_argument(
        "--platform",
        default="google",
        choices=supported_platforms(),
        help="Review platform of the input files (default: google)"
    )

    parser.add_argument(
        "--data-root",
        default=str(settings.DATA_ROOT),
        help=f"Data directory holding reviews/<business_id>.json (default: {settings.DATA_ROOT})"
    )

    parser.add_argument(
        "--store-path",
        default=str(settings.STORE_PATH),
        help="Path to the analytics store JSON"
    )

    parser.add_argument(
        "--output-dir",
        default=str(settings.OUTPUT_ROOT),
        help=f"Directory for exported tables (default: {settings.OUTPUT_ROOT})"
    )

    parser.add_argument(
        "--sentiment-backend",
        default=settings.SENTIMENT_BACKEND,
        choices=["lexicon", "gemini"],
        help=f"Sentiment classifier (default: {settings.SENTIMENT_BACKEND})"
    )

    parser.add_argument(
        "--max-workers",
        type=int,
        default=settings.MAX_WORKERS,
        help=f"Concurrent business runs (default: {settings.MAX_WORKERS})"
    )

    parser.add_argument(
        "--no-export",
        action="store_true",
        help="Persist results without writing CSV tables"
    )

    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    return parser


def main():
    """Main CLI entry point."""
    args = build_parser().parse_args()

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    print("=" * 60)
    print("ReviewPulse - Review Analytics Aggregation Engine")
    print("=" * 60)
    print(f"Businesses: {', '.join(args.business_ids)}")
    print(f"Platform: {args.platform}")
    print(f"Sentiment: {args.sentiment_backend}")
    print("=" * 60)
    print()

    try:
        classifier = build_classifier(args.sentiment_backend, settings.GOOGLE_API_KEY)
        adapter = get_adapter(args.platform)

        orchestrator = AggregationOrchestrator(
            review_source=ReviewFileSource(args.data_root, adapter),
            annotator=ReviewAnnotator(classifier),
            adapter=adapter,
            coordinator=PersistenceCoordinator(JsonAnalyticsStore(args.store_path)),
        )

        outcomes = BatchRunner(orchestrator, max_workers=args.max_workers).run_all(args.business_ids)

    except KeyboardInterrupt:
        logger.warning("Run interrupted by user")
        print("\n⚠️  Run interrupted")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Run failed: {e}", exc_info=True)
        print(f"\n❌ Run failed: {e}")
        print("Check reviewpulse.log for details")
        sys.exit(1)

    failed = []
    print()
    print("=" * 60)
    for business_id, outcome in outcomes.items():
        if not isinstance(outcome, RunReport):
            failed.append(business_id)
            print(f"❌ {business_id}: {outcome}")
        elif outcome.no_data:
            print(f"⚪ {business_id}: no reviews")
        else:
            line = f"✅ {business_id}: {outcome.result.overview.review_count} reviews"
            if outcome.child_failures:
                line += f" ({len(outcome.child_failures)} child writes skipped)"
            if not args.no_export:
                line += f" -> {export_result(outcome.result, args.output_dir)}"
            print(line)
    print("=" * 60)

    if failed:
        logger.error(f"{len(failed)} businesses failed: {failed}")
        sys.exit(1)

    logger.info("ReviewPulse completed successfully")
    sys.exit(0)


if __name__ == "__main__":
    main()
