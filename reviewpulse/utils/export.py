"""
Report export.

Writes an AnalyticsResult as a per-period CSV table plus a metadata JSON
file alongside it.
"""

import json
import logging
import os
from datetime import datetime, timezone

import pandas as pd

from reviewpulse.models.metrics import AnalyticsResult

logger = logging.getLogger(__name__)

PERIOD_COLUMNS = {
    "period_label": "Period",
    "review_count": "Reviews",
    "average_rating": "Average Rating",
    "approval_rate": "Approval Rate",
    "recommendation_rate": "Recommendation Rate",
    "sentiment_score": "Sentiment Score",
    "response_rate": "Response Rate",
    "average_response_hours": "Avg Response Hours",
    "median_response_hours": "Median Response Hours",
    "average_length_of_stay": "Avg Stay Nights",
    "average_engagement_per_review": "Avg Engagement",
    "engagement_score": "Engagement Score",
    "virality_score": "Virality Score",
    "quality_score": "Quality Score",
}


def export_result(result: AnalyticsResult, output_dir: str) -> str:
    """
    Export one result.

    Args:
        result: The run's AnalyticsResult
        output_dir: Directory to save CSV output

    Returns:
        Path to generated CSV file
    """
    date_str = result.computed_at.strftime("%Y-%m-%d")

    rows = []
    for metrics in result.periods:
        row = {label: getattr(metrics, field) for field, label in PERIOD_COLUMNS.items()}
        row["Top Keywords"] = ", ".join(k.keyword for k in metrics.top_keywords)
        rows.append(row)

    # Rows keep the period table order
    df = pd.DataFrame(rows, columns=list(PERIOD_COLUMNS.values()) + ["Top Keywords"])

    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, f"analytics_{result.business_id}_{date_str}.csv")
    df.to_csv(output_path, index=False)

    logger.info(f"Analytics table saved to {output_path} ({len(df)} periods)")

    metadata_path = output_path.replace(".csv", "_metadata.json")
    metadata = {
        "business_id": result.business_id,
        "platform": result.platform,
        "computed_at": result.computed_at.isoformat(),
        "total_reviews": result.distribution.total_reviews,
        "engagement_trend": result.engagement_trend,
        "content_quality": result.content_quality,
        "emotional_breakdown": result.emotional_breakdown,
        "distribution": result.distribution.to_dict(),
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }

    with open(metadata_path, 'w') as f:
        json.dump(metadata, f, indent=2)

    logger.info(f"Metadata saved to {metadata_path}")

    return output_path
