"""
Configuration settings for ReviewPulse.

Centralized configuration for the analytics engine and its callers.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_ROOT = Path(os.getenv("REVIEWPULSE_DATA_ROOT", PROJECT_ROOT / "data"))
OUTPUT_ROOT = Path(os.getenv("REVIEWPULSE_OUTPUT_ROOT", PROJECT_ROOT / "output"))
STORE_PATH = DATA_ROOT / "analytics_store.json"

# API Configuration
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")

# Sentiment classifier
SENTIMENT_BACKEND = os.getenv("REVIEWPULSE_SENTIMENT_BACKEND", "lexicon")  # "lexicon" or "gemini"
SENTIMENT_MODEL = "gemini-1.5-flash"
LLM_TEMPERATURE = 0.0
SENTIMENT_MAX_RETRIES = 3
LEXICON_NORMALIZATION_ALPHA = 4.0  # score = x / sqrt(x^2 + alpha)

# Period table: key -> (days, label). Key 0 is all time.
PERIOD_DEFINITIONS = [
    (1, 1, "Last 1 Day"),
    (3, 3, "Last 3 Days"),
    (7, 7, "Last 7 Days"),
    (30, 30, "Last 30 Days"),
    (180, 180, "Last 6 Months"),
    (365, 365, "Last 12 Months"),
    (0, None, "All Time"),
]

# Annotation
MAX_REVIEW_KEYWORDS = 5
BUSINESS_TERM_BOOST = 1.5
EDGE_SENTENCE_BOOST = 1.3
EMOTIONAL_THRESHOLD = 0.3
DEFAULT_URGENCY = 3
NEUTRAL_RATING_URGENCY = 7
LOW_RATING_URGENCY = 10
NEGATIVE_SENTIMENT_URGENCY = 8
URGENT_KEYWORD_URGENCY = 9
URGENT_KEYWORDS = ("complaint", "issue")

# Metric calculation
TOP_K_KEYWORDS = 10
MIN_KEYWORD_LENGTH = 3
APPROVAL_MIN_RATING = 4
SHORT_STAY_MAX_NIGHTS = 3  # short: fewer than 3 nights
LONG_STAY_MIN_NIGHTS = 7  # long: more than 7 nights

# Score benchmarks (industry baseline scores near 50)
ENGAGEMENT_BENCHMARK = 10.0  # likes + comments per review
PHOTO_BENCHMARK = 1.0  # photos per review
LIKES_BENCHMARK = 10.0
COMMENTS_BENCHMARK = 5.0

# Distribution thresholds
HIGH_ENGAGEMENT_LIKES = 5
HIGH_ENGAGEMENT_COMMENTS = 2
RECENCY_THRESHOLDS_DAYS = (7, 30, 180)

# Trends
RECENT_MONTHS = 12
TREND_TOLERANCE = 0.05  # relative change treated as flat

# Batch execution (caller layer)
MAX_WORKERS = int(os.getenv("REVIEWPULSE_MAX_WORKERS", "4"))
RUN_MAX_RETRIES = 3
RETRY_BASE_DELAY = 2  # seconds, doubled per attempt

# Logging
LOG_LEVEL = os.getenv("REVIEWPULSE_LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
