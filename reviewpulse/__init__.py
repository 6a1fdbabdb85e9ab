"""
ReviewPulse.

Review analytics aggregation engine: annotates reviews, computes
time-windowed metrics, scores and distributions, and persists them
idempotently.
"""

__version__ = "0.1.0"
