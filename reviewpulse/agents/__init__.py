"""
Engine components for ReviewPulse.

Contains the computation stages run by the orchestrator:
- Sentiment classifiers and the Review Annotator
- Period Partitioner
- Metric Calculator and Score Normalizer
- Distribution Calculator
- Trend Analyzer
"""
