"""
Utility modules for ReviewPulse.

Cross-cutting concerns:
- Storage: review sources (in memory and JSON files)
- Export: CSV + metadata output of a result
"""
