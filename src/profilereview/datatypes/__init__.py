"""
Data structures shared across the review pipeline.

- **review_datatypes.py**: Review records, user profile and photo records,
  per-photo and per-bio decisions, and the outcome/summary objects reported to
  the scheduler.

- **analysis_datatypes.py**: The fixed-shape `AnalysisReport` with one record
  per vendor category plus the aggregated message list, and the score
  thresholds used to derive its flags.
"""
