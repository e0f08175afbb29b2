"""
Utility functions and helpers for profilereview.

This package provides reusable utilities:

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers, and per-session log aggregation. Suppresses noise from
  verbose libraries (urllib3, Pillow, aiosqlite, redis).

- **errors.py**: Exception hierarchy for per-user review failures. Each error
  carries the user id so the scheduler can log it and continue with the next
  pending record.

- **image_utils.py**: Local image materialisation for the photo stage. Writes
  downloaded bytes to a per-user temporary directory, normalises them to JPEG
  with Pillow, and removes the directory once the photo stage completes.
"""
