"""
Scheduling of review work.

- **review_scheduler.py**: bounded batch processing of the pending review
  queue, per-user locking, single-user reviews and the interval polling task.
"""
