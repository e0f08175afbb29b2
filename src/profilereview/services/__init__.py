"""
Review services.

- **photo_review_service.py**: download, duplicate check, moderation and
  verdict application for a user's photos; suspends on severe violations.
- **bio_review_service.py**: optional bio moderation that escalates to a human.
- **user_review_service.py**: runs the stages a review type asks for and
  reports a ``ReviewOutcome``.
"""
