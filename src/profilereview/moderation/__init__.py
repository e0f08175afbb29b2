"""
Content moderation pipeline.

- **moderation_client.py**: HTTP client for the image and text moderation
  endpoints (``SIGHTENGINE_MODELS``, pooled ``requests`` session).
- **analysis_summarizer.py**: turns a raw vendor response into an
  ``AnalysisReport`` with per-category flags and user-facing messages.
- **image_similarity.py**: SSIM-based duplicate detection between a user's
  photos.
- **decision_engine.py**: approve / reject / suspend rules for photos and the
  escalate-to-human rule for bios.
- **profile_reconciler.py**: recomputes ``main_photo`` and ``num_of_photos``.
- **notification_dispatcher.py**: stored notification plus realtime event for
  each completed photo review.
"""
