"""
profilereview: automated review of user profile photos and bios.

Packages
--------
- **configuration**: YAML application config and moderation vendor settings.
- **database**: shared aiosqlite connection and schema.
- **datatypes**: review, profile and analysis records.
- **moderation**: vendor client, summarizer, duplicate detection, decisions,
  profile reconciliation and notifications.
- **realtime**: delivery of review events to connected users.
- **repositories**: queries over users, review records and notifications.
- **scheduler**: polling of the pending review queue.
- **services**: per-user photo and bio review stages.
- **storage**: photo blob storage.
- **util**: logging, errors and image helpers.
"""
