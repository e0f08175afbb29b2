"""
Repositories over the relational store.

Each repository is a set of static coroutines taking an open aiosqlite
connection, so callers decide whether a statement runs inside a serialised
write transaction or a plain read:

- **review_repo.py**: pending/flagged review records (``user_reviews``).
- **user_repo.py**: photos, suspension, under-review flag, and main photo /
  photo count of a user (``users``).
- **notification_repo.py**: persisted "photos approved" / "photos not
  approved" notifications (``notifications``).
"""
