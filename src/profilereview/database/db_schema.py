"""
Database schema initialization.

Handles creation of tables, indexes, triggers, and schema version tracking.
The ``users`` table only carries the columns the review pipeline reads and
writes; the rest of the user row belongs to the web application.
"""

import aiosqlite
from profilereview.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates the review tables, their indexes and triggers."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create or update all database tables, indexes, and triggers.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._create_triggers(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized")

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        """Create all required database tables."""
        # photos holds the ordered JSON array of UserPhoto objects
        await db.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY,
                bio TEXT NOT NULL DEFAULT '',
                photos TEXT NOT NULL DEFAULT '[]',
                main_photo TEXT,
                num_of_photos INTEGER NOT NULL DEFAULT 0,
                suspended_at TIMESTAMP,
                suspended_reason TEXT,
                is_under_review INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS user_reviews (
                user_id INTEGER PRIMARY KEY,
                review_type TEXT NOT NULL DEFAULT 'full',
                needs_human_review INTEGER,
                analysis TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS notifications (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                recipient_id INTEGER NOT NULL,
                type TEXT NOT NULL,
                content TEXT NOT NULL DEFAULT '{}',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                read_at TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        """Create indexes backing the pending-review poll and notification cleanup."""
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_user_reviews_pending "
            "ON user_reviews(needs_human_review, created_at)"
        )
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_notifications_recipient_type "
            "ON notifications(recipient_id, type)"
        )

    @staticmethod
    async def _create_triggers(db: aiosqlite.Connection) -> None:
        """Create triggers for automatic timestamp updates."""
        await db.execute("""
            CREATE TRIGGER IF NOT EXISTS update_users_timestamp
            AFTER UPDATE ON users
            FOR EACH ROW WHEN NEW.updated_at = OLD.updated_at
            BEGIN
                UPDATE users SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
            END
        """)

        await db.execute("""
            CREATE TRIGGER IF NOT EXISTS update_user_reviews_timestamp
            AFTER UPDATE ON user_reviews
            FOR EACH ROW WHEN NEW.updated_at = OLD.updated_at
            BEGIN
                UPDATE user_reviews SET updated_at = CURRENT_TIMESTAMP WHERE user_id = NEW.user_id;
            END
        """)

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
