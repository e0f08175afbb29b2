"""
Database initialization and lifecycle coordination.

The Database class opens the shared connection, creates the schema and hands
the connection manager to the repositories' callers. Query code lives in
``profilereview.repositories``.
"""

from __future__ import annotations

from pathlib import Path

from profilereview.database.db_connection import ConnectionManager
from profilereview.database.db_schema import SchemaManager
from profilereview.util.logger import get_logger

logger = get_logger("database")

DB_PATH = Path("./data/app.db").resolve()


class Database:
    """
    Central database coordinator.

    Lifecycle:
        1. Call initialize() at program startup
        2. Use ``connections`` for reads and serialised write transactions
        3. Call shutdown() at program end
    """

    def __init__(self, db_path: Path = DB_PATH, connections: ConnectionManager | None = None):
        self.db_path = db_path
        self.connections = connections or ConnectionManager()
        self._initialized = False

    async def initialize(self) -> bool:
        """
        Open the connection and create the schema.

        Returns:
            True if initialization succeeded, False otherwise
        """
        if self._initialized:
            logger.debug("[DATABASE] Already initialized, skipping")
            return True

        try:
            await self.connections.open(self.db_path)
            await SchemaManager.initialize_schema(self.connections.connection)
            self._initialized = True
            logger.info("[DATABASE] Database initialized at %s", self.db_path)
            return True
        except Exception as e:
            logger.error("[DATABASE] Database initialization failed: %s", e)
            return False

    async def shutdown(self) -> None:
        """Close the shared connection. Safe to call more than once."""
        if not self._initialized:
            return

        await self.connections.close()
        self._initialized = False
        logger.info("[DATABASE] Database shutdown complete")
