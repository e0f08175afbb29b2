"""
Database package for profilereview.

Provides the shared aiosqlite connection, schema management, and the
coordinator that ties their lifecycle together.

Public API:
    - Database: Database lifecycle coordinator
    - ConnectionManager: Shared connection with serialised write transactions
"""
