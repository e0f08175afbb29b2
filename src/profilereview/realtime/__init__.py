"""
Realtime event delivery.

- **transport.py**: ``RealtimeTransport`` interface, the Redis pub/sub
  implementation used in production and a logging-only fallback.
"""
