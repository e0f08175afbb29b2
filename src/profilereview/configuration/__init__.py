"""
Configuration management for profilereview.

- **app_configuration.py**: Lock-protected YAML configuration loader for global
  settings. Provides the scheduler cadence and page size, storage locations,
  the database path, the suspension reason and the realtime endpoint. Falls
  back gracefully on missing or malformed config files.

- **moderation_settings.py**: Typed accessors for the moderation vendor block
  (endpoints, connection pool size, bio moderation flag) and the credentials
  read from the environment.
"""
