"""
Photo storage backends.

- **blob_store.py**: the ``BlobStore`` interface (get/put/delete by key) and
  ``LocalBlobStore``, a filesystem implementation rooted at the configured
  ``storage.blob_root``.
"""
