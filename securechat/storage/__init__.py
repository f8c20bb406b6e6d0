"""
Storage for the SecureChat demo.

This package contains:
- A file-backed string key-value store (local_storage)
- The users / online list / message blobs kept in it (chat_store)
"""
