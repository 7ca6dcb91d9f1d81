"""
Repository-layer exceptions for the record stores.
"""

from __future__ import annotations


class RecordStoreError(Exception):
    """Base exception for record store failures."""


class DuplicateRecordError(RecordStoreError):
    """Raised when a write would violate a record's unique key."""


class RecordNotFoundError(RecordStoreError):
    """Raised when a record addressed by key does not exist."""


class FileStorageError(RecordStoreError):
    """Raised when storing or deleting uploaded files fails."""
