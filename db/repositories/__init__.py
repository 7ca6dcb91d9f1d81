"""
Repository layer exports.
"""

from db.repositories.competitor_repository import CompetitorRepository
from db.repositories.errors import (
    DuplicateRecordError,
    FileStorageError,
    RecordNotFoundError,
    RecordStoreError,
)
from db.repositories.keyword_repository import KeywordRepository
from db.repositories.reference_image_repository import ReferenceImageRepository
from db.repositories.storage import ImageStorageBackend, LocalImageStorage, StoredImageFile
from db.repositories.types import CompetitorInput, KeywordInput, ReferenceImageInput

__all__ = [
    "CompetitorRepository",
    "KeywordRepository",
    "ReferenceImageRepository",
    "CompetitorInput",
    "KeywordInput",
    "ReferenceImageInput",
    "ImageStorageBackend",
    "LocalImageStorage",
    "StoredImageFile",
    "RecordStoreError",
    "DuplicateRecordError",
    "RecordNotFoundError",
    "FileStorageError",
]
