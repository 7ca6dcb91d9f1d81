"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.competitor import CompetitorRecord
from db.models.keyword import KeywordRecord
from db.models.reference_image import ReferenceImageRecord

__all__ = [
    "CompetitorRecord",
    "KeywordRecord",
    "ReferenceImageRecord",
]
