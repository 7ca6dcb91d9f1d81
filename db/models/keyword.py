"""
db/models/keyword.py

Keyword model: one patent-sensitive phrase to look for.
"""

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class KeywordRecord(Base, TimestampMixin):
    """
    A keyword phrase, optionally tagged with the patent it relates to.
    """

    __tablename__ = "keywords"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    keyword: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )

    patent: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Patent number or label the phrase is associated with",
    )

    __table_args__ = (Index("ix_keywords_keyword", "keyword"),)

    def __repr__(self) -> str:
        return f"<KeywordRecord id={self.id} keyword={self.keyword!r} patent={self.patent!r}>"
