"""
db/models/competitor.py

Competitor model: one page the trawl engine scans.
"""

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class CompetitorRecord(Base, TimestampMixin):
    """
    A named competitor page. `url` is the identity used for replace and delete.
    """

    __tablename__ = "competitors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    url: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
    )

    __table_args__ = (UniqueConstraint("url", name="uq_competitors_url"),)

    def __repr__(self) -> str:
        return f"<CompetitorRecord id={self.id} name={self.name!r} url={self.url!r}>"
