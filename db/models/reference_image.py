"""
db/models/reference_image.py

Reference image model: an uploaded image and its content fingerprint.
"""

from sqlalchemy import Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class ReferenceImageRecord(Base, TimestampMixin):
    """
    Uploaded reference image grouped into a folder.

    `fingerprint` is the hex content digest compared against page images.
    """

    __tablename__ = "reference_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    folder: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="Unsorted",
    )

    url: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
    )

    filename: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )

    fingerprint: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("url", name="uq_reference_images_url"),
        Index("ix_reference_images_folder", "folder"),
        Index("ix_reference_images_fingerprint", "fingerprint"),
    )

    def __repr__(self) -> str:
        return (
            f"<ReferenceImageRecord id={self.id} folder={self.folder!r} "
            f"filename={self.filename!r}>"
        )
