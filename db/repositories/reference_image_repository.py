"""
Reference image repository: metadata rows for uploaded images.
"""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.reference_image import ReferenceImageRecord
from db.repositories.errors import DuplicateRecordError, RecordNotFoundError, RecordStoreError
from db.repositories.types import ReferenceImageInput


class ReferenceImageRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_all(self) -> list[ReferenceImageRecord]:
        try:
            stmt = select(ReferenceImageRecord).order_by(
                ReferenceImageRecord.folder, ReferenceImageRecord.id
            )
            return list(self._session.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to read reference images.") from exc

    def get_by_url(self, url: str) -> ReferenceImageRecord | None:
        try:
            stmt = select(ReferenceImageRecord).where(ReferenceImageRecord.url == url)
            return self._session.execute(stmt).scalars().first()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to read reference image.") from exc

    def insert(self, record: ReferenceImageInput) -> ReferenceImageRecord:
        row = ReferenceImageRecord(
            folder=record.folder,
            url=record.url,
            filename=record.filename,
            fingerprint=record.fingerprint,
        )
        self._session.add(row)
        try:
            self._session.commit()
            self._session.refresh(row)
        except IntegrityError as exc:
            self._session.rollback()
            raise DuplicateRecordError(f"A reference image with URL {record.url!r} already exists.") from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to insert reference image.") from exc
        return row

    def delete(self, url: str) -> ReferenceImageRecord:
        """
        Delete the row for `url` and return it so the caller can remove the file.
        """

        row = self.get_by_url(url)
        if row is None:
            raise RecordNotFoundError(f"Reference image not found: {url}")
        try:
            self._session.delete(row)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to delete reference image.") from exc
        return row

    def delete_folder(self, folder: str) -> int:
        try:
            result = self._session.execute(
                delete(ReferenceImageRecord).where(ReferenceImageRecord.folder == folder)
            )
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to delete reference image folder.") from exc
        return result.rowcount or 0
