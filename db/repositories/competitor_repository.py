"""
Competitor repository: read-all, replace-all, insert and delete-by-url.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.competitor import CompetitorRecord
from db.repositories.errors import DuplicateRecordError, RecordNotFoundError, RecordStoreError
from db.repositories.types import CompetitorInput


class CompetitorRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_all(self) -> list[CompetitorRecord]:
        try:
            stmt = select(CompetitorRecord).order_by(CompetitorRecord.id)
            return list(self._session.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to read competitors.") from exc

    def replace_all(self, records: Sequence[CompetitorInput]) -> int:
        """
        Replace every stored competitor with `records` in one transaction.
        """

        try:
            self._session.execute(delete(CompetitorRecord))
            self._session.add_all(
                CompetitorRecord(name=record.name, url=record.url) for record in records
            )
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            raise DuplicateRecordError("Competitor URLs must be unique.") from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to replace competitors.") from exc
        return len(records)

    def insert(self, record: CompetitorInput) -> CompetitorRecord:
        row = CompetitorRecord(name=record.name, url=record.url)
        self._session.add(row)
        try:
            self._session.commit()
            self._session.refresh(row)
        except IntegrityError as exc:
            self._session.rollback()
            raise DuplicateRecordError(f"A competitor with URL {record.url!r} already exists.") from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to insert competitor.") from exc
        return row

    def delete(self, url: str) -> None:
        try:
            result = self._session.execute(
                delete(CompetitorRecord).where(CompetitorRecord.url == url)
            )
            if result.rowcount == 0:
                self._session.rollback()
                raise RecordNotFoundError(f"Competitor not found: {url}")
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to delete competitor.") from exc
