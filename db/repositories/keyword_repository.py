"""
Keyword repository: read-all, replace-all, insert and delete-by-phrase.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.keyword import KeywordRecord
from db.repositories.errors import RecordNotFoundError, RecordStoreError
from db.repositories.types import KeywordInput


class KeywordRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_all(self) -> list[KeywordRecord]:
        try:
            stmt = select(KeywordRecord).order_by(KeywordRecord.id)
            return list(self._session.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to read keywords.") from exc

    def list_phrases(self) -> list[str]:
        """
        Trimmed keyword phrases with empty entries dropped.
        """

        return [row.keyword.strip() for row in self.list_all() if row.keyword and row.keyword.strip()]

    def replace_all(self, records: Sequence[KeywordInput]) -> int:
        try:
            self._session.execute(delete(KeywordRecord))
            self._session.add_all(
                KeywordRecord(keyword=record.keyword, patent=record.patent) for record in records
            )
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to replace keywords.") from exc
        return len(records)

    def insert(self, record: KeywordInput) -> KeywordRecord:
        row = KeywordRecord(keyword=record.keyword, patent=record.patent)
        self._session.add(row)
        try:
            self._session.commit()
            self._session.refresh(row)
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to insert keyword.") from exc
        return row

    def delete(self, keyword: str) -> int:
        """
        Delete every row holding `keyword`; returns how many were removed.
        """

        try:
            result = self._session.execute(
                delete(KeywordRecord).where(KeywordRecord.keyword == keyword)
            )
            removed = result.rowcount or 0
            if removed == 0:
                self._session.rollback()
                raise RecordNotFoundError(f"Keyword not found: {keyword}")
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordStoreError("Failed to delete keyword.") from exc
        return removed
