"""
app/api/routers/keywords.py

Keyword store endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.routers._bodies import parse_record_list
from app.schemas.records import KeywordPayload, RecordDeletedResponse, RecordsWrittenResponse
from db.repositories import KeywordInput, KeywordRepository, RecordNotFoundError, RecordStoreError
from db.session import get_db

router = APIRouter(prefix="/keywords", tags=["keywords"])


@router.get("", response_model=list[KeywordPayload])
def list_keywords(db: Session = Depends(get_db)) -> list[KeywordPayload]:
    try:
        rows = KeywordRepository(db).list_all()
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return [KeywordPayload(keyword=row.keyword, patent=row.patent) for row in rows]


@router.put("", response_model=RecordsWrittenResponse)
def replace_keywords(
    body: Any = Body(...),
    db: Session = Depends(get_db),
) -> RecordsWrittenResponse:
    records = parse_record_list(body, KeywordPayload)
    try:
        count = KeywordRepository(db).replace_all(
            [KeywordInput(keyword=record.keyword, patent=record.patent) for record in records]
        )
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save",
        ) from exc
    return RecordsWrittenResponse(count=count)


@router.post("", response_model=KeywordPayload, status_code=status.HTTP_201_CREATED)
def create_keyword(
    body: KeywordPayload,
    db: Session = Depends(get_db),
) -> KeywordPayload:
    try:
        row = KeywordRepository(db).insert(KeywordInput(keyword=body.keyword, patent=body.patent))
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save",
        ) from exc
    return KeywordPayload(keyword=row.keyword, patent=row.patent)


@router.delete("", response_model=RecordDeletedResponse)
def delete_keyword(
    keyword: str = Query(..., min_length=1, description="Phrase to remove"),
    db: Session = Depends(get_db),
) -> RecordDeletedResponse:
    try:
        removed = KeywordRepository(db).delete(keyword.strip())
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found") from exc
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return RecordDeletedResponse(removed=removed)
