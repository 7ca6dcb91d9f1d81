"""
app/api/routers/competitors.py

Competitor store endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.routers._bodies import parse_record_list
from app.schemas.records import CompetitorPayload, RecordDeletedResponse, RecordsWrittenResponse
from db.repositories import (
    CompetitorInput,
    CompetitorRepository,
    DuplicateRecordError,
    RecordNotFoundError,
    RecordStoreError,
)
from db.session import get_db

router = APIRouter(prefix="/competitors", tags=["competitors"])


@router.get("", response_model=list[CompetitorPayload])
def list_competitors(db: Session = Depends(get_db)) -> list[CompetitorPayload]:
    try:
        rows = CompetitorRepository(db).list_all()
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return [CompetitorPayload(name=row.name, url=row.url) for row in rows]


@router.put("", response_model=RecordsWrittenResponse)
def replace_competitors(
    body: Any = Body(...),
    db: Session = Depends(get_db),
) -> RecordsWrittenResponse:
    """
    Replace the whole competitor list.

    Raises HTTP 400 for a non-array body and HTTP 409 for duplicate URLs.
    """
    records = parse_record_list(body, CompetitorPayload)
    try:
        count = CompetitorRepository(db).replace_all(
            [CompetitorInput(name=record.name, url=record.url) for record in records]
        )
    except DuplicateRecordError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save",
        ) from exc
    return RecordsWrittenResponse(count=count)


@router.post("", response_model=CompetitorPayload, status_code=status.HTTP_201_CREATED)
def create_competitor(
    body: CompetitorPayload,
    db: Session = Depends(get_db),
) -> CompetitorPayload:
    try:
        row = CompetitorRepository(db).insert(CompetitorInput(name=body.name, url=body.url))
    except DuplicateRecordError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save",
        ) from exc
    return CompetitorPayload(name=row.name, url=row.url)


@router.delete("", response_model=RecordDeletedResponse)
def delete_competitor(
    url: str = Query(..., min_length=1, description="URL of the competitor to remove"),
    db: Session = Depends(get_db),
) -> RecordDeletedResponse:
    try:
        CompetitorRepository(db).delete(url)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found") from exc
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return RecordDeletedResponse()
