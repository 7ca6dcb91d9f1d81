"""
app/api/routers/images.py

Reference image endpoints: listing, upload, external URL registration and removal.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_image_upload
from app.schemas.records import (
    DeleteFolderRequest,
    ImageUrlRequest,
    RecordDeletedResponse,
    ReferenceImageResponse,
)
from app.services.reference_image_service import (
    ImageUrlError,
    ReferenceImageService,
    get_reference_image_service,
)
from db.repositories import DuplicateRecordError, RecordNotFoundError, RecordStoreError
from db.session import get_db

router = APIRouter(prefix="/images", tags=["images"])


@router.get("", response_model=list[ReferenceImageResponse])
def list_images(
    db: Session = Depends(get_db),
    image_service: ReferenceImageService = Depends(get_reference_image_service),
) -> list[ReferenceImageResponse]:
    try:
        rows = image_service.list_images(db=db)
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return [ReferenceImageResponse.model_validate(row) for row in rows]


@router.post("/upload", response_model=ReferenceImageResponse, status_code=status.HTTP_201_CREATED)
def upload_image(
    file: UploadFile = Depends(get_image_upload),
    folder: str | None = Form(default=None),
    db: Session = Depends(get_db),
    image_service: ReferenceImageService = Depends(get_reference_image_service),
) -> ReferenceImageResponse:
    """
    Store one reference image and record its content fingerprint.
    """

    try:
        content = file.file.read()
        if not content:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Uploaded file is empty.",
            )
        row = image_service.upload(
            db=db,
            file_name=file.filename or "",
            content=content,
            folder=folder,
        )
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    finally:
        file.file.close()

    return ReferenceImageResponse.model_validate(row)


@router.post("/uploadUrl", response_model=ReferenceImageResponse, status_code=status.HTTP_201_CREATED)
def register_image_url(
    body: ImageUrlRequest,
    db: Session = Depends(get_db),
    image_service: ReferenceImageService = Depends(get_reference_image_service),
) -> ReferenceImageResponse:
    """
    Register an externally hosted image; its URL is stored as-is.
    """

    try:
        row = image_service.register_url(db=db, url=body.url or "", folder=body.folder)
    except ImageUrlError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except DuplicateRecordError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return ReferenceImageResponse.model_validate(row)


@router.delete("", response_model=RecordDeletedResponse)
def delete_image(
    url: str = Query(..., min_length=1, description="Stored URL of the image to remove"),
    db: Session = Depends(get_db),
    image_service: ReferenceImageService = Depends(get_reference_image_service),
) -> RecordDeletedResponse:
    try:
        image_service.delete(db=db, url=url)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found") from exc
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return RecordDeletedResponse()


@router.post("/delete-folder", response_model=RecordDeletedResponse)
def delete_folder(
    body: DeleteFolderRequest,
    db: Session = Depends(get_db),
    image_service: ReferenceImageService = Depends(get_reference_image_service),
) -> RecordDeletedResponse:
    try:
        removed = image_service.delete_folder(db=db, folder=body.folder)
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return RecordDeletedResponse(removed=removed)
