"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation and session access.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from db.session import SessionLocal

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp", ".svg", ".avif"}


def get_image_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is an image by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_image_filename = any(filename.endswith(extension) for extension in IMAGE_EXTENSIONS)
    is_image_content_type = content_type.startswith("image/")

    if not is_image_filename and not is_image_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image files are allowed.",
        )

    return file


def get_session_factory() -> Callable[[], Session]:
    """
    Session factory for endpoints that open a session only on some paths.
    """

    return SessionLocal
