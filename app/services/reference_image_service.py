"""
app/services/reference_image_service.py

Upload, external URL registration, listing and removal of reference images
and their fingerprints.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from urllib.parse import unquote, urlsplit

import requests
from sqlalchemy.orm import Session

from app.config import TrawlSettings, get_trawl_settings, get_upload_settings
from app.trawling.fetcher import build_headers
from app.trawling.images import fingerprint_bytes
from app.trawling.logging_utils import log_event
from db.models.reference_image import ReferenceImageRecord
from db.repositories import (
    ImageStorageBackend,
    LocalImageStorage,
    ReferenceImageInput,
    ReferenceImageRepository,
)
from db.repositories.storage import sanitize_folder

logger = logging.getLogger(__name__)

EXTERNAL_FILENAME = "external"


class ImageUrlError(ValueError):
    """Raised when an external image URL is malformed or cannot be fetched."""


class ReferenceImageService:
    """
    Keeps stored image files and their metadata rows in step.
    """

    def __init__(
        self,
        storage: ImageStorageBackend | None = None,
        http_session: requests.Session | None = None,
        settings: TrawlSettings | None = None,
    ) -> None:
        if storage is None:
            upload_settings = get_upload_settings()
            storage = LocalImageStorage(upload_settings.uploads_dir, upload_settings.public_prefix)
        self._storage = storage
        self._http_session = http_session or requests.Session()
        self._settings = settings or get_trawl_settings()

    def list_images(self, *, db: Session) -> list[ReferenceImageRecord]:
        return ReferenceImageRepository(db).list_all()

    def upload(
        self,
        *,
        db: Session,
        file_name: str,
        content: bytes,
        folder: str | None = None,
    ) -> ReferenceImageRecord:
        stored = self._storage.save(folder=sanitize_folder(folder), file_name=file_name, content=content)
        try:
            row = ReferenceImageRepository(db).insert(
                ReferenceImageInput(
                    folder=stored.folder,
                    url=stored.url,
                    filename=stored.filename,
                    fingerprint=fingerprint_bytes(content),
                )
            )
        except Exception:
            self._storage.delete(folder=stored.folder, filename=stored.filename)
            raise
        log_event(
            logger,
            logging.INFO,
            "reference_image_uploaded",
            folder=row.folder,
            url=row.url,
            size_bytes=stored.file_size_bytes,
        )
        return row

    def register_url(
        self,
        *,
        db: Session,
        url: str,
        folder: str | None = None,
    ) -> ReferenceImageRecord:
        """
        Record an externally hosted image under its own URL.

        The bytes are fetched once to compute the fingerprint; nothing is
        written to storage.
        """

        url = (url or "").strip()
        if not url:
            raise ImageUrlError("No URL provided")
        try:
            parts = urlsplit(url)
        except ValueError as exc:
            raise ImageUrlError(f"Unsupported image URL: {url}") from exc
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise ImageUrlError(f"Unsupported image URL: {url}")

        content = self._fetch(url)
        row = ReferenceImageRepository(db).insert(
            ReferenceImageInput(
                folder=sanitize_folder(folder),
                url=url,
                filename=unquote(parts.path.rsplit("/", 1)[-1]) or EXTERNAL_FILENAME,
                fingerprint=fingerprint_bytes(content),
            )
        )
        log_event(
            logger,
            logging.INFO,
            "reference_image_registered",
            folder=row.folder,
            url=row.url,
            size_bytes=len(content),
        )
        return row

    def delete(self, *, db: Session, url: str) -> None:
        row = ReferenceImageRepository(db).delete(url)
        if self._storage.owns(row.url):
            self._storage.delete(folder=row.folder, filename=row.filename)
        log_event(logger, logging.INFO, "reference_image_deleted", url=url)

    def _fetch(self, url: str) -> bytes:
        try:
            response = self._http_session.get(
                url,
                timeout=self._settings.image_fetch_timeout_ms / 1000,
                headers=build_headers(self._settings.user_agent),
            )
        except requests.RequestException as exc:
            log_event(logger, logging.WARNING, "reference_image_fetch_failed", url=url, error=repr(exc))
            raise ImageUrlError(f"Failed to fetch image: {url}") from exc
        if not response.ok or not response.content:
            log_event(
                logger,
                logging.WARNING,
                "reference_image_fetch_failed",
                url=url,
                status=response.status_code,
            )
            raise ImageUrlError(f"Failed to fetch image: {url}")
        return response.content

    def delete_folder(self, *, db: Session, folder: str) -> int:
        safe_folder = sanitize_folder(folder)
        removed = ReferenceImageRepository(db).delete_folder(safe_folder)
        self._storage.delete_folder(folder=safe_folder)
        log_event(
            logger,
            logging.INFO,
            "reference_image_folder_deleted",
            folder=safe_folder,
            removed=removed,
        )
        return removed


@lru_cache(maxsize=1)
def get_reference_image_service() -> ReferenceImageService:
    """
    Build and cache the reference image service.
    """

    return ReferenceImageService()
