"""
Storage backend abstractions for uploaded reference images.
"""

from __future__ import annotations

import re
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from db.repositories.errors import FileStorageError

DEFAULT_FOLDER = "Unsorted"
DEFAULT_EXTENSION = ".png"
_UNSAFE_FOLDER_CHARS = re.compile(r"[\\/\x00]+")


@dataclass(frozen=True)
class StoredImageFile:
    folder: str
    filename: str
    url: str
    file_size_bytes: int


class ImageStorageBackend(Protocol):
    """
    Abstract storage backend used by the reference image service.
    """

    def save(self, *, folder: str, file_name: str, content: bytes) -> StoredImageFile:
        ...

    def delete(self, *, folder: str, filename: str) -> None:
        ...

    def delete_folder(self, *, folder: str) -> None:
        ...

    def owns(self, url: str) -> bool:
        ...


def sanitize_folder(folder: str | None) -> str:
    """
    Folder label safe to use as a single path segment; blank means `Unsorted`.
    """

    cleaned = _UNSAFE_FOLDER_CHARS.sub(" ", (folder or "")).strip()
    if cleaned in {"", ".", ".."}:
        return DEFAULT_FOLDER
    return cleaned


class LocalImageStorage:
    """
    Local filesystem storage backend.

    Files live at `<root>/<folder>/<uuid><ext>` and are served under
    `<public_prefix>/<folder>/<filename>`.
    """

    def __init__(self, root_dir: str | Path = "data/uploads", public_prefix: str = "/uploads") -> None:
        self._root_dir = Path(root_dir)
        self._public_prefix = public_prefix.rstrip("/")

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def owns(self, url: str) -> bool:
        """
        Whether `url` points at a file this backend stored.
        """

        return url.startswith(f"{self._public_prefix}/")

    def save(self, *, folder: str, file_name: str, content: bytes) -> StoredImageFile:
        safe_folder = sanitize_folder(folder)
        extension = Path(Path(file_name or "").name).suffix or DEFAULT_EXTENSION
        filename = f"{uuid.uuid4()}{extension}"

        target = self._root_dir / safe_folder / filename
        target.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = target.with_suffix(f"{target.suffix}.tmp")
        try:
            with tmp_path.open("wb") as handle:
                handle.write(content)
            tmp_path.replace(target)
        except OSError as exc:
            raise FileStorageError("Failed to write uploaded image to storage.") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

        return StoredImageFile(
            folder=safe_folder,
            filename=filename,
            url=f"{self._public_prefix}/{quote(safe_folder, safe='')}/{filename}",
            file_size_bytes=len(content),
        )

    def delete(self, *, folder: str, filename: str) -> None:
        target = self._root_dir / sanitize_folder(folder) / Path(filename).name
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as exc:
            raise FileStorageError("Failed to delete uploaded image from storage.") from exc

    def delete_folder(self, *, folder: str) -> None:
        target = self._root_dir / sanitize_folder(folder)
        if not target.exists():
            return
        try:
            shutil.rmtree(target)
        except OSError as exc:
            raise FileStorageError("Failed to delete image folder from storage.") from exc
