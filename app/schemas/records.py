"""
app/schemas/records.py

Request/response schemas for the competitor, keyword and reference image stores.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CompetitorPayload(BaseModel):
    """
    One competitor page. The URL travels under the `URL` key.
    """

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    name: str
    url: str = Field(..., alias="URL")

    @field_validator("name", "url")
    @classmethod
    def _strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class KeywordPayload(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    keyword: str
    patent: str | None = None

    @field_validator("keyword")
    @classmethod
    def _strip_keyword(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped

    @field_validator("patent")
    @classmethod
    def _strip_patent(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class ReferenceImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    folder: str
    url: str
    filename: str
    fingerprint: str


class RecordsWrittenResponse(BaseModel):
    ok: bool = True
    count: int = Field(..., ge=0)


class RecordDeletedResponse(BaseModel):
    success: bool = True
    removed: int = Field(default=1, ge=0)


class DeleteFolderRequest(BaseModel):
    folder: str = Field(..., min_length=1)


class ImageUrlRequest(BaseModel):
    """
    External image to register by URL; a blank folder means `Unsorted`.
    """

    url: str | None = None
    folder: str | None = None
