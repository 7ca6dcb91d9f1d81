"""
app/api/routers/_bodies.py

Replace-all request body parsing shared by the record routers.
"""

from __future__ import annotations

from typing import Any, TypeVar

from fastapi import HTTPException, status
from pydantic import BaseModel, TypeAdapter, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_record_list(body: Any, model: type[ModelT]) -> list[ModelT]:
    """
    Validate a replace-all body; anything but a list of valid records is a 400.
    """

    if not isinstance(body, list):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid body: expected a JSON array.",
        )
    try:
        return TypeAdapter(list[model]).validate_python(body)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc
