"""
Typed DTOs used by the record store repositories.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CompetitorInput:
    name: str
    url: str


@dataclass(frozen=True)
class KeywordInput:
    keyword: str
    patent: str | None = None


@dataclass(frozen=True)
class ReferenceImageInput:
    """
    Metadata row for one stored reference image.
    """

    folder: str
    url: str
    filename: str
    fingerprint: str
