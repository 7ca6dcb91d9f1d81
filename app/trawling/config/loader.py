"""
JSON loaders for the synonym table and marketplace page shapes.
"""

from __future__ import annotations

import json
import re
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from app.trawling.config.models import MarketplaceShape, UrlSignature

DEFAULT_SYNONYMS_PATH = "app/trawling/config/synonyms.json"
DEFAULT_MARKETPLACES_PATH = "app/trawling/config/marketplaces.json"

_EXTRACTOR_KINDS = {"anchor", "card"}


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def resolve_config_path(raw_path: str) -> Path:
    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (_project_root() / candidate).resolve()


def _read_json(path: Path) -> object:
    if not path.exists():
        raise FileNotFoundError(f"Trawl config file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


@lru_cache(maxsize=8)
def load_synonym_table(path: str = DEFAULT_SYNONYMS_PATH) -> Mapping[str, tuple[str, ...]]:
    """
    Load the word -> alternatives table used by the phrase matcher.

    Keys and values are lower-cased; entries that are not a word mapped to a
    list of words are skipped.
    """

    raw_data = _read_json(resolve_config_path(path))
    if not isinstance(raw_data, dict):
        raise ValueError("Invalid synonym config: top level must be an object.")
    entries = raw_data.get("synonyms", {})
    if not isinstance(entries, dict):
        raise ValueError("Invalid synonym config: 'synonyms' must be an object.")

    table: dict[str, tuple[str, ...]] = {}
    for word, alternatives in entries.items():
        if not isinstance(word, str) or not isinstance(alternatives, list):
            continue
        key = word.strip().lower()
        values = tuple(
            item.strip().lower()
            for item in alternatives
            if isinstance(item, str) and item.strip()
        )
        if key and values:
            table[key] = values
    return MappingProxyType(table)


@lru_cache(maxsize=8)
def load_marketplace_shapes(path: str = DEFAULT_MARKETPLACES_PATH) -> tuple[MarketplaceShape, ...]:
    """
    Load marketplace search-page shapes in declaration order.
    """

    raw_data = _read_json(resolve_config_path(path))
    marketplaces = raw_data.get("marketplaces", []) if isinstance(raw_data, dict) else None
    if not isinstance(marketplaces, list):
        raise ValueError("Invalid marketplace config: 'marketplaces' must be a list.")

    shapes: list[MarketplaceShape] = []
    for entry in marketplaces:
        if not isinstance(entry, dict):
            continue
        name = str(entry.get("name", "")).strip()
        host = str(entry.get("host", "")).strip()
        if not name or not host:
            continue

        kind = str(entry.get("kind", "anchor")).strip().lower()
        if kind not in _EXTRACTOR_KINDS and not entry.get("extractor_class"):
            raise ValueError(f"Unknown extractor kind='{kind}' for marketplace='{name}'.")

        shapes.append(
            MarketplaceShape(
                name=name,
                kind=kind,
                host_pattern=_compile(host, name=name),
                signatures=_parse_signatures(entry.get("signatures", []), name=name),
                link_patterns=tuple(
                    _compile(pattern, name=name) for pattern in _str_list(entry.get("link_patterns"))
                ),
                card_selector=_optional_str(entry.get("card_selector")),
                preferred_link_selector=_optional_str(entry.get("preferred_link_selector")),
                title_selectors=tuple(_str_list(entry.get("title_selectors"))),
                render_always=bool(entry.get("render_always", False)),
                rendered_selectors=tuple(_str_list(entry.get("rendered_selectors"))),
                extractor_class=_optional_str(entry.get("extractor_class")),
            )
        )
    return tuple(shapes)


def _parse_signatures(raw: object, *, name: str) -> tuple[UrlSignature, ...]:
    if not isinstance(raw, list):
        return ()

    signatures: list[UrlSignature] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        path = _optional_str(item.get("path"))
        query = _optional_str(item.get("query"))
        if path is None and query is None:
            continue
        signatures.append(
            UrlSignature(
                path=_compile(path, name=name) if path else None,
                query=_compile(query, name=name) if query else None,
            )
        )
    return tuple(signatures)


def _compile(pattern: str, *, name: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern, flags=re.IGNORECASE)
    except re.error as exc:
        raise ValueError(f"Invalid pattern '{pattern}' for marketplace='{name}': {exc}") from exc


def _str_list(value: object) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _optional_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None
