"""
Marketplace extractor registry built from shape configuration.
"""

from __future__ import annotations

import importlib
from collections.abc import Iterable, Mapping

from app.trawling.config import load_marketplace_shapes
from app.trawling.config.models import MarketplaceShape
from app.trawling.extractors.base import MarketplaceExtractor
from app.trawling.extractors.marketplaces import AnchorListingExtractor, CardListingExtractor


class ExtractorRegistry:
    """
    Ordered list of marketplace extractors, one per configured shape.

    Adding a marketplace means adding a shape entry, or registering a custom
    extractor class under a new kind.
    """

    def __init__(
        self,
        shapes: Iterable[MarketplaceShape] | None = None,
        registrations: Mapping[str, type[MarketplaceExtractor]] | None = None,
    ) -> None:
        kinds: dict[str, type[MarketplaceExtractor]] = {
            "anchor": AnchorListingExtractor,
            "card": CardListingExtractor,
        }
        if registrations:
            kinds.update(registrations)
        self._kinds = kinds
        resolved_shapes = load_marketplace_shapes() if shapes is None else shapes
        self._extractors = [self._build(shape) for shape in resolved_shapes]

    @property
    def extractors(self) -> tuple[MarketplaceExtractor, ...]:
        return tuple(self._extractors)

    def register(self, extractor: MarketplaceExtractor) -> None:
        self._extractors.append(extractor)

    def detect(self, url: str) -> list[MarketplaceExtractor]:
        """
        Every extractor whose URL shape matches; usually zero or one.
        """

        return [extractor for extractor in self._extractors if extractor.detect(url)]

    def is_render_always(self, url: str) -> bool:
        return any(extractor.render_always for extractor in self.detect(url))

    def _build(self, shape: MarketplaceShape) -> MarketplaceExtractor:
        if shape.extractor_class:
            return self._load_dynamic_class(shape.extractor_class)(shape)

        extractor_class = self._kinds.get(shape.kind)
        if extractor_class is None:
            allowed = ", ".join(sorted(self._kinds))
            raise ValueError(
                f"Unknown extractor kind='{shape.kind}' for marketplace='{shape.name}'. "
                f"Allowed kinds: {allowed}."
            )
        return extractor_class(shape)

    @staticmethod
    def _load_dynamic_class(path: str) -> type[MarketplaceExtractor]:
        if ":" not in path:
            raise ValueError(f"Invalid extractor_class '{path}'. Use 'module.path:ClassName'.")

        module_path, class_name = path.split(":", 1)
        module = importlib.import_module(module_path)
        loaded = getattr(module, class_name, None)
        if loaded is None:
            raise ValueError(f"Unable to resolve extractor class '{path}'.")
        if not isinstance(loaded, type) or not issubclass(loaded, MarketplaceExtractor):
            raise ValueError(f"Class '{path}' must inherit from MarketplaceExtractor.")
        return loaded
