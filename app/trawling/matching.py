"""
Flexible phrase matching: synonym-aware, word-order tolerant, gap bounded.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import NamedTuple

from app.domain.trawl import MatchResult
from app.trawling.config import load_synonym_table
from app.trawling.extractors.base import ListingItem
from app.trawling.normalization import normalize

DEFAULT_MAX_GAP_WORDS = 30
PAGE_CONTEXT_RADIUS = 60
LISTING_CONTEXT_RADIUS = 40


class MatchSpan(NamedTuple):
    start: int
    length: int


@dataclass(frozen=True)
class CompiledMatcher:
    """
    One keyword phrase compiled for matching. `pattern` is None for an empty
    phrase, which never matches.
    """

    original_phrase: str
    pattern: re.Pattern[str] | None


def compile_matcher(
    phrase: str,
    max_gap_words: int = DEFAULT_MAX_GAP_WORDS,
    synonyms: Mapping[str, Sequence[str]] | None = None,
) -> CompiledMatcher:
    """
    Compile `phrase` into a matcher over normalized text.

    Each word becomes an alternation of itself and its synonyms. A single
    word matches as a whole token; several words match in forward or reverse
    order with at most ``max_gap_words - 1`` tokens between consecutive words.
    """

    table = load_synonym_table() if synonyms is None else synonyms
    groups = [_word_group(word, table) for word in normalize(phrase).split()]
    if not groups:
        return CompiledMatcher(original_phrase=phrase, pattern=None)
    if len(groups) == 1:
        return CompiledMatcher(
            original_phrase=phrase,
            pattern=re.compile(rf"\b{groups[0]}\b", flags=re.IGNORECASE),
        )

    between = rf"(?:[\W_]+\w+){{0,{max(0, max_gap_words - 1)}}}[\W_]+"
    forward = _sequence(groups, between)
    reverse = _sequence(list(reversed(groups)), between)
    return CompiledMatcher(
        original_phrase=phrase,
        pattern=re.compile(f"{forward}|{reverse}", flags=re.IGNORECASE),
    )


def find_match(matcher: CompiledMatcher, haystack: str) -> MatchSpan | None:
    """
    Return the first match span in an already-normalized haystack.
    """

    if matcher.pattern is None or not haystack:
        return None
    found = matcher.pattern.search(haystack)
    if found is None:
        return None
    return MatchSpan(start=found.start(), length=found.end() - found.start())


def context_window(haystack: str, span: MatchSpan, radius: int) -> str:
    start = max(0, span.start - radius)
    end = span.start + span.length + radius
    return haystack[start:end].strip()


def _word_group(word: str, synonyms: Mapping[str, Sequence[str]]) -> str:
    variants = [word, *[alt for alt in synonyms.get(word, ()) if alt != word]]
    return "(?:" + "|".join(re.escape(variant) for variant in variants) + ")"


def _sequence(groups: Sequence[str], between: str) -> str:
    return r"\b" + (rf"\b{between}").join(groups) + r"\b"


class MatcherSet:
    """
    Keyword matchers compiled once per run and shared read-only by all site tasks.
    """

    def __init__(self, matchers: Sequence[CompiledMatcher]) -> None:
        self._matchers = tuple(matchers)

    @classmethod
    def from_phrases(
        cls,
        phrases: Iterable[str],
        *,
        max_gap_words: int = DEFAULT_MAX_GAP_WORDS,
        synonyms: Mapping[str, Sequence[str]] | None = None,
    ) -> "MatcherSet":
        table = load_synonym_table() if synonyms is None else synonyms
        seen: set[str] = set()
        matchers: list[CompiledMatcher] = []
        for phrase in phrases:
            key = normalize(phrase)
            if not key or key in seen:
                continue
            seen.add(key)
            matchers.append(compile_matcher(phrase.strip(), max_gap_words, table))
        return cls(matchers)

    @property
    def matchers(self) -> tuple[CompiledMatcher, ...]:
        return self._matchers

    def __len__(self) -> int:
        return len(self._matchers)

    def match_text(self, *, company: str, url: str, text: str) -> list[MatchResult]:
        """
        Match the whole text of one page; context is a window around the hit.
        """

        haystack = normalize(text)
        results: list[MatchResult] = []
        for matcher in self._matchers:
            span = find_match(matcher, haystack)
            if span is None:
                continue
            results.append(
                MatchResult(
                    company=company,
                    keyword=matcher.original_phrase,
                    url=url,
                    context=context_window(haystack, span, PAGE_CONTEXT_RADIUS),
                )
            )
        return results

    def match_listings(self, *, company: str, items: Sequence[ListingItem]) -> list[MatchResult]:
        """
        Match each listing independently; hits point at the listing's own link.
        """

        if not items:
            return []
        targets = [(item, normalize(item.title or item.card_text)) for item in items]
        results: list[MatchResult] = []
        for matcher in self._matchers:
            for item, haystack in targets:
                span = find_match(matcher, haystack)
                if span is None:
                    continue
                results.append(
                    MatchResult(
                        company=company,
                        keyword=matcher.original_phrase,
                        url=item.href,
                        context=item.title or context_window(haystack, span, LISTING_CONTEXT_RADIUS),
                    )
                )
        return results
