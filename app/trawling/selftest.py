"""
Offline matcher self-check against a fixed sentence.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from app.trawling.matching import DEFAULT_MAX_GAP_WORDS, compile_matcher, find_match
from app.trawling.normalization import normalize

SELF_TEST_SENTENCE = "our shilajit resin is very pure and includes pure gold"
SELF_TEST_CASES: tuple[tuple[str, bool], ...] = (
    ("gold shilajit", True),
    ("shilajit gold", True),
    ("pure gold", True),
    ("gold resin shilajit", True),
    ("goldfinch", False),
)


@dataclass(frozen=True)
class SelfTestCase:
    keyword: str
    expected: bool
    matched: bool

    @property
    def passed(self) -> bool:
        return self.expected == self.matched


def run_self_test(
    *,
    sentence: str = SELF_TEST_SENTENCE,
    cases: Sequence[tuple[str, bool]] = SELF_TEST_CASES,
    max_gap_words: int = DEFAULT_MAX_GAP_WORDS,
    synonyms: Mapping[str, Sequence[str]] | None = None,
) -> list[SelfTestCase]:
    haystack = normalize(sentence)
    outcomes: list[SelfTestCase] = []
    for keyword, expected in cases:
        matcher = compile_matcher(keyword, max_gap_words, synonyms)
        outcomes.append(
            SelfTestCase(
                keyword=keyword,
                expected=expected,
                matched=find_match(matcher, haystack) is not None,
            )
        )
    return outcomes
