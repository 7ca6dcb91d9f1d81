"""
Text canonicalization shared by every matching path.
"""

from __future__ import annotations

import re
import unicodedata

_SINGLE_QUOTES = "\u2018\u2019\u201a\u201b"
_DOUBLE_QUOTES = "\u201c\u201d\u201e\u201f"
_DASHES = "\u2010\u2011\u2012\u2013\u2014\u2015\u2212"

_PUNCTUATION_FOLDS = str.maketrans(
    {
        **{char: "'" for char in _SINGLE_QUOTES},
        **{char: '"' for char in _DOUBLE_QUOTES},
        **{char: "-" for char in _DASHES},
        "\u00a0": " ",
    }
)
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize(text: str) -> str:
    """
    Fold text into the single comparable form used for matching.

    Output only ever contains ``[a-z0-9]`` runs separated by single spaces,
    so the function is idempotent.
    """

    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    folded = stripped.translate(_PUNCTUATION_FOLDS).lower()
    return _NON_ALNUM.sub(" ", folded).strip()
