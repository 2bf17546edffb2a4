from __future__ import annotations

import unicodedata
from typing import List, Sequence

import regex

# \X = extended grapheme cluster (UAX #29), emoji ZWJ sequences included
_GRAPHEME = regex.compile(r"\X")


# -------------------- Graphemes --------------------
def normalize(s: str) -> str:
    return unicodedata.normalize("NFC", s)


def graphemes(s: str) -> List[str]:
    """
    Split into user-perceived characters.
    "e" + U+0301 is one item, a family emoji joined with U+200D is one item.
    """
    if not s:
        return []
    return _GRAPHEME.findall(s)


def grapheme_length(s: str) -> int:
    return len(graphemes(s))


# -------------------- Edit distance --------------------
def _levenshtein(a: Sequence[str], b: Sequence[str]) -> int:
    # keep the shorter sequence on the inner axis: memory is O(min(len(a), len(b)))
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        curr = [i] + [0] * len(b)
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                curr[j] = prev[j - 1]
            else:
                curr[j] = min(prev[j], curr[j - 1], prev[j - 1]) + 1
        prev = curr
    return prev[-1]


def edit_distance(a: str, b: str) -> int:
    """
    Minimum number of single-grapheme insertions, deletions or substitutions
    turning `a` into `b`. Both sides are NFC-normalized first, so precomposed
    and decomposed accents compare equal.
    """
    return _levenshtein(graphemes(normalize(a)), graphemes(normalize(b)))
