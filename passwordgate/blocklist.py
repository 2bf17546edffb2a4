from __future__ import annotations

import logging
import math
import numbers
from typing import Callable, Iterable, List, Optional

from .errors import PolicyConfigurationError
from .result import ValidationResult
from .text import edit_distance, grapheme_length, graphemes, normalize

logger = logging.getLogger(__name__)

DEFAULT_MATCHING_SENSITIVITY = 0.25
DEFAULT_MAX_EDIT_DISTANCE = 5

ToleranceFn = Callable[[str, str], int]


def blocked_message(term: str) -> str:
    return f'Password contains a substring too similar to: "{term}".'


def canonical_term(term: str, trim_whitespace: bool = True) -> str:
    if trim_whitespace:
        term = term.strip()
    return normalize(term.lower())


def canonical_terms(terms: Optional[Iterable[str]], trim_whitespace: bool = True) -> List[str]:
    """
    Lower-cased, NFC, de-duplicated terms in first-seen order.
    Terms that are blank once stripped are dropped whatever `trim_whitespace` says.
    """
    if not terms:
        return []
    kept = (canonical_term(t, trim_whitespace) for t in terms if t.strip())
    return list(dict.fromkeys(kept))


def _coerce_tolerance(value: object, term: str) -> int:
    # bool is an int subclass but never a meaningful distance
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise PolicyConfigurationError(
            f"Custom distance calculator returned {type(value).__name__} for term {term!r}; expected a number."
        )
    if not math.isfinite(value):
        raise PolicyConfigurationError(
            f"Custom distance calculator returned a non-finite value for term {term!r}."
        )
    return max(0, math.floor(value))


def term_tolerance(term: str,
    password: str,
    matching_sensitivity: float = DEFAULT_MATCHING_SENSITIVITY,
    max_edit_distance: int = DEFAULT_MAX_EDIT_DISTANCE,
    custom_distance_calculator: Optional[ToleranceFn] = None) -> int:
    """
    Largest edit distance at which a password window still counts as `term`.
    A custom calculator wins over sensitivity/cap; its result is floored and
    clamped at 0.
    """
    if custom_distance_calculator is not None:
        try:
            value = custom_distance_calculator(term, password)
        except Exception as exc:
            raise PolicyConfigurationError(
                f"Custom distance calculator failed for term {term!r}: {exc!r}"
            ) from exc
        return _coerce_tolerance(value, term)
    derived = math.floor(grapheme_length(term) * matching_sensitivity)
    return max(0, min(derived, max_edit_distance))


def is_term_blocked(password: str, term: str, tolerance: int) -> bool:
    """
    `password` and `term` are expected in canonical form already
    (see `canonical_term`); `term` must not be empty.
    """
    term_chars = graphemes(term)
    width = len(term_chars)

    # short terms would fuzzy-match nearly anything: demand the whole password
    if width <= tolerance:
        return password == term

    chars = graphemes(password)
    for i in range(len(chars) - width + 1):
        window = "".join(chars[i:i + width])
        if edit_distance(window, term) <= tolerance:
            return True
    return False


def match_blocklist(password: str,
    terms: Optional[Iterable[str]],
    *,
    matching_sensitivity: float = DEFAULT_MATCHING_SENSITIVITY,
    max_edit_distance: int = DEFAULT_MAX_EDIT_DISTANCE,
    custom_distance_calculator: Optional[ToleranceFn] = None,
    trim_whitespace: bool = True,
    error_limit: Optional[int] = None) -> ValidationResult:
    """
    Flag every blocklist term that appears in `password`, exactly or within
    its tolerance. One message per term, in blocklist order.

    Once `error_limit` messages have been collected no further term is scanned.
    """
    canon = canonical_terms(terms, trim_whitespace)
    if not canon:
        return ValidationResult.from_errors([])

    if trim_whitespace:
        password = password.strip()
    lowered = normalize(password.lower())

    errors: List[str] = []
    for term in canon:
        if error_limit is not None and len(errors) >= error_limit:
            break
        tolerance = term_tolerance(
            term, password,
            matching_sensitivity=matching_sensitivity,
            max_edit_distance=max_edit_distance,
            custom_distance_calculator=custom_distance_calculator,
        )
        if is_term_blocked(lowered, term, tolerance):
            errors.append(blocked_message(term))

    logger.debug("blocklist: %d term(s) checked, %d match(es)", len(canon), len(errors))
    return ValidationResult.from_errors(errors)
