from __future__ import annotations

import asyncio
import dataclasses
import logging
import math
import numbers
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .blocklist import (
    DEFAULT_MATCHING_SENSITIVITY,
    DEFAULT_MAX_EDIT_DISTANCE,
    match_blocklist,
)
from .errors import PolicyConfigurationError
from .hibp import BreachChecker, BreachServiceError
from .result import ValidationResult
from .text import grapheme_length

logger = logging.getLogger(__name__)


# -------------------- Messages --------------------
BREACHED = "Password has been compromised in a data breach."
BREACH_UNAVAILABLE = "Unable to verify password against breach database. Please try again later."


# -------------------- Options --------------------
@dataclass(frozen=True)
class ValidationOptions:
    """
    Every knob of the policy, all optional.

    Lengths are counted in user-perceived characters. `error_limit=None`
    collects every violation; `hibp_debounce_ms=None` queries the breach
    database immediately instead of coalescing bursts of calls.
    """
    min_length: int = 15
    max_length: int = 64
    blocklist: Sequence[str] = ()
    matching_sensitivity: float = DEFAULT_MATCHING_SENSITIVITY
    max_edit_distance: int = DEFAULT_MAX_EDIT_DISTANCE
    custom_distance_calculator: Optional[Callable[[str, str], int]] = None
    trim_whitespace: bool = True
    error_limit: Optional[int] = None
    hibp_check: bool = True
    hibp_debounce_ms: Optional[float] = None


OPTION_NAMES = frozenset(f.name for f in dataclasses.fields(ValidationOptions))

OptionsLike = Union[ValidationOptions, Mapping[str, Any], None]


DEFAULT_POLICIES: Dict[str, Dict[str, Any]] = {
    # NIST SP 800-63B: 15+ characters for single-factor, allow at least 64
    "nist": {
        "min_length": 15,
        "max_length": 64,
        "hibp_check": True,
    },
    # accounts protected by a second factor may go down to 8
    "relaxed": {
        "min_length": 8,
        "max_length": 64,
        "hibp_check": True,
    },
    "offline": {
        "min_length": 15,
        "max_length": 64,
        "hibp_check": False,
    },
}


def resolve_options(options: OptionsLike = None) -> ValidationOptions:
    if options is None:
        return ValidationOptions()
    if isinstance(options, ValidationOptions):
        return options
    if isinstance(options, Mapping):
        unknown = sorted(set(options) - OPTION_NAMES)
        if unknown:
            raise PolicyConfigurationError(f"Unknown validation option(s): {', '.join(unknown)}")
        return ValidationOptions(**options)
    raise PolicyConfigurationError(
        f"Options must be ValidationOptions or a mapping, not {type(options).__name__}."
    )


def preset_options(preset: str, **overrides: Any) -> ValidationOptions:
    if preset not in DEFAULT_POLICIES:
        raise PolicyConfigurationError(f"Unknown policy preset: {preset!r}")
    merged = dict(DEFAULT_POLICIES[preset])
    merged.update(overrides)
    return resolve_options(merged)


# -------------------- Stage 1: input checks --------------------
def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _usable_limit(options: ValidationOptions) -> Optional[int]:
    limit = options.error_limit
    return limit if _is_int(limit) and limit >= 1 else None


def validate_input(password: Any, options: ValidationOptions) -> List[str]:
    """
    Shape checks that run before any policy rule. A non-string or empty
    password stops here with a single message; option problems are all listed.
    """
    if not isinstance(password, str):
        return ["Password must be a string."]

    candidate = password.strip() if options.trim_whitespace else password
    if not candidate:
        return ["Password cannot be empty."]

    errors: List[str] = []
    min_ok = _is_int(options.min_length) and options.min_length >= 1
    max_ok = _is_int(options.max_length) and options.max_length >= 1
    if not min_ok:
        errors.append("Minimum length must be a positive integer.")
    if not max_ok:
        errors.append("Maximum length must be a positive integer.")
    if min_ok and max_ok and options.min_length > options.max_length:
        errors.append("Minimum length cannot be greater than maximum length.")

    blocklist = options.blocklist
    if blocklist is not None and (
        not isinstance(blocklist, (list, tuple)) or not all(isinstance(t, str) for t in blocklist)
    ):
        errors.append("Blocklist must be a list of strings.")

    if not _is_number(options.matching_sensitivity):
        errors.append("Matching sensitivity must be a number.")
    elif not 0 <= options.matching_sensitivity <= 1:
        errors.append("Matching sensitivity must be between 0 and 1.")

    if not (_is_int(options.max_edit_distance) and options.max_edit_distance >= 0):
        errors.append("Max edit distance must be a non-negative integer.")

    if options.custom_distance_calculator is not None and not callable(options.custom_distance_calculator):
        errors.append("Custom distance calculator must be callable.")

    if not isinstance(options.trim_whitespace, bool):
        errors.append("Trim whitespace must be a boolean.")

    if options.error_limit is not None and _usable_limit(options) is None:
        errors.append("Error limit must be an integer greater than or equal to 1.")

    if not isinstance(options.hibp_check, bool):
        errors.append("HIBP check must be a boolean.")

    debounce = options.hibp_debounce_ms
    if debounce is not None and not (_is_number(debounce) and math.isfinite(debounce) and debounce >= 0):
        errors.append("HIBP debounce delay must be a non-negative number.")

    return errors


# -------------------- Stages 2-3: length --------------------
def check_min_length(password: str, min_length: int) -> List[str]:
    if grapheme_length(password) < min_length:
        return [f"Password must be at least {min_length} characters."]
    return []


def check_max_length(password: str, max_length: int) -> List[str]:
    if grapheme_length(password) > max_length:
        return [f"Password must not exceed {max_length} characters."]
    return []


# -------------------- Stage 5: breach --------------------
async def check_breached(password: str, checker: BreachChecker, debounce_ms: Optional[float] = None) -> List[str]:
    try:
        compromised = await checker(password, debounce_ms=debounce_ms)
    except BreachServiceError as exc:
        logger.warning("breach check unavailable: %s", exc)
        return [BREACH_UNAVAILABLE]
    return [BREACHED] if compromised else []


# -------------------- Pipeline --------------------
class ErrorBudget:
    """Collects messages until `limit` is reached; `None` never runs out."""

    def __init__(self, limit: Optional[int] = None) -> None:
        self.limit = limit
        self.errors: List[str] = []

    @property
    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return max(0, self.limit - len(self.errors))

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0

    def extend(self, messages: Sequence[str]) -> None:
        room = self.remaining
        self.errors.extend(messages if room is None else messages[:room])

    def result(self) -> ValidationResult:
        return ValidationResult.from_errors(self.errors)


async def validate_password(password: Any,
    options: OptionsLike = None,
    *,
    breach_checker: Optional[BreachChecker] = None) -> ValidationResult:
    """
    Run every policy stage in order (input, min length, max length, blocklist,
    breach database) and return the violations found.

    As soon as `error_limit` messages are collected the remaining stages are
    skipped. Raises PolicyConfigurationError only for misuse: unknown option
    names, a custom distance calculator that fails or returns nonsense, or a
    debounce delay without a `breach_checker` to hold the coalescers.

    Without a `breach_checker` each call makes its own undebounced lookup.
    """
    opts = resolve_options(options)

    problems = validate_input(password, opts)
    if problems:
        logger.debug("input check failed with %d problem(s)", len(problems))
        return ValidationResult.from_errors(problems[:_usable_limit(opts)])

    budget = ErrorBudget(opts.error_limit)
    if opts.trim_whitespace:
        password = password.strip()

    budget.extend(check_min_length(password, opts.min_length))
    if budget.exhausted:
        return budget.result()

    budget.extend(check_max_length(password, opts.max_length))
    if budget.exhausted:
        return budget.result()

    if opts.blocklist:
        # the fuzzy scan is CPU bound; keep it off the event loop
        blocked = await asyncio.to_thread(
            match_blocklist,
            password,
            opts.blocklist,
            matching_sensitivity=opts.matching_sensitivity,
            max_edit_distance=opts.max_edit_distance,
            custom_distance_calculator=opts.custom_distance_calculator,
            trim_whitespace=opts.trim_whitespace,
            error_limit=budget.remaining,
        )
        budget.extend(blocked.errors)
        if budget.exhausted:
            return budget.result()

    if opts.hibp_check:
        if breach_checker is not None:
            budget.extend(await check_breached(password, breach_checker, opts.hibp_debounce_ms))
        elif opts.hibp_debounce_ms is not None:
            raise PolicyConfigurationError(
                "hibp_debounce_ms needs a shared breach_checker; pass one or use PasswordValidator."
            )
        else:
            budget.extend(await check_breached(password, BreachChecker()))

    logger.debug("validation finished with %d error(s)", len(budget.errors))
    return budget.result()


class PasswordValidator:
    """Stored configuration plus its own breach checker."""

    def __init__(self, options: OptionsLike = None, *, breach_checker: Optional[BreachChecker] = None) -> None:
        self.options = resolve_options(options)
        self.breach_checker = breach_checker or BreachChecker()

    def update_config(self, options: Optional[Mapping[str, Any]] = None, **changes: Any) -> None:
        merged = dict(options or {})
        merged.update(changes)
        unknown = sorted(set(merged) - OPTION_NAMES)
        if unknown:
            raise PolicyConfigurationError(f"Unknown validation option(s): {', '.join(unknown)}")
        self.options = dataclasses.replace(self.options, **merged)

    async def validate(self, password: Any) -> ValidationResult:
        return await validate_password(password, self.options, breach_checker=self.breach_checker)

    async def aclose(self) -> None:
        await self.breach_checker.aclose()
