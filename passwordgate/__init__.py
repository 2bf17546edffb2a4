from __future__ import annotations

__version__ = "0.3.0"

from .errors import PolicyConfigurationError
from .text import edit_distance, grapheme_length, graphemes
from .blocklist import match_blocklist
from .coalesce import Coalescer, CoalescerRegistry, coalesce
from .hibp import BreachChecker, BreachServiceError, check_breach
from .core import (
    DEFAULT_POLICIES,
    PasswordValidator,
    ValidationOptions,
    ValidationResult,
    validate_password,
)

__all__ = [
    "__version__",
    "PolicyConfigurationError",
    "edit_distance",
    "grapheme_length",
    "graphemes",
    "match_blocklist",
    "Coalescer",
    "CoalescerRegistry",
    "coalesce",
    "BreachChecker",
    "BreachServiceError",
    "check_breach",
    "DEFAULT_POLICIES",
    "PasswordValidator",
    "ValidationOptions",
    "ValidationResult",
    "validate_password",
]
