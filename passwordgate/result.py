from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of one validation: `valid` is true exactly when `errors` is empty.
    Errors keep the order in which the checks reported them.
    """
    valid: bool
    errors: Tuple[str, ...] = ()

    @classmethod
    def from_errors(cls, errors: Iterable[str]) -> "ValidationResult":
        frozen = tuple(errors)
        return cls(valid=not frozen, errors=frozen)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors)}
