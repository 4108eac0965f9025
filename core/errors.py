"""Exception types raised by the naming and tagging engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class Violation:
    """A single failed predicate, tied to the field or rule that failed."""

    field: str
    rule: str
    value: object
    message: str
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "field": self.field,
            "rule": self.rule,
            "value": self.value,
            "message": self.message,
        }
        if self.hint:
            data["hint"] = self.hint
        return data


class NamingValidationError(ValueError):
    """Raised when an input or the composed prefix violates naming policy.

    The error always carries at least one :class:`Violation`. Callers that only
    need a human readable message can rely on ``str(exc)``.
    """

    def __init__(self, violations: Iterable[Violation]) -> None:
        self.violations: Tuple[Violation, ...] = tuple(violations)
        if not self.violations:
            raise ValueError("NamingValidationError requires at least one violation")
        super().__init__(" ".join(violation.message for violation in self.violations))

    @property
    def rules(self) -> Tuple[str, ...]:
        return tuple(violation.rule for violation in self.violations)

    def to_dict(self) -> Dict[str, object]:
        return {
            "error": type(self).__name__,
            "message": str(self),
            "violations": [violation.to_dict() for violation in self.violations],
        }


class FieldValidationError(NamingValidationError):
    """One or more input fields failed their pattern, length, or enum check."""


class PrefixConstraintError(NamingValidationError):
    """The composed prefix failed one or more of the prefix predicates."""


class UnknownEnvironmentError(NamingValidationError):
    """The environment code is not present in the registry."""

    def __init__(self, code: str, known: Iterable[str]) -> None:
        known_codes = sorted(known)
        super().__init__(
            [
                Violation(
                    field="environment",
                    rule="environment.allowed",
                    value=code,
                    message=f"Unknown environment code '{code}'. Known codes: {known_codes}.",
                    hint="Use one of the registered environment codes for the active naming policy.",
                )
            ]
        )
        self.code = code


class PolicyError(ValueError):
    """Raised when a naming policy definition is malformed."""


class UnknownPolicyError(KeyError):
    """Raised when a naming policy name is not registered with the provider."""

    def __init__(self, name: str, known: Iterable[str]) -> None:
        self.name = name
        self.known = tuple(sorted(known))
        super().__init__(f"Unknown naming policy '{name}'. Known policies: {list(self.known)}")

    def __str__(self) -> str:
        return str(self.args[0])
