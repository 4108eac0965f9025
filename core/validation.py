"""Validation helpers for naming inputs and the composed prefix."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List

from core.errors import FieldValidationError, PrefixConstraintError, Violation
from core.naming_rules import AWS_LOAD_BALANCER_NAME_LIMIT, NamingPolicy
from core.tagging import BackupTier, Criticality, Layer, validate_additional_tags

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type hints only
    from core.name_service import NamingInput

PRODUCT_PATTERN = re.compile(r"^[a-z][a-z0-9]{2,7}$")
APPLICATION_PATTERN = re.compile(r"^[a-z][a-z0-9-]*[a-z0-9]$")
REPOSITORY_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-_]*[a-z0-9]$")
PREFIX_PATTERN = re.compile(r"^[a-z0-9-]+$")
EDGE_HYPHEN_PATTERN = re.compile(r"^-|-$")

REPOSITORY_MIN_LENGTH = 2
REPOSITORY_MAX_LENGTH = 100

_ENUM_FIELDS = (
    ("criticality", Criticality),
    ("backup", BackupTier),
    ("layer", Layer),
)


def _plural(count: int) -> str:
    return "s" if count != 1 else ""


def validate_fields(naming_input: "NamingInput", policy: NamingPolicy) -> None:
    """Raise :class:`FieldValidationError` listing every invalid input field."""

    violations: List[Violation] = []

    product = naming_input.product
    if not PRODUCT_PATTERN.fullmatch(product):
        violations.append(
            Violation(
                field="product",
                rule="product.pattern",
                value=product,
                message=(
                    f"Product '{product}' must be 3-8 lowercase letters or digits and start with a letter."
                ),
                hint="Use a short lowercase product code such as 'whub'.",
            )
        )

    if naming_input.environment not in policy.environments:
        violations.append(
            Violation(
                field="environment",
                rule="environment.allowed",
                value=naming_input.environment,
                message=(
                    f"Environment '{naming_input.environment}' must be one of "
                    f"{list(policy.environments.codes())} for policy '{policy.name}'."
                ),
            )
        )

    application = naming_input.application
    min_length = policy.application_min_length
    max_length = policy.application_max_length
    if not min_length <= len(application) <= max_length:
        violations.append(
            Violation(
                field="application",
                rule="application.length",
                value=application,
                message=(
                    f"Application '{application}' is {len(application)} characters; "
                    f"it must be {min_length}-{max_length} characters."
                ),
            )
        )
    if not APPLICATION_PATTERN.fullmatch(application):
        violations.append(
            Violation(
                field="application",
                rule="application.pattern",
                value=application,
                message=(
                    f"Application '{application}' must start with a lowercase letter, end with a "
                    "letter or digit, and contain only lowercase letters, digits, and hyphens."
                ),
            )
        )
    if "--" in application:
        violations.append(
            Violation(
                field="application",
                rule="application.double_hyphen",
                value=application,
                message=f"Application '{application}' must not contain consecutive hyphens.",
            )
        )

    repository = naming_input.repository
    if not REPOSITORY_MIN_LENGTH <= len(repository) <= REPOSITORY_MAX_LENGTH:
        violations.append(
            Violation(
                field="repository",
                rule="repository.length",
                value=repository,
                message=(
                    f"Repository '{repository}' must be {REPOSITORY_MIN_LENGTH}-"
                    f"{REPOSITORY_MAX_LENGTH} characters."
                ),
            )
        )
    if not REPOSITORY_PATTERN.fullmatch(repository):
        violations.append(
            Violation(
                field="repository",
                rule="repository.pattern",
                value=repository,
                message=(
                    f"Repository '{repository}' must contain only lowercase letters, digits, hyphens, "
                    "and underscores, and start and end with a letter or digit."
                ),
            )
        )

    for field_name, allowed in _ENUM_FIELDS:
        value = getattr(naming_input, field_name)
        allowed_values = [member.value for member in allowed]
        if value not in allowed_values:
            violations.append(
                Violation(
                    field=field_name,
                    rule=f"{field_name}.allowed",
                    value=value,
                    message=f"{field_name.title()} '{value}' must be one of {allowed_values}.",
                )
            )

    violations.extend(validate_additional_tags(naming_input.additional_tags))

    if violations:
        raise FieldValidationError(violations)


def _length_hint(prefix: str, policy: NamingPolicy, application: str | None) -> str:
    excess = len(prefix) - policy.max_length
    if application:
        budget = max(len(application) - excess, 0)
        return (
            f"Shorten the application name to at most {budget} character{_plural(budget)}, "
            "or use a shorter product or environment code."
        )
    return "Shorten the application name, the product code, or use a shorter environment code."


def validate_prefix(prefix: str, policy: NamingPolicy, *, application: str | None = None) -> None:
    """Raise :class:`PrefixConstraintError` when the prefix violates policy.

    All four predicates are evaluated so the error reports every problem at once.
    """

    violations: List[Violation] = []
    max_length = policy.max_length

    if len(prefix) > max_length:
        excess = len(prefix) - max_length
        derivation = policy.length_derivation or (
            f"{AWS_LOAD_BALANCER_NAME_LIMIT}-character load balancer name limit"
        )
        violations.append(
            Violation(
                field="prefix",
                rule="prefix.max_length",
                value=prefix,
                message=(
                    f"Prefix '{prefix}' exceeds character limit. "
                    f"Length: {len(prefix)} characters, Limit: {max_length} characters "
                    f"({derivation}), Over by: {excess} character{_plural(excess)}."
                ),
                hint=_length_hint(prefix, policy, application),
            )
        )

    if not PREFIX_PATTERN.fullmatch(prefix):
        invalid_chars = sorted(set(c for c in prefix if not PREFIX_PATTERN.fullmatch(c)))
        violations.append(
            Violation(
                field="prefix",
                rule="prefix.lowercase",
                value=prefix,
                message=(
                    f"Prefix '{prefix}' contains invalid characters: {', '.join(invalid_chars) or 'none'}. "
                    "Only lowercase letters (a-z), numbers (0-9), and hyphens (-) are allowed."
                ),
                hint="S3 buckets and several other resources only accept lowercase names.",
            )
        )

    if EDGE_HYPHEN_PATTERN.search(prefix):
        violations.append(
            Violation(
                field="prefix",
                rule="prefix.edge_hyphen",
                value=prefix,
                message=f"Prefix '{prefix}' must not start or end with a hyphen.",
            )
        )

    if "--" in prefix:
        violations.append(
            Violation(
                field="prefix",
                rule="prefix.double_hyphen",
                value=prefix,
                message=f"Prefix '{prefix}' must not contain consecutive hyphens.",
            )
        )

    if violations:
        raise PrefixConstraintError(violations)
