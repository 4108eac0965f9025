"""Governance classifications and mandatory tag assembly."""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Dict, List, Mapping

from core.environments import EnvironmentRegistry
from core.errors import Violation
from core.naming_rules import MANAGED_BY

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type hints only
    from core.name_service import NamingInput

logger = logging.getLogger(__name__)


class Criticality(str, enum.Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BackupTier(str, enum.Enum):
    NONE = "none"
    TIER_1 = "tier-1"
    TIER_2 = "tier-2"
    TIER_3 = "tier-3"


class Layer(str, enum.Enum):
    GOVERNANCE = "governance"
    SHARED_INFRASTRUCTURE = "shared-infrastructure"
    APPLICATION = "application"


MANDATORY_TAG_KEYS = (
    "Application",
    "Environment",
    "Criticality",
    "Backup",
    "ManagedBy",
    "Layer",
    "Repository",
)

_TAG_KEY_MAX_LENGTH = 128
_TAG_VALUE_MAX_LENGTH = 256
_RESERVED_TAG_PREFIX = "aws:"


def validate_additional_tags(tags: Mapping[str, str]) -> List[Violation]:
    """Check caller supplied tags against the AWS tag limits."""

    violations: List[Violation] = []
    for key, value in tags.items():
        if not isinstance(key, str) or not 1 <= len(key) <= _TAG_KEY_MAX_LENGTH:
            violations.append(
                Violation(
                    field="additional_tags",
                    rule="additional_tags.key_length",
                    value=key,
                    message=f"Tag key '{key}' must be 1-{_TAG_KEY_MAX_LENGTH} characters.",
                )
            )
            continue
        if key.lower().startswith(_RESERVED_TAG_PREFIX):
            violations.append(
                Violation(
                    field="additional_tags",
                    rule="additional_tags.reserved_prefix",
                    value=key,
                    message=f"Tag key '{key}' uses the reserved '{_RESERVED_TAG_PREFIX}' prefix.",
                    hint="Tags starting with 'aws:' are reserved for AWS and cannot be set.",
                )
            )
        if not isinstance(value, str) or len(value) > _TAG_VALUE_MAX_LENGTH:
            violations.append(
                Violation(
                    field="additional_tags",
                    rule="additional_tags.value_length",
                    value=value,
                    message=(
                        f"Tag '{key}' value must be a string of at most "
                        f"{_TAG_VALUE_MAX_LENGTH} characters."
                    ),
                )
            )
    return violations


def build_mandatory_tags(
    naming_input: "NamingInput",
    environments: EnvironmentRegistry,
    *,
    managed_by: str = MANAGED_BY,
) -> Dict[str, str]:
    """Return the governance tags merged with the caller's additional tags.

    Additional tags are applied last, so a caller supplied key replaces the
    mandatory value of the same name.
    """

    tags: Dict[str, str] = {
        "Application": naming_input.application,
        "Environment": environments.display_name(naming_input.environment),
        "Criticality": naming_input.criticality,
        "Backup": naming_input.backup,
        "ManagedBy": managed_by,
        "Layer": naming_input.layer,
        "Repository": naming_input.repository,
    }
    overridden = sorted(key for key in naming_input.additional_tags if key in tags)
    if overridden:
        logger.info("Additional tags override mandatory tag(s): %s", ", ".join(overridden))
    tags.update(naming_input.additional_tags)
    return tags


def build_tags_with_name(
    mandatory_tags: Mapping[str, str],
    name_tags: Mapping[str, str],
) -> Dict[str, Dict[str, str]]:
    return {key: {**mandatory_tags, "Name": name} for key, name in name_tags.items()}
