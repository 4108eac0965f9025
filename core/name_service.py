# File: core/name_service.py
# Version: 2.0.0
# Last Modified: 2026-10-18
"""Shared orchestrator that evaluates naming inputs into names and tags."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from core.errors import FieldValidationError, NamingValidationError, Violation
from core.name_generator import build_name_tags, build_prefix, build_resource_names
from core.naming_rules import NamingPolicy, load_policy
from core.tagging import build_mandatory_tags, build_tags_with_name
from core.validation import validate_fields, validate_prefix

logger = logging.getLogger(__name__)


class InvalidRequestError(ValueError):
    """Raised when a payload cannot be interpreted as a naming input."""


_REQUIRED_FIELDS = (
    "product",
    "environment",
    "application",
    "criticality",
    "backup",
    "layer",
    "repository",
)
_FIELD_ALIASES = {
    "additionalTags": "additional_tags",
    "tags": "additional_tags",
}


@dataclass(frozen=True)
class NamingInput:
    """Immutable inputs for one evaluation."""

    product: str
    environment: str
    application: str
    criticality: str
    backup: str
    layer: str
    repository: str
    additional_tags: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "additional_tags", MappingProxyType(dict(self.additional_tags)))

    def __hash__(self) -> int:
        return hash(
            (
                self.product,
                self.environment,
                self.application,
                self.criticality,
                self.backup,
                self.layer,
                self.repository,
                frozenset(self.additional_tags.items()),
            )
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "NamingInput":
        """Build an input from a JSON-style payload (snake_case or camelCase keys)."""

        if not isinstance(payload, Mapping):
            raise InvalidRequestError("Naming payload must be a JSON object.")

        normalised: Dict[str, Any] = dict(payload)
        for alias, target in _FIELD_ALIASES.items():
            if alias in normalised and target not in normalised:
                normalised[target] = normalised[alias]

        missing = [name for name in _REQUIRED_FIELDS if normalised.get(name) in (None, "")]
        if missing:
            raise FieldValidationError(
                Violation(
                    field=name,
                    rule=f"{name}.required",
                    value=None,
                    message=f"Missing required field: {name}.",
                )
                for name in missing
            )

        additional_tags = normalised.get("additional_tags") or {}
        if not isinstance(additional_tags, Mapping):
            raise InvalidRequestError("additional_tags must be an object mapping tag keys to values.")

        return cls(
            **{name: str(normalised[name]) for name in _REQUIRED_FIELDS},
            additional_tags={str(key): value for key, value in additional_tags.items()},
        )


@dataclass(frozen=True)
class NamingOutput:
    """Names and tags derived from a validated :class:`NamingInput`."""

    prefix: str
    name: Mapping[str, str]
    name_with_suffix: Mapping[str, str]
    name_tag: Mapping[str, str]
    mandatory_tags: Mapping[str, str]
    tags_with_name: Mapping[str, Mapping[str, str]]
    environment_display: str
    policy: str
    policy_version: str
    max_length: int

    def __post_init__(self) -> None:
        for field_name in ("name", "name_with_suffix", "name_tag", "mandatory_tags"):
            object.__setattr__(self, field_name, MappingProxyType(dict(getattr(self, field_name))))
        object.__setattr__(
            self,
            "tags_with_name",
            MappingProxyType({key: MappingProxyType(dict(tags)) for key, tags in self.tags_with_name.items()}),
        )

    def __hash__(self) -> int:
        return hash(
            (
                self.prefix,
                self.policy,
                self.policy_version,
                frozenset(self.name.items()),
                frozenset(self.mandatory_tags.items()),
                frozenset((key, frozenset(tags.items())) for key, tags in self.tags_with_name.items()),
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prefix": self.prefix,
            "environmentDisplay": self.environment_display,
            "policy": {"name": self.policy, "version": self.policy_version},
            "maxLength": self.max_length,
            "name": dict(self.name),
            "nameWithSuffix": dict(self.name_with_suffix),
            "nameTag": dict(self.name_tag),
            "mandatoryTags": dict(self.mandatory_tags),
            "tagsWithName": {key: dict(tags) for key, tags in self.tags_with_name.items()},
        }


def evaluate(naming_input: NamingInput, policy: Optional[NamingPolicy] = None) -> NamingOutput:
    """Validate ``naming_input`` and derive every name and tag map from it.

    ``policy`` defaults to the configured default naming policy. Any violated
    field or prefix rule raises a :class:`NamingValidationError` and nothing is
    produced.
    """

    policy = policy or load_policy()

    try:
        validate_fields(naming_input, policy)
        prefix = build_prefix(naming_input.product, naming_input.environment, naming_input.application)
        validate_prefix(prefix, policy, application=naming_input.application)
    except NamingValidationError as exc:
        logger.info(
            "Naming evaluation rejected under policy '%s': %s",
            policy.name,
            ", ".join(exc.rules),
        )
        raise

    environment_display = policy.environments.display_name(naming_input.environment)
    name_tag = build_name_tags(prefix, policy)
    mandatory_tags = build_mandatory_tags(naming_input, policy.environments, managed_by=policy.managed_by)

    return NamingOutput(
        prefix=prefix,
        name=build_resource_names(prefix, policy),
        name_with_suffix=build_resource_names(prefix, policy, suffixed=True),
        name_tag=name_tag,
        mandatory_tags=mandatory_tags,
        tags_with_name=build_tags_with_name(mandatory_tags, name_tag),
        environment_display=environment_display,
        policy=policy.name,
        policy_version=policy.version,
        max_length=policy.max_length,
    )


def evaluate_payload(payload: Mapping[str, Any], policy_name: Optional[str] = None) -> NamingOutput:
    """Convenience wrapper used by the HTTP and MCP surfaces."""

    policy = load_policy(policy_name)
    return evaluate(NamingInput.from_payload(payload), policy)
