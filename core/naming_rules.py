# File: core/naming_rules.py
# Version: 2.0.0
# Last Modified: 2026-10-18
# Summary: Naming policies, resource name rules, and the active policy provider.
"""Naming policies and the resource name rules they carry."""

from __future__ import annotations

import enum
import importlib
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from string import Formatter
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from core.environments import EnvironmentRegistry
from core.errors import PolicyError, UnknownPolicyError

logger = logging.getLogger(__name__)

# Application and Network Load Balancer names are capped at 32 characters, the
# tightest name limit among the resources in the table.
AWS_LOAD_BALANCER_NAME_LIMIT = 32
MANAGED_BY = "Terraform"


class NameFormat(str, enum.Enum):
    """How a resource name is derived from the prefix."""

    SUFFIX = "suffix"
    BARE = "bare"
    PATH = "path"
    DOTTED = "dotted"


_TEMPLATE_FORMATTER = Formatter()
_PREFIX_PLACEHOLDER = "{prefix}"


def _template_fields(template: str) -> List[str]:
    try:
        parsed = list(_TEMPLATE_FORMATTER.parse(template))
    except ValueError as exc:
        raise PolicyError(f"Template '{template}' is not a valid format string: {exc}") from exc
    return [field_name for _, field_name, _, _ in parsed if field_name is not None]


def _check_template(key: str, template: str) -> None:
    fields = _template_fields(template)
    if fields != ["prefix"]:
        raise PolicyError(
            f"Template for '{key}' must reference '{{prefix}}' exactly once, found {fields or 'none'}."
        )


@dataclass(frozen=True)
class ResourceNameRule:
    """Formatting rule for one resource-type key.

    ``value`` holds the type suffix for ``suffix`` rules, the dotted suffix
    (e.g. ``queue.fifo``) for ``dotted`` rules, and the full template for
    ``path`` rules. ``bare`` rules ignore it.
    """

    key: str
    format: NameFormat
    value: str = ""
    category: str = "general"
    keep_suffix: bool = False

    def __post_init__(self) -> None:
        if self.format is NameFormat.SUFFIX and not self.value:
            raise PolicyError(f"Suffix rule '{self.key}' needs a suffix value.")
        if self.format is NameFormat.DOTTED and "." not in self.value:
            raise PolicyError(f"Dotted rule '{self.key}' must contain a '.' in '{self.value}'.")
        if self.format is NameFormat.PATH:
            _check_template(self.key, self.value)

    @classmethod
    def from_template(
        cls,
        key: str,
        template: str,
        *,
        category: str = "general",
        keep_suffix: bool = False,
    ) -> "ResourceNameRule":
        """Classify a ``{prefix}`` template into one of the :class:`NameFormat` kinds."""

        _check_template(key, template)
        if template == _PREFIX_PLACEHOLDER:
            return cls(key, NameFormat.BARE, "", category, keep_suffix)
        if template.startswith(_PREFIX_PLACEHOLDER + "-") and "/" not in template:
            remainder = template[len(_PREFIX_PLACEHOLDER) + 1 :]
            name_format = NameFormat.DOTTED if "." in remainder else NameFormat.SUFFIX
            return cls(key, name_format, remainder, category, keep_suffix)
        return cls(key, NameFormat.PATH, template, category, keep_suffix)

    @property
    def template(self) -> str:
        if self.format is NameFormat.BARE:
            return _PREFIX_PLACEHOLDER
        if self.format is NameFormat.PATH:
            return self.value
        return f"{_PREFIX_PLACEHOLDER}-{self.value}"

    def render(self, prefix: str, *, suffixed: bool = True) -> str:
        if self.format is NameFormat.BARE:
            return prefix
        if self.format is NameFormat.PATH:
            return self.value.format(prefix=prefix)
        keep = suffixed or self.keep_suffix
        if self.format is NameFormat.DOTTED:
            if keep:
                return f"{prefix}-{self.value}"
            return f"{prefix}.{self.value.rsplit('.', 1)[1]}"
        return f"{prefix}-{self.value}" if keep else prefix

    def to_dict(self) -> Dict[str, object]:
        return {
            "key": self.key,
            "format": self.format.value,
            "template": self.template,
            "category": self.category,
            "keepSuffix": self.keep_suffix,
        }


def _check_fifo_law(resources: Mapping[str, ResourceNameRule]) -> None:
    for key, rule in resources.items():
        for suffixed in (True, False):
            rendered = rule.render("x", suffixed=suffixed)
            is_fifo = rendered.endswith(".fifo")
            if key.endswith("_fifo") and not is_fifo:
                raise PolicyError(f"Resource '{key}' is a FIFO resource and must end in '.fifo'.")
            if not key.endswith("_fifo") and ".fifo" in rendered:
                raise PolicyError(f"Resource '{key}' is not a FIFO resource but renders '{rendered}'.")


@dataclass(frozen=True)
class NamingPolicy:
    """Immutable configuration injected into the evaluator."""

    name: str
    version: str
    max_length: int
    environments: EnvironmentRegistry
    resources: Mapping[str, ResourceNameRule]
    name_tags: Mapping[str, str] = field(default_factory=dict)
    description: str = ""
    length_derivation: str = ""
    application_min_length: int = 3
    application_max_length: int = 50
    suffixed_names: bool = True
    managed_by: str = MANAGED_BY

    def __post_init__(self) -> None:
        if self.max_length <= 0:
            raise PolicyError(f"Policy '{self.name}' max_length must be positive.")
        if not 1 <= self.application_min_length <= self.application_max_length:
            raise PolicyError(
                f"Policy '{self.name}' application length bounds "
                f"{self.application_min_length}-{self.application_max_length} are inconsistent."
            )
        for key, template in self.name_tags.items():
            _check_template(key, template)
        _check_fifo_law(self.resources)
        object.__setattr__(self, "resources", MappingProxyType(dict(self.resources)))
        object.__setattr__(self, "name_tags", MappingProxyType(dict(self.name_tags)))

    def categories(self) -> Tuple[str, ...]:
        seen: Dict[str, None] = {}
        for rule in self.resources.values():
            seen.setdefault(rule.category, None)
        return tuple(seen)

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "maxLength": self.max_length,
            "lengthDerivation": self.length_derivation,
            "applicationLength": {
                "min": self.application_min_length,
                "max": self.application_max_length,
            },
            "suffixedNames": self.suffixed_names,
            "managedBy": self.managed_by,
            "environments": self.environments.to_dict(),
            "resources": [rule.to_dict() for rule in self.resources.values()],
            "nameTags": dict(self.name_tags),
        }


class PolicyProvider(Protocol):
    """Contract for pluggable naming policy providers."""

    def get_policy(self, name: str) -> NamingPolicy:
        """Return the policy registered under ``name``."""

    def list_policies(self) -> Sequence[str]:
        """Enumerate the registered policy names."""


class DictionaryPolicyProvider:
    """In-memory provider useful for tests and composed providers."""

    def __init__(self, policies: Mapping[str, NamingPolicy]) -> None:
        self._policies = {key.lower(): policy for key, policy in policies.items()}

    def get_policy(self, name: str) -> NamingPolicy:
        try:
            return self._policies[name.lower()]
        except KeyError:
            raise UnknownPolicyError(name, self._policies.keys()) from None

    def list_policies(self) -> Sequence[str]:
        return tuple(sorted(self._policies))


_POLICY_PATH_ENV = "NAMING_POLICY_PATH"
_POLICY_NAME_ENV = "NAMING_POLICY"
_POLICY_PROVIDER_ENV = "NAMING_POLICY_PROVIDER"
DEFAULT_POLICY_NAME = "standard"


def _resolve_policy_path() -> Path:
    override = os.environ.get(_POLICY_PATH_ENV)
    if override:
        return Path(override)
    return Path(__file__).resolve().parents[1] / "rules"


def _load_default_provider() -> PolicyProvider:
    from providers.json_rules import JsonPolicyProvider  # Local import to avoid circular dependency

    return JsonPolicyProvider(rules_path=_resolve_policy_path())


def _load_provider_from_env() -> Optional[PolicyProvider]:
    provider_path = os.environ.get(_POLICY_PROVIDER_ENV)
    if not provider_path:
        return None

    try:
        module_path, _, attr_name = provider_path.rpartition(".")
        if not module_path or not attr_name:
            raise ValueError(f"{_POLICY_PROVIDER_ENV} must be in 'module.attr' format")

        module = importlib.import_module(module_path)
        factory = getattr(module, attr_name)
        provider = factory() if callable(factory) else factory
        if not hasattr(provider, "get_policy"):
            raise TypeError("Provider must define a 'get_policy' method")
        return provider  # type: ignore[return-value]
    except Exception:
        logger.exception("Failed to load naming policy provider from environment")
        return None


# Resolved on first use so that providers.json_rules can import this module freely.
_provider: Optional[PolicyProvider] = None


def set_policy_provider(provider: PolicyProvider) -> None:
    """Override the active naming policy provider at runtime."""

    global _provider
    _provider = provider


def get_policy_provider() -> PolicyProvider:
    """Return the currently active naming policy provider."""

    global _provider
    if _provider is None:
        _provider = _load_provider_from_env() or _load_default_provider()
    return _provider


def default_policy_name() -> str:
    return (os.environ.get(_POLICY_NAME_ENV) or DEFAULT_POLICY_NAME).lower()


def load_policy(name: Optional[str] = None) -> NamingPolicy:
    """Return the named policy, or the configured default when ``name`` is empty."""

    return get_policy_provider().get_policy((name or default_policy_name()).lower())


def list_policies() -> Sequence[str]:
    """Return the policy names exposed by the active provider."""

    return tuple(str(name).lower() for name in get_policy_provider().list_policies())


def describe_policy(name: str) -> Dict[str, object]:
    """Provide a JSON-compatible description of a naming policy."""

    policy = load_policy(name)
    resources_by_category: Dict[str, List[Dict[str, object]]] = {}
    for rule in policy.resources.values():
        resources_by_category.setdefault(rule.category, []).append(rule.to_dict())

    description = policy.to_dict()
    description["resources"] = resources_by_category
    description["resourceCount"] = len(policy.resources)
    description["default"] = policy.name == default_policy_name()
    description["inputs"] = {
        "required": [
            "product",
            "environment",
            "application",
            "criticality",
            "backup",
            "layer",
            "repository",
        ],
        "optional": ["additionalTags"],
    }
    return description
