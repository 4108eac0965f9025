"""Naming policy provider that loads definitions from JSON files."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from core.environments import EnvironmentRegistry
from core.errors import PolicyError, UnknownPolicyError
from core.naming_rules import NamingPolicy, PolicyProvider, ResourceNameRule

logger = logging.getLogger(__name__)

_SETTING_KEYS = {
    "max_length": int,
    "length_derivation": str,
    "application_min_length": int,
    "application_max_length": int,
    "suffixed_names": bool,
    "managed_by": str,
    "description": str,
    "version": str,
}


@dataclass(slots=True)
class _PolicyLayer:
    path: Path
    priority: int
    enabled: bool
    policy: str
    extends: Optional[str]
    settings: Mapping[str, Any]
    environments: Optional[Mapping[str, str]]
    resources: Dict[str, Dict[str, Optional[str]]]
    keep_suffix: Optional[Sequence[str]]
    name_tags: Mapping[str, Optional[str]]


@dataclass
class _ResolvedConfig:
    settings: Dict[str, Any] = field(default_factory=dict)
    environments: Dict[str, str] = field(default_factory=dict)
    resources: Dict[str, tuple[str, str]] = field(default_factory=dict)
    keep_suffix: set[str] = field(default_factory=set)
    name_tags: Dict[str, str] = field(default_factory=dict)

    def copy(self) -> "_ResolvedConfig":
        return _ResolvedConfig(
            settings=dict(self.settings),
            environments=dict(self.environments),
            resources=dict(self.resources),
            keep_suffix=set(self.keep_suffix),
            name_tags=dict(self.name_tags),
        )


class JsonPolicyProvider(PolicyProvider):
    """Load naming policies from one or more JSON policy files."""

    def __init__(
        self,
        *,
        rules_path: str | Path,
    ) -> None:
        self._path = Path(rules_path)
        if not self._path.exists():
            raise FileNotFoundError(f"Naming policy path '{self._path}' does not exist.")
        self._policies: Dict[str, NamingPolicy] = {}
        self.reload()

    def reload(self) -> None:
        """Reload policy definitions from disk."""

        layers = _load_policy_layers(self._path)
        if not layers:
            raise PolicyError(f"No enabled policy files found under '{self._path}'.")

        grouped: Dict[str, List[_PolicyLayer]] = {}
        for layer in layers:
            grouped.setdefault(layer.policy, []).append(layer)

        resolved: Dict[str, _ResolvedConfig] = {}
        for name in grouped:
            _resolve(name, grouped, resolved, chain=())

        self._policies = {name: _to_policy(name, config) for name, config in resolved.items()}
        logger.info("Loaded naming policies %s from '%s'.", sorted(self._policies), self._path)

    def get_policy(self, name: str) -> NamingPolicy:
        key = name.lower()
        if key not in self._policies:
            raise UnknownPolicyError(name, self._policies.keys())
        return self._policies[key]

    def list_policies(self) -> Sequence[str]:
        return tuple(sorted(self._policies))

    def export_policies(self) -> Dict[str, NamingPolicy]:
        """Return a copy of the loaded policies for inspection."""

        return dict(self._policies)


def _resolve(
    name: str,
    grouped: Mapping[str, List[_PolicyLayer]],
    resolved: Dict[str, _ResolvedConfig],
    *,
    chain: tuple[str, ...],
) -> _ResolvedConfig:
    if name in resolved:
        return resolved[name]
    if name in chain:
        raise PolicyError(f"Policy inheritance cycle detected: {' -> '.join(chain + (name,))}")
    if name not in grouped:
        raise PolicyError(f"Policy '{chain[-1]}' extends unknown policy '{name}'.")

    layers = grouped[name]
    parents = {layer.extends for layer in layers if layer.extends}
    if len(parents) > 1:
        raise PolicyError(f"Policy '{name}' declares conflicting parents: {sorted(parents)}")

    if parents:
        config = _resolve(parents.pop(), grouped, resolved, chain=chain + (name,)).copy()
    else:
        config = _ResolvedConfig()

    for layer in layers:
        _apply_layer(config, layer)

    resolved[name] = config
    return config


def _apply_layer(config: _ResolvedConfig, layer: _PolicyLayer) -> None:
    config.settings.update(layer.settings)
    if layer.environments is not None:
        # Environment codes form a closed set, so a layer replaces rather than merges them.
        config.environments = dict(layer.environments)
    for category, entries in layer.resources.items():
        for key, template in entries.items():
            if template is None:
                config.resources.pop(key, None)
            else:
                config.resources[key] = (category, template)
    if layer.keep_suffix is not None:
        config.keep_suffix = set(layer.keep_suffix)
    for key, template in layer.name_tags.items():
        if template is None:
            config.name_tags.pop(key, None)
        else:
            config.name_tags[key] = template


def _to_policy(name: str, config: _ResolvedConfig) -> NamingPolicy:
    settings = config.settings
    if "max_length" not in settings:
        raise PolicyError(f"Policy '{name}' must define settings.max_length.")

    unknown_keep = config.keep_suffix - set(config.resources)
    if unknown_keep:
        raise PolicyError(f"Policy '{name}' keeps suffixes for unknown resources: {sorted(unknown_keep)}")

    resources = {
        key: ResourceNameRule.from_template(
            key,
            template,
            category=category,
            keep_suffix=key in config.keep_suffix,
        )
        for key, (category, template) in config.resources.items()
    }

    return NamingPolicy(
        name=name,
        version=str(settings.get("version", "0.0.0")),
        description=str(settings.get("description", "")),
        max_length=int(settings["max_length"]),
        length_derivation=str(settings.get("length_derivation", "")),
        application_min_length=int(settings.get("application_min_length", 3)),
        application_max_length=int(settings.get("application_max_length", 50)),
        suffixed_names=bool(settings.get("suffixed_names", True)),
        managed_by=str(settings.get("managed_by", "Terraform")),
        environments=EnvironmentRegistry(config.environments),
        resources=resources,
        name_tags=config.name_tags,
    )


def _load_policy_layers(path: Path) -> list[_PolicyLayer]:
    if path.is_dir():
        candidates = sorted(file for file in path.glob("*.json") if file.is_file())
        layers = [_parse_policy_layer(candidate) for candidate in candidates]
    else:
        layers = [_parse_policy_layer(path)]

    enabled_layers = [layer for layer in layers if layer.enabled]
    enabled_layers.sort(key=lambda layer: (layer.priority, layer.path.name))
    return enabled_layers


def _parse_policy_layer(path: Path) -> _PolicyLayer:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise PolicyError(f"Policy file '{path}' is not valid JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise PolicyError(f"Policy file '{path}' must contain a JSON object at the top level.")

    metadata = data.get("metadata") or {}
    if not isinstance(metadata, Mapping):
        raise PolicyError(f"Policy file '{path}' must contain an object for 'metadata'.")

    priority = metadata.get("priority", 0)
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise PolicyError(f"'metadata.priority' in '{path}' must be an integer.")
    enabled = bool(metadata.get("enabled", True))
    policy = str(metadata.get("policy") or path.stem).lower()
    extends = data.get("extends")

    settings = _parse_settings(path, data.get("settings") or {})

    environments = data.get("environments")
    if environments is not None and not isinstance(environments, Mapping):
        raise PolicyError(f"'environments' in '{path}' must be an object of code to display name.")

    resources_raw = data.get("resources") or {}
    if not isinstance(resources_raw, Mapping):
        raise PolicyError(f"'resources' in '{path}' must be an object keyed by category.")
    resources: Dict[str, Dict[str, Optional[str]]] = {}
    for category, entries in resources_raw.items():
        if not isinstance(entries, Mapping):
            raise PolicyError(f"Resource category '{category}' in '{path}' must be an object.")
        resources[str(category)] = {
            str(key).lower(): None if template is None else str(template)
            for key, template in entries.items()
        }

    keep_suffix = data.get("keep_suffix")
    if keep_suffix is not None and (
        isinstance(keep_suffix, (str, bytes)) or not isinstance(keep_suffix, Sequence)
    ):
        raise PolicyError(f"'keep_suffix' in '{path}' must be an array of resource keys.")

    name_tags_raw = data.get("name_tags") or {}
    if not isinstance(name_tags_raw, Mapping):
        raise PolicyError(f"'name_tags' in '{path}' must be an object of key to template.")

    return _PolicyLayer(
        path=path,
        priority=priority,
        enabled=enabled,
        policy=policy,
        extends=str(extends).lower() if extends else None,
        settings=settings,
        environments={str(code): str(display) for code, display in environments.items()}
        if environments is not None
        else None,
        resources=resources,
        keep_suffix=[str(key).lower() for key in keep_suffix] if keep_suffix is not None else None,
        name_tags={
            str(key).lower(): None if template is None else str(template)
            for key, template in name_tags_raw.items()
        },
    )


def _parse_settings(path: Path, raw: object) -> Dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise PolicyError(f"'settings' in '{path}' must be an object.")
    settings: Dict[str, Any] = {}
    for key, value in raw.items():
        expected = _SETTING_KEYS.get(key)
        if expected is None:
            raise PolicyError(f"Unknown setting '{key}' in '{path}'. Known settings: {sorted(_SETTING_KEYS)}")
        if expected is int and (isinstance(value, bool) or not isinstance(value, int)):
            raise PolicyError(f"Setting '{key}' in '{path}' must be an integer.")
        if expected is bool and not isinstance(value, bool):
            raise PolicyError(f"Setting '{key}' in '{path}' must be true or false.")
        settings[key] = value
    return settings


def load_provider_from_json(path: str | Path) -> JsonPolicyProvider:
    """Convenience helper for environment-driven configuration."""

    return JsonPolicyProvider(rules_path=path)
