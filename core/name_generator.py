# File: core/name_generator.py
# Version: 2.0.0
# Last Modified: 2026-10-18
# Summary: Assembles the naming prefix and derives resource names from a policy.

from __future__ import annotations

from typing import Dict

from core.naming_rules import NamingPolicy


def build_prefix(product: str, environment: str, application: str) -> str:
    """
    Build the base prefix shared by every resource name.

    Parameters:
    - product: Short product code (e.g., "whub")
    - environment: Environment code registered with the policy (e.g., "s")
    - application: Application identifier (e.g., "api")

    Returns:
    - "{product}-{environment}-{application}", with no case folding or trimming
    """
    return f"{product}-{environment}-{application}"


def build_resource_names(
    prefix: str,
    policy: NamingPolicy,
    *,
    suffixed: bool | None = None,
) -> Dict[str, str]:
    """Render every resource name rule of ``policy`` for ``prefix``.

    ``suffixed`` defaults to the policy setting; pass ``True`` to obtain the
    type-suffixed names regardless of policy.
    """

    use_suffix = policy.suffixed_names if suffixed is None else suffixed
    return {key: rule.render(prefix, suffixed=use_suffix) for key, rule in policy.resources.items()}


def build_name_tags(prefix: str, policy: NamingPolicy) -> Dict[str, str]:
    return {key: template.format(prefix=prefix) for key, template in policy.name_tags.items()}
