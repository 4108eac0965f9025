#!/usr/bin/env python3
"""Render the Markdown reference for a naming policy.

The reference lists the input rules, the environment registry, the resource
name table (with example values), and the Name-tag resources. It can be
printed, or injected into an existing README between the
``<!-- BEGIN_NAMING_DOCS -->`` and ``<!-- END_NAMING_DOCS -->`` markers.
With ``--check`` the README is left untouched and the exit code reports
whether it is up to date.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core import naming_rules  # noqa: E402
from core.name_generator import build_name_tags, build_prefix, build_resource_names  # noqa: E402
from core.naming_rules import NamingPolicy  # noqa: E402
from core.tagging import MANDATORY_TAG_KEYS, BackupTier, Criticality, Layer  # noqa: E402
from core.validation import REPOSITORY_MAX_LENGTH, REPOSITORY_MIN_LENGTH  # noqa: E402
from tools.lib import setup_logging, write_text_if_changed  # noqa: E402

logger = logging.getLogger(__name__)

BEGIN_MARKER = "<!-- BEGIN_NAMING_DOCS -->"
END_MARKER = "<!-- END_NAMING_DOCS -->"
EXAMPLE_PRODUCT = "whub"
EXAMPLE_APPLICATION = "api"


def _table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> List[str]:
    lines = ["| " + " | ".join(headers) + " |", "|" + "|".join("---" for _ in headers) + "|"]
    lines.extend("| " + " | ".join(row) + " |" for row in rows)
    return lines


def _code(value: object) -> str:
    return f"`{value}`"


def render_policy_markdown(
    policy: NamingPolicy,
    *,
    product: str = EXAMPLE_PRODUCT,
    environment: Optional[str] = None,
    application: str = EXAMPLE_APPLICATION,
) -> str:
    """Return the Markdown reference for ``policy`` using an example prefix."""

    environment = environment or policy.environments.codes()[0]
    prefix = build_prefix(product, environment, application)
    names = build_resource_names(prefix, policy)
    suffixed = build_resource_names(prefix, policy, suffixed=True)

    lines: List[str] = [
        f"## Naming policy `{policy.name}` (v{policy.version})",
        "",
    ]
    if policy.description:
        lines += [policy.description, ""]
    lines += [
        f"- Prefix: `{{product}}-{{environment}}-{{application}}`, at most **{policy.max_length}** characters.",
    ]
    if policy.length_derivation:
        lines.append(f"- Ceiling derivation: {policy.length_derivation}.")
    lines += [
        f"- Resource names carry type suffixes: {'yes' if policy.suffixed_names else 'no'}.",
        f"- Example prefix: `{prefix}`.",
        "",
        "### Inputs",
        "",
    ]
    lines += _table(
        ("Input", "Rule"),
        [
            ("product", "`^[a-z][a-z0-9]{2,7}$`"),
            (
                "application",
                f"`^[a-z][a-z0-9-]*[a-z0-9]$`, no `--`, "
                f"{policy.application_min_length}-{policy.application_max_length} characters",
            ),
            ("environment", ", ".join(_code(code) for code in policy.environments.codes())),
            (
                "repository",
                f"`^[a-z0-9][a-z0-9-_]*[a-z0-9]$`, {REPOSITORY_MIN_LENGTH}-{REPOSITORY_MAX_LENGTH} characters",
            ),
            ("criticality", ", ".join(_code(member.value) for member in Criticality)),
            ("backup", ", ".join(_code(member.value) for member in BackupTier)),
            ("layer", ", ".join(_code(member.value) for member in Layer)),
        ],
    )
    lines += ["", "### Environments", ""]
    lines += _table(
        ("Code", "Display name"),
        [(_code(code), display) for code, display in policy.environments.to_dict().items()],
    )
    lines += ["", "### Mandatory tags", "", ", ".join(_code(key) for key in MANDATORY_TAG_KEYS), ""]
    lines += ["### Resource names", ""]
    lines += _table(
        ("Key", "Category", "Template", "Example", "With suffix"),
        [
            (
                _code(key),
                rule.category,
                _code(rule.template),
                _code(names[key]),
                _code(suffixed[key]),
            )
            for key, rule in policy.resources.items()
        ],
    )
    lines += ["", "### Name tags", ""]
    lines += _table(
        ("Key", "Example"),
        [(_code(key), _code(value)) for key, value in build_name_tags(prefix, policy).items()],
    )
    return "\n".join(lines) + "\n"


def inject_block(document: str, block: str) -> str:
    """Replace the text between the docs markers of ``document`` with ``block``."""

    start = document.find(BEGIN_MARKER)
    end = document.find(END_MARKER)
    if start == -1 or end == -1 or end < start:
        raise ValueError(f"Document must contain '{BEGIN_MARKER}' followed by '{END_MARKER}'.")
    head = document[: start + len(BEGIN_MARKER)]
    tail = document[end:]
    return f"{head}\n{block}{tail}"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--policy", help="Naming policy to document (default: configured default policy).")
    parser.add_argument("--output", type=Path, help="README to update in place; prints to stdout when omitted.")
    parser.add_argument("--check", action="store_true", help="Exit non-zero when --output is out of date.")
    parser.add_argument("--product", default=EXAMPLE_PRODUCT, help="Product code used for example values.")
    parser.add_argument("--environment", help="Environment code used for example values.")
    parser.add_argument("--application", default=EXAMPLE_APPLICATION, help="Application used for example values.")
    parser.add_argument("--log-level", default=None, help="Logging level (default: $LOG_LEVEL or INFO).")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    policy = naming_rules.load_policy(args.policy)
    block = render_policy_markdown(
        policy,
        product=args.product,
        environment=args.environment,
        application=args.application,
    )

    if args.output is None:
        sys.stdout.write(block)
        return 0

    current = args.output.read_text(encoding="utf-8")
    updated = inject_block(current, block)

    if args.check:
        if updated != current:
            logger.error("%s is out of date; run tools/render_docs.py --output %s", args.output, args.output)
            return 1
        logger.info("%s is up to date.", args.output)
        return 0

    if write_text_if_changed(args.output, updated):
        logger.info("Updated naming reference in %s", args.output)
    else:
        logger.info("%s already up to date.", args.output)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
