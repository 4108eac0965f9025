#!/usr/bin/env python3
"""Run the pytest suite and enforce per-component line coverage.

Coverage is measured with the standard library ``trace`` module. Each
component listed in :data:`CRITICAL_COMPONENTS` must reach its threshold or the
script exits non-zero. A JSON summary is written to ``coverage-summary.json``.
"""
from __future__ import annotations

import json
import sys
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from trace import Trace
from typing import Iterable

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

SUMMARY_FILE = "coverage-summary.json"


@dataclass(frozen=True)
class Component:
    name: str
    paths: tuple[Path, ...]
    threshold: float
    description: str


CRITICAL_COMPONENTS: tuple[Component, ...] = (
    Component(
        name="evaluator",
        paths=(ROOT / "core" / "name_service.py", ROOT / "core" / "errors.py"),
        threshold=0.85,
        description="Input parsing, evaluation order, and violation reporting.",
    ),
    Component(
        name="naming_policy",
        paths=(
            ROOT / "core" / "environments.py",
            ROOT / "core" / "naming_rules.py",
            ROOT / "core" / "name_generator.py",
            ROOT / "core" / "validation.py",
            ROOT / "core" / "tagging.py",
        ),
        threshold=0.85,
        description="Environment registry, name table, constraint checks, and tag assembly.",
    ),
    Component(
        name="policy_files",
        paths=(ROOT / "providers" / "json_rules.py",),
        threshold=0.80,
        description="Layered JSON policy loading and inheritance.",
    ),
)

NON_CRITICAL_COMPONENT_NOTES = {
    "http_surface": (
        (ROOT / "app",),
        "Function routes are thin wrappers around the evaluator; their helpers are tested directly.",
    ),
    "developer_tools": (
        (ROOT / "tools" / "mcp_server", ROOT / "tools" / "render_docs.py"),
        "Tool entry points reuse the evaluator and policy provider.",
    ),
}


def _iter_python_files(paths: Iterable[Path]) -> Iterable[Path]:
    for base in paths:
        if base.is_file() and base.suffix == ".py":
            yield base
        elif base.is_dir():
            yield from (p for p in base.rglob("*.py") if p.is_file())


def _executable_lines(path: Path) -> set[int]:
    source = path.read_text(encoding="utf-8")
    try:
        code = compile(source, str(path), "exec")
    except SyntaxError:
        return set()

    source_lines = source.splitlines()
    executable: set[int] = set()

    def visit(code_object: object) -> None:
        first_line = getattr(code_object, "co_firstlineno", None)
        if first_line and 0 < first_line <= len(source_lines):
            if "pragma: no cover" in source_lines[first_line - 1]:
                return
        for *_, line_no in code_object.co_lines():  # type: ignore[attr-defined]
            if line_no is None or not 0 < line_no <= len(source_lines):
                continue
            text = source_lines[line_no - 1].strip()
            if not text or text.startswith("#") or text == "..." or "pragma: no cover" in text:
                continue
            executable.add(line_no)
        for const in code_object.co_consts:  # type: ignore[attr-defined]
            if hasattr(const, "co_lines"):
                visit(const)

    visit(code)
    return executable


def _component_summary(component: Component, executed_by_file: dict[Path, set[int]]) -> dict[str, object]:
    total_executable = 0
    total_executed = 0
    per_file: list[dict[str, object]] = []

    for file_path in sorted(_iter_python_files(component.paths)):
        executable_lines = _executable_lines(file_path)
        if not executable_lines:
            continue
        executed_lines = executed_by_file.get(file_path, set()) & executable_lines
        total_executable += len(executable_lines)
        total_executed += len(executed_lines)
        per_file.append(
            {
                "file": str(file_path.relative_to(ROOT)),
                "executed": len(executed_lines),
                "executable": len(executable_lines),
                "coverage": round(len(executed_lines) / len(executable_lines) * 100, 2),
            }
        )

    coverage = round(total_executed / total_executable * 100, 2) if total_executable else 100.0
    return {
        "description": component.description,
        "coverage": coverage,
        "threshold": component.threshold * 100,
        "files": per_file,
    }


def main() -> int:
    tracer = Trace(count=True, trace=False, ignoredirs=[sys.prefix, sys.exec_prefix])
    test_exit_code = tracer.runfunc(pytest.main, [str(ROOT / "tests")])
    if test_exit_code != 0:
        return int(test_exit_code)

    executed_by_file: dict[Path, set[int]] = defaultdict(set)
    for (filename, lineno), _count in tracer.results().counts.items():
        path = Path(filename).resolve()
        if ROOT in path.parents:
            executed_by_file[path].add(lineno)

    summary: dict[str, dict[str, object]] = {}
    failure_messages: list[str] = []

    for component in CRITICAL_COMPONENTS:
        result = _component_summary(component, executed_by_file)
        summary[component.name] = result

        print(f"Component: {component.name}")
        print(f"  Description: {component.description}")
        print(f"  Coverage: {result['coverage']:.2f}% (threshold {component.threshold * 100:.0f}%)")
        for file_info in result["files"]:  # type: ignore[union-attr]
            print("    - {file}: {coverage:.2f}% ({executed}/{executable} lines)".format(**file_info))
        print()

        if result["coverage"] < component.threshold * 100:  # type: ignore[operator]
            failure_messages.append(
                f"Component '{component.name}' coverage {result['coverage']:.2f}% is below the"
                f" required {component.threshold * 100:.0f}% threshold."
            )

    print("Non-critical components:")
    for label, (paths, reason) in NON_CRITICAL_COMPONENT_NOTES.items():
        rel_paths = ", ".join(str(path.relative_to(ROOT)) for path in paths if path.exists())
        print(f"  - {label}: {reason} ({rel_paths})")
    print()

    output_path = ROOT / SUMMARY_FILE
    output_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    print(f"Coverage summary written to {output_path.relative_to(ROOT)}")

    for message in failure_messages:
        print(message, file=sys.stderr)
    return 1 if failure_messages else 0


if __name__ == "__main__":
    sys.exit(main())
