"""Unit tests for the tool support modules."""

from __future__ import annotations

import io
import logging
import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tools import run_tests_with_coverage as coverage_runner
from tools.lib import LOG_LEVEL_ENV, setup_logging, write_text_if_changed


class TestSetupLogging:
    """Tests for bootstrap_utils.setup_logging."""

    def test_explicit_level_and_stream(self) -> None:
        stream = io.StringIO()
        logger = setup_logging("debug", stream=stream)

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        logging.getLogger("tools.test").debug("hello")
        assert "[DEBUG] tools.test: hello" in stream.getvalue()

    def test_level_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv(LOG_LEVEL_ENV, "warning")
        logger = setup_logging(stream=io.StringIO())
        assert logger.level == logging.WARNING

    def test_defaults_to_info(self, monkeypatch) -> None:
        monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
        assert setup_logging(stream=io.StringIO()).level == logging.INFO


class TestWriteTextIfChanged:
    """Tests for bootstrap_utils.write_text_if_changed."""

    def test_creates_parent_directories(self, tmp_path) -> None:
        target = tmp_path / "docs" / "README.md"
        assert write_text_if_changed(target, "content\n") is True
        assert target.read_text(encoding="utf-8") == "content\n"

    def test_skips_identical_content(self, tmp_path) -> None:
        target = tmp_path / "README.md"
        target.write_text("same\n", encoding="utf-8")
        assert write_text_if_changed(target, "same\n") is False
        assert write_text_if_changed(target, "different\n") is True


class TestCoverageRunner:
    """Tests for the coverage helpers in run_tests_with_coverage."""

    def test_executable_lines_skip_comments_and_pragmas(self, tmp_path) -> None:
        source = tmp_path / "sample.py"
        source.write_text(
            "# comment\n"
            "VALUE = 1\n"
            "\n"
            "def helper():\n"
            "    return VALUE\n"
            "\n"
            "def ignored():  # pragma: no cover\n"
            "    return 2\n",
            encoding="utf-8",
        )

        lines = coverage_runner._executable_lines(source)

        assert {2, 4, 5} <= lines
        assert 1 not in lines
        assert 8 not in lines

    def test_executable_lines_of_invalid_source(self, tmp_path) -> None:
        source = tmp_path / "broken.py"
        source.write_text("def broken(:\n", encoding="utf-8")
        assert coverage_runner._executable_lines(source) == set()

    def test_component_summary(self) -> None:
        target = ROOT / "core" / "name_generator.py"
        component = coverage_runner.Component(
            name="generator",
            paths=(target,),
            threshold=0.5,
            description="Name generator",
        )
        executable = coverage_runner._executable_lines(target)

        full = coverage_runner._component_summary(component, {target: set(executable)})
        empty = coverage_runner._component_summary(component, {})

        assert full["coverage"] == 100.0
        assert full["files"][0]["file"] == "core/name_generator.py"
        assert empty["coverage"] == 0.0
