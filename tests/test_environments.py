import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.environments import LEGACY_ENVIRONMENTS, STANDARD_ENVIRONMENTS, EnvironmentRegistry
from core.errors import NamingValidationError, PolicyError, UnknownEnvironmentError


@pytest.mark.parametrize(
    "code,display",
    [
        ("p", "production"),
        ("pp", "preprod"),
        ("np", "nonprod"),
        ("s", "staging"),
        ("u", "uat"),
        ("t", "test"),
        ("d", "development"),
    ],
)
def test_standard_registry_display_names(code, display):
    registry = EnvironmentRegistry(STANDARD_ENVIRONMENTS)
    assert registry.display_name(code) == display


def test_legacy_registry_uses_longer_codes():
    registry = EnvironmentRegistry(LEGACY_ENVIRONMENTS)
    assert registry.codes() == ("prd", "nprd", "stg", "dev")
    assert registry.display_name("nprd") == "nonprod"
    assert "p" not in registry


def test_unknown_environment_raises_with_violation():
    registry = EnvironmentRegistry(STANDARD_ENVIRONMENTS)

    with pytest.raises(UnknownEnvironmentError) as exc:
        registry.display_name("prod")

    assert isinstance(exc.value, NamingValidationError)
    assert exc.value.code == "prod"
    assert exc.value.rules == ("environment.allowed",)
    assert "prod" in str(exc.value)


def test_registry_is_read_only_copy():
    source = {"s": "staging"}
    registry = EnvironmentRegistry(source)
    source["p"] = "production"

    assert "p" not in registry
    exported = registry.to_dict()
    exported["x"] = "other"
    assert "x" not in registry


@pytest.mark.parametrize("bad", [{"P": "production"}, {"pr-d": "production"}, {"": "empty"}])
def test_invalid_codes_are_rejected(bad):
    with pytest.raises(PolicyError):
        EnvironmentRegistry(bad)


def test_empty_registry_rejected():
    with pytest.raises(PolicyError):
        EnvironmentRegistry({})


def test_blank_display_name_rejected():
    with pytest.raises(PolicyError):
        EnvironmentRegistry({"s": "  "})


def test_registries_compare_by_content():
    assert EnvironmentRegistry({"s": "staging"}) == EnvironmentRegistry({"s": "staging"})
    assert EnvironmentRegistry({"s": "staging"}) != EnvironmentRegistry({"s": "stage"})
    assert len(EnvironmentRegistry(STANDARD_ENVIRONMENTS)) == 7
