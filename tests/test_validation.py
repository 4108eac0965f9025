import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.errors import FieldValidationError, PrefixConstraintError
from core.name_service import NamingInput
from core.validation import validate_fields, validate_prefix
from providers.json_rules import JsonPolicyProvider

_PROVIDER = JsonPolicyProvider(rules_path=ROOT / "rules")
STANDARD = _PROVIDER.get_policy("standard")
LEGACY = _PROVIDER.get_policy("legacy")


def _input(**overrides):
    values = {
        "product": "whub",
        "environment": "s",
        "application": "api",
        "criticality": "high",
        "backup": "tier-2",
        "layer": "application",
        "repository": "whub-api",
    }
    values.update(overrides)
    return NamingInput(**values)


def _field_rules(policy=STANDARD, **overrides):
    with pytest.raises(FieldValidationError) as exc:
        validate_fields(_input(**overrides), policy)
    return exc.value.rules


def test_valid_input_passes():
    validate_fields(_input(), STANDARD)
    validate_fields(_input(environment="dev"), LEGACY)


@pytest.mark.parametrize("product", ["WHub", "wh", "whubwhubw", "1hub", "wh-b"])
def test_invalid_products_rejected(product):
    assert _field_rules(product=product) == ("product.pattern",)


def test_environment_must_be_registered_for_policy():
    assert _field_rules(environment="prd") == ("environment.allowed",)
    assert _field_rules(LEGACY, environment="s") == ("environment.allowed",)


def test_consecutive_hyphens_in_application_rejected():
    assert "application.double_hyphen" in _field_rules(application="web--api")


@pytest.mark.parametrize("application", ["-api", "api-", "Api", "1api", "api_v2"])
def test_application_pattern_rejections(application):
    assert "application.pattern" in _field_rules(application=application)


def test_application_length_bounds_follow_policy():
    assert _field_rules(application="ab") == ("application.length",)
    validate_fields(_input(application="a" * 50), STANDARD)
    assert _field_rules(application="a" * 51) == ("application.length",)
    assert _field_rules(LEGACY, environment="dev", application="a" * 21) == ("application.length",)


@pytest.mark.parametrize(
    "repository,rule",
    [
        ("a", "repository.length"),
        ("-repo", "repository.pattern"),
        ("repo_", "repository.pattern"),
        ("Repo", "repository.pattern"),
    ],
)
def test_repository_rules(repository, rule):
    assert rule in _field_rules(repository=repository)


def test_repository_allows_underscores_inside():
    validate_fields(_input(repository="whub_api-infra"), STANDARD)


@pytest.mark.parametrize(
    "field_name,value",
    [("criticality", "urgent"), ("backup", "tier-4"), ("layer", "platform")],
)
def test_enum_fields_rejected(field_name, value):
    assert _field_rules(**{field_name: value}) == (f"{field_name}.allowed",)


def test_all_field_violations_reported_together():
    rules = _field_rules(product="WHub", environment="x", criticality="urgent")
    assert rules == ("product.pattern", "environment.allowed", "criticality.allowed")


def test_reserved_additional_tag_rejected():
    rules = _field_rules(additional_tags={"aws:createdBy": "me"})
    assert rules == ("additional_tags.reserved_prefix",)


def test_legacy_prefix_boundary():
    prefix_22 = "whub-dev-" + "a" * 13
    assert len(prefix_22) == 22
    validate_prefix(prefix_22, LEGACY)

    with pytest.raises(PrefixConstraintError) as exc:
        validate_prefix(prefix_22 + "b", LEGACY, application="a" * 13 + "b")

    violation = exc.value.violations[0]
    assert violation.rule == "prefix.max_length"
    assert "Length: 23 characters, Limit: 22 characters" in violation.message
    assert "Over by: 1 character." in violation.message
    assert "at most 13 characters" in violation.hint


def test_standard_prefix_boundary():
    validate_prefix("whub-s-" + "a" * 25, STANDARD)
    with pytest.raises(PrefixConstraintError) as exc:
        validate_prefix("whub-s-" + "a" * 26, STANDARD)
    assert exc.value.rules == ("prefix.max_length",)
    assert "Over by: 1 character" in str(exc.value)


@pytest.mark.parametrize(
    "prefix,rule",
    [
        ("WHub-s-api", "prefix.lowercase"),
        ("whub-s-api!", "prefix.lowercase"),
        ("-whub-s-api", "prefix.edge_hyphen"),
        ("whub-s-api-", "prefix.edge_hyphen"),
        ("whub--api", "prefix.double_hyphen"),
    ],
)
def test_prefix_predicates(prefix, rule):
    with pytest.raises(PrefixConstraintError) as exc:
        validate_prefix(prefix, STANDARD)
    assert exc.value.rules == (rule,)


def test_prefix_reports_every_failed_predicate():
    with pytest.raises(PrefixConstraintError) as exc:
        validate_prefix("-A--" + "a" * 40, STANDARD)
    assert set(exc.value.rules) == {
        "prefix.max_length",
        "prefix.lowercase",
        "prefix.edge_hyphen",
        "prefix.double_hyphen",
    }
