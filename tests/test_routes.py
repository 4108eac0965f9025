import json
import pathlib
import sys

import azure.functions as func
import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.routes import docs as docs_routes
from app.routes import names as name_routes
from app.routes import policies as policy_routes
from core import naming_rules
from providers.json_rules import JsonPolicyProvider

_PROVIDER = JsonPolicyProvider(rules_path=ROOT / "rules")


@pytest.fixture(autouse=True)
def _bundled_policies(monkeypatch):
    monkeypatch.delenv("NAMING_POLICY", raising=False)
    monkeypatch.setattr(naming_rules, "_provider", _PROVIDER)


def _naming_payload(**overrides):
    payload = {
        "product": "whub",
        "environment": "s",
        "application": "api",
        "criticality": "high",
        "backup": "tier-2",
        "layer": "application",
        "repository": "whub-api",
    }
    payload.update(overrides)
    return payload


def _post(body, params=None):
    if not isinstance(body, bytes):
        body = json.dumps(body).encode("utf-8")
    return func.HttpRequest(method="POST", url="/api/names", body=body, params=params or {})


def _get(url, params=None, route_params=None):
    return func.HttpRequest(
        method="GET",
        url=url,
        body=b"",
        params=params or {},
        route_params=route_params or {},
    )


def _body(response):
    return json.loads(response.get_body())


def test_evaluate_request_returns_names_and_tags():
    response = name_routes._handle_evaluate_request(_post(_naming_payload()), log_prefix="test")

    assert response.status_code == 200
    assert response.mimetype == "application/json"
    body = _body(response)
    assert body["prefix"] == "whub-s-api"
    assert body["environmentDisplay"] == "staging"
    assert body["mandatoryTags"]["ManagedBy"] == "Terraform"
    assert body["name"]["s3_bucket"] == "whub-s-api"
    assert body["tagsWithName"]["subnet_private_1b"]["Name"] == "whub-s-api-private-1b"


def test_evaluate_request_policy_from_body_or_query():
    from_body = name_routes._handle_evaluate_request(
        _post(_naming_payload(environment="dev", policy="legacy")), log_prefix="test"
    )
    from_query = name_routes._handle_evaluate_request(
        _post(_naming_payload(environment="dev"), params={"policy": "legacy"}), log_prefix="test"
    )

    assert _body(from_body)["policy"] == {"name": "legacy", "version": "1.0.0"}
    assert _body(from_body) == _body(from_query)


def test_evaluate_request_rejects_invalid_json():
    response = name_routes._handle_evaluate_request(_post(b"{not json"), log_prefix="test")

    assert response.status_code == 400
    assert _body(response) == {"message": "Invalid JSON payload."}


def test_evaluate_request_rejects_non_object():
    response = name_routes._handle_evaluate_request(_post(["whub"]), log_prefix="test")
    assert response.status_code == 400


def test_evaluate_request_reports_violations():
    response = name_routes._handle_evaluate_request(
        _post(_naming_payload(application="web--api", product="WHub")), log_prefix="test"
    )

    assert response.status_code == 400
    body = _body(response)
    assert body["error"] == "FieldValidationError"
    rules = [violation["rule"] for violation in body["violations"]]
    assert rules == ["product.pattern", "application.double_hyphen"]


def test_evaluate_request_reports_prefix_length():
    response = name_routes._handle_evaluate_request(_post(_naming_payload(application="a" * 26)), log_prefix="test")

    assert response.status_code == 400
    violation = _body(response)["violations"][0]
    assert violation["rule"] == "prefix.max_length"
    assert "Over by: 1 character" in violation["message"]
    assert violation["hint"]


def test_evaluate_request_unknown_policy_is_404():
    response = name_routes._handle_evaluate_request(_post(_naming_payload(policy="v3")), log_prefix="test")
    assert response.status_code == 404


def test_evaluate_request_bad_tags_is_400():
    response = name_routes._handle_evaluate_request(
        _post(_naming_payload(additionalTags="Owner=me")), log_prefix="test"
    )
    assert response.status_code == 400
    assert "additional_tags" in _body(response)["message"]


def test_evaluate_request_unexpected_error_is_500(monkeypatch):
    def boom(payload, policy_name):
        raise RuntimeError("storage offline")

    monkeypatch.setattr(name_routes, "evaluate_payload", boom)
    response = name_routes._handle_evaluate_request(_post(_naming_payload()), log_prefix="test")

    assert response.status_code == 500
    assert _body(response) == {"message": "Error evaluating names."}


def test_list_policies():
    response = policy_routes._handle_list_policies(_get("/api/policies"))

    assert response.status_code == 200
    assert _body(response) == {"policies": ["legacy", "standard"], "default": "standard"}


def test_list_policies_with_details():
    body = _body(policy_routes._handle_list_policies(_get("/api/policies", params={"expand": "Details"})))

    assert [policy["name"] for policy in body["policies"]] == ["legacy", "standard"]
    assert body["policies"][0]["maxLength"] == 22


def test_get_policy():
    response = policy_routes._handle_get_policy(
        _get("/api/policies/legacy", route_params={"policy": "legacy"})
    )

    assert response.status_code == 200
    body = _body(response)
    assert body["name"] == "legacy"
    assert body["default"] is False
    assert body["environments"] == {"prd": "production", "nprd": "nonprod", "stg": "staging", "dev": "development"}


def test_get_unknown_policy_is_404():
    response = policy_routes._handle_get_policy(_get("/api/policies/v3", route_params={"policy": "v3"}))

    assert response.status_code == 404
    assert "v3" in _body(response)["message"]


def test_get_policy_requires_name():
    response = policy_routes._handle_get_policy(_get("/api/policies/", route_params={"policy": " "}))
    assert response.status_code == 400


def test_list_environments_defaults_to_standard():
    body = _body(policy_routes._handle_list_environments(_get("/api/environments")))

    assert body["policy"] == "standard"
    assert body["environments"]["pp"] == "preprod"
    assert len(body["environments"]) == 7


def test_list_environments_for_named_policy():
    response = policy_routes._handle_list_environments(_get("/api/environments", params={"policy": "legacy"}))
    assert _body(response)["environments"]["stg"] == "staging"

    missing = policy_routes._handle_list_environments(_get("/api/environments", params={"policy": "v3"}))
    assert missing.status_code == 404


def test_openapi_normalisation_moves_defs_and_adds_server():
    raw = json.dumps(
        {
            "openapi": "3.0.0",
            "info": {"title": "AWS Labelling Service API"},
            "paths": {
                "/names": {
                    "post": {
                        "requestBody": {
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "$defs": {"Layer": {"type": "string"}},
                                        "properties": {"layer": {"$ref": "#/$defs/Layer"}},
                                    }
                                }
                            }
                        }
                    }
                }
            },
        }
    )

    spec = json.loads(docs_routes._normalise_openapi_spec(raw, ("legacy", "standard")))

    schema = spec["paths"]["/names"]["post"]["requestBody"]["content"]["application/json"]["schema"]
    assert "$defs" not in schema
    assert schema["properties"]["layer"]["$ref"] == "#/components/schemas/Layer"
    assert spec["components"]["schemas"]["Layer"] == {"type": "string"}
    assert spec["servers"] == [{"url": "/api"}]
    assert spec["info"]["x-naming-policies"] == ["legacy", "standard"]


def test_openapi_normalisation_keeps_existing_server():
    raw = json.dumps({"openapi": "3.0.0", "info": {}, "paths": {}, "servers": [{"url": "/api"}]})
    spec = json.loads(docs_routes._normalise_openapi_spec(raw))

    assert spec["servers"] == [{"url": "/api"}]
    assert "x-naming-policies" not in spec["info"]


@pytest.mark.parametrize("policy", [5, ["legacy"], {"name": "legacy"}])
def test_evaluate_request_rejects_non_string_policy(policy):
    response = name_routes._handle_evaluate_request(_post(_naming_payload(policy=policy)), log_prefix="test")

    assert response.status_code == 400
    assert "policy must be a string" in _body(response)["message"]
