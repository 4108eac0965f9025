"""Routes exposing naming policies and environment registries as JSON."""

from __future__ import annotations

import logging

import azure.functions as func
from azure_functions_openapi.decorator import openapi as openapi_doc

from app import app
from app.constants import POLICY_QUERY_PARAM
from app.dependencies import UnknownPolicyError, naming_rules
from app.models import EnvironmentListResponse, PolicyListResponse
from app.responses import json_message, json_payload


def _list_policies_payload(expand: str) -> dict:
    policy_names = naming_rules.list_policies()
    default = naming_rules.default_policy_name()
    if expand in {"details", "full"}:
        return {
            "policies": [naming_rules.describe_policy(name) for name in policy_names],
            "default": default,
        }
    return {"policies": list(policy_names), "default": default}


def _environments_payload(policy_name: str | None) -> dict:
    policy = naming_rules.load_policy(policy_name)
    return {"policy": policy.name, "environments": policy.environments.to_dict()}


def _handle_list_policies(req: func.HttpRequest) -> func.HttpResponse:
    expand = (req.params.get("expand") or "").lower()
    return json_payload(_list_policies_payload(expand))


def _handle_get_policy(req: func.HttpRequest) -> func.HttpResponse:
    policy_name = (req.route_params.get("policy") or "").strip()
    if not policy_name:
        return json_message("Policy name is required.", status_code=400)

    try:
        description = naming_rules.describe_policy(policy_name)
    except UnknownPolicyError as exc:
        return json_message(str(exc), status_code=404)

    return json_payload(description)


def _handle_list_environments(req: func.HttpRequest) -> func.HttpResponse:
    policy_name = (req.params.get(POLICY_QUERY_PARAM) or "").strip() or None
    try:
        payload = _environments_payload(policy_name)
    except UnknownPolicyError as exc:
        logging.info("[list_environments] Unknown policy requested: %s", policy_name)
        return json_message(str(exc), status_code=404)
    return json_payload(payload)


@app.function_name(name="list_naming_policies")
@app.route(route="policies", methods=[func.HttpMethod.GET])
@openapi_doc(
    summary="List available naming policies",
    description="Returns the registered naming policies and which one is the default.",
    tags=["Naming Policies"],
    response_model=PolicyListResponse,
    operation_id="listNamingPolicies",
    route="/policies",
    method="get",
)
def list_naming_policies(req: func.HttpRequest) -> func.HttpResponse:
    """Return the collection of known naming policies."""

    return _handle_list_policies(req)


@app.function_name(name="get_naming_policy")
@app.route(route="policies/{policy}", methods=[func.HttpMethod.GET])
@openapi_doc(
    summary="Retrieve a naming policy",
    description="Returns the length ceiling, environment registry, and resource name rules of a policy.",
    tags=["Naming Policies"],
    operation_id="getNamingPolicy",
    route="/policies/{policy}",
    method="get",
)
def get_naming_policy(req: func.HttpRequest) -> func.HttpResponse:
    """Return the details for a single naming policy."""

    return _handle_get_policy(req)


@app.function_name(name="list_environments")
@app.route(route="environments", methods=[func.HttpMethod.GET])
@openapi_doc(
    summary="List environment codes",
    description="Returns the environment codes and display names registered with a naming policy.",
    tags=["Naming Policies"],
    response_model=EnvironmentListResponse,
    operation_id="listEnvironments",
    route="/environments",
    method="get",
)
def list_environments(req: func.HttpRequest) -> func.HttpResponse:
    """Return the environment registry for the requested (or default) policy."""

    return _handle_list_environments(req)
