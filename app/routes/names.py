"""HTTP route evaluating naming inputs into resource names and tags."""

from __future__ import annotations

import logging

import azure.functions as func
from azure_functions_openapi.decorator import openapi as openapi_doc

from app import app
from app.constants import POLICY_QUERY_PARAM
from app.dependencies import evaluate_payload
from app.errors import handle_naming_error
from app.models import NamingRequest, NamingResponse
from app.responses import build_naming_response, json_message


def _handle_evaluate_request(req: func.HttpRequest, *, log_prefix: str) -> func.HttpResponse:
    logging.info("[%s] Processing naming evaluation request.", log_prefix)

    try:
        payload = req.get_json()
    except ValueError:
        return json_message("Invalid JSON payload.", status_code=400)

    if not isinstance(payload, dict):
        return json_message("Naming payload must be a JSON object.", status_code=400)

    policy_name = payload.pop("policy", None)
    if policy_name is not None and not isinstance(policy_name, str):
        return json_message("policy must be a string naming a registered naming policy.", status_code=400)
    policy_name = policy_name or req.params.get(POLICY_QUERY_PARAM)

    try:
        result = evaluate_payload(payload, policy_name)
    except Exception as exc:  # mapped to 400/404/500 by handle_naming_error
        return handle_naming_error(exc, log_prefix=log_prefix)

    logging.info("[%s] Evaluated prefix '%s' under policy '%s'.", log_prefix, result.prefix, result.policy)
    return build_naming_response(result)


@app.function_name(name="evaluate_names")
@app.route(route="names", methods=[func.HttpMethod.POST])
@openapi_doc(
    summary="Evaluate resource names and governance tags",
    description=(
        "Validates the product, environment, and application identifiers together with the "
        "governance classifications, then returns the naming prefix, the resource name table, "
        "Name-tag values, and the mandatory tag set merged with any additional tags."
    ),
    tags=["Names"],
    request_model=NamingRequest,
    response_model=NamingResponse,
    operation_id="evaluateNames",
    route="/names",
    method="post",
)
def evaluate_names(req: func.HttpRequest) -> func.HttpResponse:
    """Evaluate names and tags for the supplied naming input."""

    return _handle_evaluate_request(req, log_prefix="evaluate_names")
