"""Routes serving OpenAPI metadata and Swagger UI."""

from __future__ import annotations

import json
from typing import Any, Dict, Sequence

import azure.functions as func
from azure_functions_openapi.openapi import get_openapi_json
from azure_functions_openapi.swagger_ui import render_swagger_ui

from app import app
from app.constants import API_TITLE, API_VERSION
from app.dependencies import naming_rules

_DEFS_REF = "#/$defs/"
_COMPONENTS_REF = "#/components/schemas/"


def _move_defs_to_components(node: Any, schemas: Dict[str, Any]) -> None:
    """Pydantic nests model definitions under ``$defs``; OpenAPI expects components."""

    if isinstance(node, list):
        for item in node:
            _move_defs_to_components(item, schemas)
        return
    if not isinstance(node, dict):
        return
    for name, schema in (node.pop("$defs", None) or {}).items():
        schemas.setdefault(name, schema)
    for key, value in node.items():
        if key == "$ref" and isinstance(value, str) and value.startswith(_DEFS_REF):
            node[key] = _COMPONENTS_REF + value[len(_DEFS_REF) :]
        else:
            _move_defs_to_components(value, schemas)


def _normalise_openapi_spec(raw_json: str, policies: Sequence[str] = ()) -> str:
    spec = json.loads(raw_json)
    schemas = spec.setdefault("components", {}).setdefault("schemas", {})
    _move_defs_to_components(spec, schemas)

    servers = spec.setdefault("servers", [])
    if not any(server.get("url") == "/api" for server in servers):
        # Azure Functions serves HTTP triggers below the /api route prefix.
        servers.append({"url": "/api"})

    if policies:
        info = spec.setdefault("info", {})
        info["x-naming-policies"] = list(policies)
    return json.dumps(spec)


@app.function_name(name="openapi_spec")
@app.route(
    route="openapi.json",
    methods=[func.HttpMethod.GET],
    auth_level=func.AuthLevel.ANONYMOUS,
)
def openapi_spec(req: func.HttpRequest) -> func.HttpResponse:
    """Serve the generated OpenAPI specification for the HTTP API."""

    spec_json = get_openapi_json(title=API_TITLE, version=API_VERSION)
    normalised = _normalise_openapi_spec(spec_json, naming_rules.list_policies())
    return func.HttpResponse(normalised, mimetype="application/json", status_code=200)


@app.function_name(name="swagger_ui")
@app.route(route="docs", methods=[func.HttpMethod.GET], auth_level=func.AuthLevel.ANONYMOUS)
def swagger_ui(req: func.HttpRequest) -> func.HttpResponse:
    """Serve an interactive Swagger UI backed by the generated OpenAPI spec."""

    return render_swagger_ui(title=f"{API_TITLE} - Swagger", openapi_url="/api/openapi.json")
