"""Helper utilities for building HTTP responses."""

from __future__ import annotations

import json
from typing import Mapping

import azure.functions as func

from app.models import MessageResponse
from core.name_service import NamingOutput


def build_naming_response(result: NamingOutput) -> func.HttpResponse:
    return json_payload(result.to_dict(), status_code=200)


def json_message(message: str, *, status_code: int) -> func.HttpResponse:
    return func.HttpResponse(
        MessageResponse(message=message).model_dump_json(),
        mimetype="application/json",
        status_code=status_code,
    )


def json_payload(payload: Mapping[str, object], *, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(payload, default=str),
        mimetype="application/json",
        status_code=status_code,
    )
