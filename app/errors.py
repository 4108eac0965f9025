"""Shared error helpers for HTTP routes."""

from __future__ import annotations

import logging

import azure.functions as func

from .dependencies import InvalidRequestError, NamingValidationError, UnknownPolicyError
from .models import ValidationErrorResponse
from .responses import json_message, json_payload


def handle_naming_error(exc: Exception, *, log_prefix: str) -> func.HttpResponse:
    if isinstance(exc, NamingValidationError):
        logging.info("[%s] Rejected naming input: %s", log_prefix, ", ".join(exc.rules))
        body = ValidationErrorResponse.model_validate(exc.to_dict())
        return json_payload(body.model_dump(), status_code=400)
    if isinstance(exc, InvalidRequestError):
        return json_message(str(exc), status_code=400)
    if isinstance(exc, UnknownPolicyError):
        return json_message(str(exc), status_code=404)

    logging.exception("[%s] Unexpected error", log_prefix)
    return json_message("Error evaluating names.", status_code=500)
