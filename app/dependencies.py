"""Centralised imports for route dependencies."""

from __future__ import annotations

from typing import Iterable

from core import naming_rules
from core.errors import NamingValidationError, UnknownPolicyError
from core.name_service import InvalidRequestError, NamingOutput, evaluate_payload

__all__: Iterable[str] = (
    "InvalidRequestError",
    "NamingOutput",
    "NamingValidationError",
    "UnknownPolicyError",
    "evaluate_payload",
    "naming_rules",
)
