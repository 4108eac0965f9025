"""Pydantic models shared across HTTP routes."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from core.tagging import BackupTier, Criticality, Layer


class NamingRequest(BaseModel):
    """Schema describing the payload used to evaluate names and tags."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    product: str = Field(..., description="Short product code, 3-8 lowercase characters (e.g. whub).")
    environment: str = Field(..., description="Environment code registered with the policy (e.g. s, p).")
    application: str = Field(..., description="Application identifier (e.g. api).")
    criticality: Criticality = Field(..., description="Business criticality classification.")
    backup: BackupTier = Field(..., description="Backup tier applied to the resources.")
    layer: Layer = Field(..., description="Infrastructure layer the resources belong to.")
    repository: str = Field(..., description="Repository that owns the infrastructure code.")
    additional_tags: Dict[str, str] = Field(
        default_factory=dict,
        alias="additionalTags",
        description="Extra tags merged after the mandatory tags; keys here win on conflict.",
    )
    policy: str | None = Field(default=None, description="Naming policy to evaluate against (default: standard).")


class PolicyInfo(BaseModel):
    name: str
    version: str


class NamingResponse(BaseModel):
    """Successful response with every derived name and tag map."""

    prefix: str
    environmentDisplay: str
    policy: PolicyInfo
    maxLength: int
    name: Dict[str, str]
    nameWithSuffix: Dict[str, str]
    nameTag: Dict[str, str]
    mandatoryTags: Dict[str, str]
    tagsWithName: Dict[str, Dict[str, str]]


class ViolationEntry(BaseModel):
    field: str
    rule: str
    value: Any = None
    message: str
    hint: str | None = None


class ValidationErrorResponse(BaseModel):
    error: str
    message: str
    violations: List[ViolationEntry] = Field(default_factory=list)


class PolicyListResponse(BaseModel):
    policies: List[str]
    default: str


class EnvironmentListResponse(BaseModel):
    policy: str
    environments: Dict[str, str]


class MessageResponse(BaseModel):
    message: str
