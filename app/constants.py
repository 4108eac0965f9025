"""Shared constants for the AWS Labelling Function routes."""

API_TITLE = "AWS Labelling Service API"
API_VERSION = "2.0.0"
POLICY_QUERY_PARAM = "policy"
