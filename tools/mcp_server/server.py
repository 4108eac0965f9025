"""Minimal Model Context Protocol (MCP) server for aws-labelling."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping

from core import naming_rules
from core.errors import NamingValidationError, UnknownEnvironmentError, UnknownPolicyError
from core.name_service import InvalidRequestError, NamingOutput, evaluate_payload
from tools.lib import setup_logging

logger = logging.getLogger(__name__)

# JSON-RPC error codes
INVALID_REQUEST = -32600
INVALID_PARAMS = -32602
METHOD_NOT_FOUND = -32601
SERVER_ERROR = -32000
VALIDATION_FAILED = 422
NOT_FOUND = 404


@dataclass
class ToolSpec:
    """Description for a tool exposed over MCP."""

    name: str
    description: str
    schema: Mapping[str, Any]
    handler: Callable[[Mapping[str, Any]], Awaitable[Any]]


class MCPError(Exception):
    """Exception raised for protocol errors returned to the caller."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class NamingMCPServer:
    """Implements a subset of the MCP JSON-RPC protocol over stdin/stdout."""

    protocol_version = "2024-05-01"

    def __init__(self) -> None:
        self._tools: Dict[str, ToolSpec] = {}
        self._register_tools()

    # ------------------------------------------------------------------
    # Tool registration
    def _register_tools(self) -> None:
        self._tools = {
            "evaluate_names": ToolSpec(
                name="evaluate_names",
                description="Validate naming inputs and return the prefix, resource names, and tags.",
                schema={
                    "type": "object",
                    "properties": {
                        "policy": {"type": "string", "description": "Naming policy name (default: standard)."},
                        "payload": {
                            "type": "object",
                            "description": "Payload accepted by the /api/names endpoint.",
                        },
                    },
                    "required": ["payload"],
                },
                handler=self._handle_evaluate,
            ),
            "list_policies": ToolSpec(
                name="list_policies",
                description="List the registered naming policies.",
                schema={"type": "object", "properties": {}},
                handler=self._handle_list_policies,
            ),
            "describe_policy": ToolSpec(
                name="describe_policy",
                description="Return the length ceiling, environments, and resource name rules of a policy.",
                schema={
                    "type": "object",
                    "properties": {"policy": {"type": "string"}},
                    "required": ["policy"],
                },
                handler=self._handle_describe_policy,
            ),
            "lookup_environment": ToolSpec(
                name="lookup_environment",
                description="Resolve an environment code to its display name.",
                schema={
                    "type": "object",
                    "properties": {
                        "code": {"type": "string"},
                        "policy": {"type": "string"},
                    },
                    "required": ["code"],
                },
                handler=self._handle_lookup_environment,
            ),
        }

    # ------------------------------------------------------------------
    # JSON-RPC handlers
    async def handle(self, request: Any) -> Dict[str, Any]:
        """Dispatch one JSON-RPC request and return the response envelope."""

        if not isinstance(request, Mapping):
            error = MCPError(INVALID_REQUEST, "Invalid Request: expected a JSON object")
            return {"jsonrpc": "2.0", "id": None, "error": error.to_dict()}

        request_id = request.get("id")
        try:
            result = await self._dispatch(request.get("method"), request.get("params") or {})
        except MCPError as exc:
            return {"jsonrpc": "2.0", "id": request_id, "error": exc.to_dict()}
        except Exception as exc:  # pragma: no cover - last-resort guard for the stdio loop
            logger.exception("Unhandled MCP server error")
            return {
                "jsonrpc": "2.0",
                "id": request_id,
                "error": {"code": SERVER_ERROR, "message": str(exc)},
            }
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    async def _dispatch(self, method: Any, params: Any) -> Any:
        if not isinstance(params, Mapping):
            raise MCPError(INVALID_PARAMS, "params must be an object")
        if method == "initialize":
            return self._initialize()
        if method == "list_tools":
            return self._list_tools()
        if method == "call_tool":
            return await self._call_tool(params.get("name"), params.get("arguments") or {})
        if method == "shutdown":
            return {"ok": True}
        raise MCPError(METHOD_NOT_FOUND, f"Unknown method: {method}")

    def _initialize(self) -> Dict[str, Any]:
        return {
            "protocolVersion": self.protocol_version,
            "serverInfo": {"name": "aws-labelling", "version": "2.0"},
            "capabilities": {
                "tools": {
                    "list": True,
                    "call": True,
                }
            },
        }

    def _list_tools(self) -> Dict[str, Any]:
        return {
            "tools": [
                {"name": spec.name, "description": spec.description, "inputSchema": spec.schema}
                for spec in self._tools.values()
            ]
        }

    async def _call_tool(self, name: str, arguments: Mapping[str, Any]) -> Any:
        if not name:
            raise MCPError(INVALID_PARAMS, "Tool name is required")
        spec = self._tools.get(name)
        if not spec:
            raise MCPError(METHOD_NOT_FOUND, f"Unknown tool: {name}")
        if not isinstance(arguments, Mapping):
            raise MCPError(INVALID_PARAMS, "arguments must be an object")
        return await spec.handler(arguments)

    # ------------------------------------------------------------------
    # Tool implementations
    async def _handle_evaluate(self, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        payload = arguments.get("payload")
        if not isinstance(payload, Mapping):
            raise MCPError(INVALID_PARAMS, "payload must be an object")
        policy_name = arguments.get("policy") or payload.get("policy")
        if policy_name is not None and not isinstance(policy_name, str):
            raise MCPError(INVALID_PARAMS, "policy must be a string")
        naming_payload = {key: value for key, value in payload.items() if key != "policy"}

        try:
            result: NamingOutput = evaluate_payload(naming_payload, policy_name)
        except NamingValidationError as exc:
            raise MCPError(VALIDATION_FAILED, str(exc), data=exc.to_dict()) from exc
        except InvalidRequestError as exc:
            raise MCPError(INVALID_PARAMS, str(exc)) from exc
        except UnknownPolicyError as exc:
            raise MCPError(NOT_FOUND, str(exc)) from exc
        return result.to_dict()

    async def _handle_list_policies(self, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "policies": list(naming_rules.list_policies()),
            "default": naming_rules.default_policy_name(),
        }

    async def _handle_describe_policy(self, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        policy_name = str(arguments.get("policy") or "").strip()
        if not policy_name:
            raise MCPError(INVALID_PARAMS, "policy is required")
        try:
            return naming_rules.describe_policy(policy_name)
        except UnknownPolicyError as exc:
            raise MCPError(NOT_FOUND, str(exc)) from exc

    async def _handle_lookup_environment(self, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        code = str(arguments.get("code") or "").strip()
        if not code:
            raise MCPError(INVALID_PARAMS, "code is required")
        policy_name = arguments.get("policy")
        if policy_name is not None and not isinstance(policy_name, str):
            raise MCPError(INVALID_PARAMS, "policy must be a string")
        try:
            policy = naming_rules.load_policy(policy_name)
            display = policy.environments.display_name(code)
        except UnknownPolicyError as exc:
            raise MCPError(NOT_FOUND, str(exc)) from exc
        except UnknownEnvironmentError as exc:
            raise MCPError(NOT_FOUND, str(exc), data=exc.to_dict()) from exc
        return {"policy": policy.name, "code": code, "display": display}


async def _open_stdio() -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, sys.stdout)
    return reader, asyncio.StreamWriter(transport, protocol, reader, loop)


async def run_stdio_server(server: NamingMCPServer) -> None:
    """Serve newline-delimited JSON-RPC requests on stdio until EOF or ``shutdown``."""

    reader, writer = await _open_stdio()
    while raw := await reader.readline():
        line = raw.decode("utf-8").strip()
        if not line:
            continue
        try:
            request = json.loads(line)
        except json.JSONDecodeError:
            logger.warning("Ignoring invalid JSON payload: %s", line)
            continue

        response = await server.handle(request)
        writer.write(json.dumps(response).encode("utf-8") + b"\n")
        await writer.drain()
        if isinstance(request, dict) and request.get("method") == "shutdown":
            break
    writer.close()


def main() -> None:
    setup_logging()
    asyncio.run(run_stdio_server(NamingMCPServer()))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
