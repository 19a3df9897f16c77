"""JSON-RPC 2.0 request dispatcher.

Transport-agnostic: both the HTTP and stdio bindings hand every decoded
message to ``Dispatcher.dispatch`` and write back whatever it returns. The
dispatcher always produces a response envelope; deciding whether a
notification deserves a reply on the wire is the binding's job.

Error mapping:
  ValidationError       -> -32602 (message shown verbatim)
  unknown tool          -> -32001
  SecurityError         -> -32002 (generic denial)
  SourceError           -> -32003 (generic)
  anything else         -> -32603 "Internal error", logged with traceback
"""

from __future__ import annotations

from types import ModuleType
from typing import TYPE_CHECKING, Any

import structlog
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    Implementation,
    InitializeResult,
    ListToolsResult,
    ServerCapabilities,
    Tool,
    ToolsCapability,
)

import docscout.tools.find_examples as t_find_examples
import docscout.tools.get_api_reference as t_get_api_reference
import docscout.tools.get_migration_guide as t_get_migration_guide
import docscout.tools.search_documentation as t_search_documentation
from docscout import __version__
from docscout.errors import (
    DocScoutError,
    ErrorCode,
    SecurityError,
    SourceError,
    ValidationError,
)

if TYPE_CHECKING:
    from docscout.state import AppState

log = structlog.get_logger()

SERVER_NAME = "docscout"
JSONRPC_VERSION = "2.0"

TOOL_NOT_FOUND = -32001
REQUEST_BLOCKED = -32002
SOURCE_UNAVAILABLE = -32003

# Newest last; unknown client versions are answered with the newest.
SUPPORTED_PROTOCOL_VERSIONS: tuple[str, ...] = (
    "2024-11-05",
    "2025-03-26",
    "2025-06-18",
    "2025-11-25",
)
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[-1]

TOOLS: dict[str, ModuleType] = {
    module.NAME: module
    for module in (
        t_search_documentation,
        t_get_api_reference,
        t_find_examples,
        t_get_migration_guide,
    )
}


class RpcError(Exception):
    """Protocol-level failure that maps directly onto a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


def success(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def failure(request_id: Any, code: int, message: str, data: Any = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def tool_definitions() -> list[Tool]:
    return [
        Tool(
            name=module.NAME,
            description=module.DESCRIPTION,
            inputSchema=module.INPUT_MODEL.model_json_schema(by_alias=True),
        )
        for module in TOOLS.values()
    ]


class Dispatcher:
    def __init__(self, state: AppState) -> None:
        self.state = state

    async def dispatch(self, message: Any) -> dict[str, Any]:
        """Handle one decoded JSON-RPC message and return its response envelope."""
        request_id = message.get("id") if isinstance(message, dict) else None

        if (
            not isinstance(message, dict)
            or message.get("jsonrpc") != JSONRPC_VERSION
            or not isinstance(message.get("method"), str)
        ):
            return failure(request_id, INVALID_REQUEST, "Invalid Request")

        method: str = message["method"]
        params = message.get("params")
        if params is None:
            params = {}

        try:
            if not isinstance(params, dict):
                raise RpcError(INVALID_PARAMS, "params must be an object")
            result = await self._route(method, params)
        except RpcError as exc:
            log.info("rpc_error", method=method, code=exc.code, message=exc.message)
            return failure(request_id, exc.code, exc.message, exc.data)
        except DocScoutError as exc:
            return self._domain_failure(request_id, method, params, exc)
        except Exception:
            log.error("dispatch_unexpected_error", method=method, exc_info=True)
            return failure(request_id, INTERNAL_ERROR, "Internal error")

        return success(request_id, result)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def _route(self, method: str, params: dict[str, Any]) -> Any:
        if method == "initialize":
            return self._initialize(params)
        if method == "tools/list":
            result = ListToolsResult(tools=tool_definitions())
            return result.model_dump(mode="json", by_alias=True, exclude_none=True)
        if method == "tools/call":
            return await self._call_tool(params)
        if method == "ping":
            return {}
        if method.startswith("notifications/"):
            log.debug("notification_received", method=method)
            return {}
        raise RpcError(METHOD_NOT_FOUND, f"Method not found: {method}")

    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        client_info = params.get("clientInfo")
        if not isinstance(requested, str):
            raise RpcError(INVALID_PARAMS, "initialize requires a string protocolVersion")
        if not isinstance(params.get("capabilities"), dict):
            raise RpcError(INVALID_PARAMS, "initialize requires a capabilities object")
        if not isinstance(client_info, dict) or not isinstance(client_info.get("name"), str):
            raise RpcError(INVALID_PARAMS, "initialize requires clientInfo with a name")

        negotiated = (
            requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        )
        log.info(
            "client_initialized",
            client=client_info["name"],
            requested_version=requested,
            protocol_version=negotiated,
        )
        result = InitializeResult(
            protocolVersion=negotiated,
            capabilities=ServerCapabilities(tools=ToolsCapability(listChanged=False)),
            serverInfo=Implementation(name=SERVER_NAME, version=__version__),
        )
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)

    async def _call_tool(self, params: dict[str, Any]) -> Any:
        name = params.get("name")
        arguments = params.get("arguments")
        if not isinstance(name, str):
            raise RpcError(INVALID_PARAMS, "tools/call requires a string name")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise RpcError(INVALID_PARAMS, "tools/call arguments must be an object")

        module = TOOLS.get(name)
        if module is None:
            raise DocScoutError(
                f"Unknown tool: {name}",
                code=ErrorCode.TOOL_NOT_FOUND,
                suggestion="Call tools/list to see the available tools.",
            )
        return await module.handle(arguments, self.state)

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _domain_failure(
        request_id: Any, method: str, params: dict[str, Any], exc: DocScoutError
    ) -> dict[str, Any]:
        log.warning(
            "tool_error",
            method=method,
            tool=params.get("name"),
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        data = exc.to_dict()

        if isinstance(exc, ValidationError):
            return failure(request_id, INVALID_PARAMS, exc.message, data)
        if exc.code == ErrorCode.TOOL_NOT_FOUND:
            return failure(request_id, TOOL_NOT_FOUND, exc.message, data)
        if isinstance(exc, SecurityError):
            data["message"] = "Request blocked"
            return failure(request_id, REQUEST_BLOCKED, data["message"], data)
        if isinstance(exc, SourceError):
            data["message"] = "Documentation source unavailable"
            return failure(request_id, SOURCE_UNAVAILABLE, data["message"], data)
        return failure(request_id, INTERNAL_ERROR, "Internal error")
