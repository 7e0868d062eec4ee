"""JSON-RPC method routing and MCP session state."""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from .models import (
    JSONRPC_VERSION, PROTOCOL_VERSION, CallToolRequest, ClientInfo, InitializeParams,
    InitializeResult, JSONRPCError, JSONRPCRequest, JSONRPCResponse, ListToolsResult,
    ServerInfo,
)
from .tool_executor import ToolExecutor
from .tools import all_tools

SERVER_NAME = "rickmorty-mcp-server"
SERVER_VERSION = "1.0.0"


@dataclass
class MCPSession:
    """Protocol state of one client connection.

    Starts uninitialized and flips to initialized on the first successful
    ``initialize``; it never flips back.
    """
    initialized: bool = False
    protocol_version: Optional[str] = None
    client_info: Optional[ClientInfo] = None
    client_capabilities: Dict[str, Any] = field(default_factory=dict)

    def mark_initialized(self, params: InitializeParams) -> None:
        self.protocol_version = params.protocolVersion
        self.client_info = params.clientInfo
        self.client_capabilities = dict(params.capabilities)
        self.initialized = True


Handler = Callable[[JSONRPCRequest, MCPSession], Awaitable[JSONRPCResponse]]


class MCPRouter:
    """Maps JSON-RPC methods to MCP handlers.

    Envelope problems (unknown method, missing or malformed params) become
    JSON-RPC errors. Tool failures do not: ``tools/call`` always answers
    with a result whose ``isError`` flag tells the client what happened.
    """

    def __init__(self, executor: ToolExecutor):
        self.executor = executor
        self.logger = logging.getLogger("mcp_server")
        self._methods: Dict[str, Handler] = {
            "initialize": self._handle_initialize,
            "notifications/initialized": self._handle_initialized_notification,
            "tools/list": self._handle_list_tools,
            "tools/call": self._handle_call_tool,
            "ping": self._handle_ping,
        }

    async def handle(self, request: JSONRPCRequest, session: MCPSession) -> JSONRPCResponse:
        """Route one request and return its response."""
        self.logger.info(f"Handling JSON-RPC method: {request.method}")

        if request.jsonrpc != JSONRPC_VERSION:
            return JSONRPCResponse.failure(
                request.id,
                JSONRPCError.invalid_request(f"Unsupported jsonrpc version: {request.jsonrpc}")
            )

        handler = self._methods.get(request.method)
        if handler is None:
            self.logger.warning(f"Method not found: {request.method}")
            return JSONRPCResponse.failure(request.id, JSONRPCError.method_not_found(request.method))
        return await handler(request, session)

    async def _handle_initialize(self, request: JSONRPCRequest,
                                 session: MCPSession) -> JSONRPCResponse:
        if request.params is None:
            return JSONRPCResponse.failure(
                request.id, JSONRPCError.invalid_params("Missing initialize params")
            )
        try:
            params = InitializeParams.model_validate(request.params)
        except ValidationError as e:
            self.logger.error(f"Initialize error: {e}")
            return JSONRPCResponse.failure(
                request.id, JSONRPCError.invalid_params(f"Invalid initialize params: {e}")
            )

        self.logger.info(
            f"Initializing with client: {params.clientInfo.name} v{params.clientInfo.version}"
        )
        session.mark_initialized(params)

        result = InitializeResult(
            protocolVersion=PROTOCOL_VERSION,
            capabilities={
                "tools": {},
                "logging": {}
            },
            serverInfo=ServerInfo(
                name=SERVER_NAME,
                version=SERVER_VERSION
            )
        )
        return JSONRPCResponse.success(request.id, result.model_dump())

    async def _handle_initialized_notification(self, request: JSONRPCRequest,
                                               session: MCPSession) -> JSONRPCResponse:
        self.logger.info("Client initialized notification received")
        return JSONRPCResponse.success(request.id, None)

    async def _handle_list_tools(self, request: JSONRPCRequest,
                                 session: MCPSession) -> JSONRPCResponse:
        result = ListToolsResult(tools=all_tools())
        return JSONRPCResponse.success(request.id, result.model_dump())

    async def _handle_call_tool(self, request: JSONRPCRequest,
                                session: MCPSession) -> JSONRPCResponse:
        if request.params is None:
            return JSONRPCResponse.failure(
                request.id, JSONRPCError.invalid_params("Missing tool call params")
            )
        try:
            tool_request = CallToolRequest.model_validate(request.params)
        except ValidationError as e:
            return JSONRPCResponse.failure(
                request.id, JSONRPCError.invalid_params(f"Invalid tool call params: {e}")
            )

        self.logger.info(f"Calling tool: {tool_request.name}")
        tool_result = await self.executor.execute(tool_request.name, tool_request.arguments)

        try:
            return JSONRPCResponse.success(request.id, tool_result.model_dump())
        except (PydanticSerializationError, ValidationError) as e:
            self.logger.error(f"Tool result encoding error: {e}")
            return JSONRPCResponse.failure(
                request.id, JSONRPCError.internal_error(f"Failed to encode tool result: {e}")
            )

    async def _handle_ping(self, request: JSONRPCRequest,
                           session: MCPSession) -> JSONRPCResponse:
        return JSONRPCResponse.success(request.id, {"status": "ok"})
