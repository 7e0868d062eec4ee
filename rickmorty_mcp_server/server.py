"""MCP server over HTTP and Server-Sent Events."""

import json
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from pydantic import ValidationError

from .config import Config, load_config
from .connection_manager import ConnectionManager, format_sse_message
from .logging_config import get_logger, setup_server_logging
from .models import JSONRPCError, JSONRPCRequest, JSONRPCResponse
from .rickmorty_client import RickMortyClient
from .router import SERVER_VERSION, MCPRouter, MCPSession
from .tool_executor import ToolExecutor

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
    "X-Accel-Buffering": "no",
}


class MCPServer:
    """Rick and Morty MCP server."""

    def __init__(self, config_path: Optional[str] = None, config: Optional[Config] = None,
                 client: Optional[RickMortyClient] = None, configure_logging: bool = True):
        self.config = config if config is not None else load_config(config_path)

        if configure_logging:
            setup_server_logging(self.config.to_dict())
        self.logger = get_logger("mcp_server")

        self.client = client or RickMortyClient(config=self.config.upstream.to_client_config())
        self.executor = ToolExecutor(self.client)
        self.router = MCPRouter(self.executor)
        self.connections = ConnectionManager()
        self.default_session = MCPSession()

        self.app = FastAPI(
            title="Rick and Morty MCP Server",
            version=SERVER_VERSION,
            lifespan=self._lifespan
        )
        self.setup_routes()
        self.logger.info("MCP Server initialized successfully")

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        yield
        await self.client.close()

    def setup_routes(self):
        """Setup FastAPI routes."""

        @self.app.get("/health", response_class=PlainTextResponse)
        async def health():
            count = await self.connections.count()
            return f"OK - Active connections: {count}"

        @self.app.get("/sse")
        async def sse(request: Request):
            """Open an SSE stream that carries heartbeats and routed responses."""
            connection_id = self.connections.new_id()
            return StreamingResponse(
                self.connections.event_stream(
                    connection_id,
                    request.is_disconnected,
                    heartbeat_interval=self.config.server.heartbeat_interval
                ),
                media_type="text/event-stream",
                headers={**SSE_HEADERS, "X-Session-Id": connection_id}
            )

        @self.app.post("/message")
        async def message(request: Request, session_id: Optional[str] = None):
            """Handle one JSON-RPC request."""
            body = await request.body()
            response = await self.handle_message(body, session_id)
            return JSONResponse(content=response.model_dump())

    async def handle_message(self, body: bytes, session_id: Optional[str] = None) -> JSONRPCResponse:
        """Decode a raw request body, route it and return the response.

        When ``session_id`` names an open SSE connection, that connection's
        session is used and the response is also queued on its stream.
        """
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
            self.logger.error(f"JSON parsing error: {e}")
            return JSONRPCResponse.failure(None, JSONRPCError.parse_error(f"Invalid JSON: {e}"))

        try:
            rpc_request = JSONRPCRequest.model_validate(payload)
        except (ValidationError, RecursionError) as e:
            self.logger.error(f"JSON-RPC decoding error: {e}")
            return JSONRPCResponse.failure(
                None, JSONRPCError.parse_error(f"Invalid JSON-RPC request: {e}")
            )

        connection = await self.connections.get(session_id) if session_id else None
        if session_id and connection is None:
            self.logger.warning(f"Unknown session id {session_id}, using default session")

        session = connection.session if connection is not None else self.default_session
        response = await self.router.handle(rpc_request, session)

        if connection is not None:
            await self.connections.touch(connection.id)
            connection.outbox.put_nowait(format_sse_message(response.model_dump()))
        return response


def create_app(config_path: Optional[str] = None, **kwargs) -> FastAPI:
    """Create and return the FastAPI app."""
    server = MCPServer(config_path, **kwargs)
    return server.app
