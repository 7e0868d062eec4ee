"""JSON-RPC and MCP protocol models."""

from typing import Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel, ConfigDict, Field, JsonValue, StrictInt, StrictStr,
    field_validator, model_serializer, model_validator,
)

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

RequestId = Union[StrictStr, StrictInt]


class JSONRPCRequest(BaseModel):
    """JSON-RPC 2.0 request.

    A request without ``id`` is a notification. Only string and integer ids
    are accepted; anything else fails validation.
    """
    jsonrpc: str = JSONRPC_VERSION
    id: Optional[RequestId] = None
    method: str
    params: JsonValue = None

    @property
    def is_notification(self) -> bool:
        return self.id is None


class JSONRPCError(BaseModel):
    """JSON-RPC error object."""
    code: int
    message: str
    data: JsonValue = None

    @model_serializer(mode="wrap")
    def _drop_empty_data(self, handler):
        payload = handler(self)
        if payload.get("data") is None:
            payload.pop("data", None)
        return payload

    @classmethod
    def parse_error(cls, details: Optional[str] = None) -> "JSONRPCError":
        return cls(code=PARSE_ERROR, message="Parse error", data=details)

    @classmethod
    def invalid_request(cls, details: Optional[str] = None) -> "JSONRPCError":
        return cls(code=INVALID_REQUEST, message="Invalid Request", data=details)

    @classmethod
    def method_not_found(cls, method: str) -> "JSONRPCError":
        return cls(code=METHOD_NOT_FOUND, message="Method not found", data=method)

    @classmethod
    def invalid_params(cls, details: str) -> "JSONRPCError":
        return cls(code=INVALID_PARAMS, message="Invalid params", data=details)

    @classmethod
    def internal_error(cls, details: Optional[str] = None) -> "JSONRPCError":
        return cls(code=INTERNAL_ERROR, message="Internal error", data=details)


class JSONRPCResponse(BaseModel):
    """JSON-RPC 2.0 response.

    Exactly one of ``result`` and ``error`` is present on the wire. A null
    result is still a result, so ``result`` must be passed explicitly when
    there is no error. Use :meth:`success` and :meth:`failure`.
    """
    jsonrpc: str = JSONRPC_VERSION
    id: Optional[RequestId] = None
    result: JsonValue = None
    error: Optional[JSONRPCError] = None

    @model_validator(mode="before")
    @classmethod
    def _exactly_one_outcome(cls, data: Any) -> Any:
        if isinstance(data, dict):
            has_error = data.get("error") is not None
            if has_error and "result" in data:
                raise ValueError("response must not carry both result and error")
            if not has_error and "result" not in data:
                raise ValueError("response must carry either result or error")
        return data

    @model_serializer(mode="wrap")
    def _wire_form(self, handler):
        payload = handler(self)
        if payload.get("id") is None:
            payload.pop("id", None)
        if self.error is None:
            payload.pop("error", None)
        else:
            payload.pop("result", None)
        return payload

    @classmethod
    def success(cls, request_id: Optional[RequestId], result: Any) -> "JSONRPCResponse":
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: Optional[RequestId], error: JSONRPCError) -> "JSONRPCResponse":
        return cls(id=request_id, error=error)


class ClientInfo(BaseModel):
    """Client identification sent with initialize."""
    name: str
    version: str


class InitializeParams(BaseModel):
    """Initialize method params."""
    protocolVersion: str
    capabilities: Dict[str, Any]
    clientInfo: ClientInfo


class ServerInfo(BaseModel):
    """Server information model."""
    name: str
    version: str


class InitializeResult(BaseModel):
    """Initialize method result."""
    protocolVersion: str
    capabilities: Dict[str, Any]
    serverInfo: ServerInfo


class PropertySchema(BaseModel):
    """Schema of a single tool argument."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: str
    description: Optional[str] = None
    enum_values: Optional[List[str]] = Field(default=None, alias="enum")
    items: Optional[Dict[str, str]] = None

    @model_serializer(mode="wrap")
    def _compact(self, handler):
        payload = handler(self)
        payload.pop("enum_values", None)
        if self.enum_values is not None:
            payload["enum"] = list(self.enum_values)
        return {key: value for key, value in payload.items() if value is not None}


class InputSchema(BaseModel):
    """Object schema describing a tool's arguments."""
    model_config = ConfigDict(frozen=True)

    type: str = "object"
    properties: Dict[str, PropertySchema] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)


class Tool(BaseModel):
    """Tool definition model."""
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    inputSchema: InputSchema


class ListToolsResult(BaseModel):
    """List tools result."""
    tools: List[Tool]


class CallToolRequest(BaseModel):
    """Call tool request.

    ``arguments`` that are present but not an object are treated as if no
    arguments had been supplied.
    """
    name: StrictStr
    arguments: Optional[Dict[str, JsonValue]] = None

    @field_validator("arguments", mode="before")
    @classmethod
    def _ignore_non_object_arguments(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return None
        return value


class TextContent(BaseModel):
    """Text content block."""
    type: str = "text"
    text: str


class CallToolResult(BaseModel):
    """Call tool result."""
    content: List[TextContent]
    isError: bool = False

    @classmethod
    def success(cls, text: str) -> "CallToolResult":
        return cls(content=[TextContent(text=text)], isError=False)

    @classmethod
    def error(cls, text: str) -> "CallToolResult":
        return cls(content=[TextContent(text=text)], isError=True)
