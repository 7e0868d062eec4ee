"""Tool dispatch: argument extraction, upstream call, result encoding."""

import json
import logging
import math
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from pydantic_core import to_jsonable_python

from .entities import EntityKind
from .models import CallToolResult, Tool
from .rickmorty_client import RickMortyAPIError, RickMortyClient
from .tools import get_tool

DEFAULT_PAGE = 1


class ToolError(Exception):
    """Tool invocation failed before reaching the upstream API."""


class UnknownToolError(ToolError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class MissingParameterError(ToolError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Missing required parameter: {name}")


def extract_int(arguments: Mapping[str, Any], key: str) -> Optional[int]:
    """Return ``arguments[key]`` as an int if it is a JSON number.

    Fractional values are truncated toward zero.
    """
    return _as_int(arguments.get(key))


def extract_string(arguments: Mapping[str, Any], key: str) -> Optional[str]:
    value = arguments.get(key)
    return value if isinstance(value, str) else None


def extract_int_list(arguments: Mapping[str, Any], key: str) -> Optional[List[int]]:
    """Return ``arguments[key]`` as a list of ints if it is a JSON array.

    Elements that are not numbers are dropped rather than failing the call.
    """
    value = arguments.get(key)
    if not isinstance(value, list):
        return None
    return [number for number in (_as_int(item) for item in value) if number is not None]


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


_EXTRACTORS: Dict[str, Callable[[Mapping[str, Any], str], Any]] = {
    "integer": extract_int,
    "string": extract_string,
    "array": extract_int_list,
}


def extract_arguments(tool: Tool, arguments: Mapping[str, Any]) -> Dict[str, Any]:
    """Coerce raw arguments according to the tool's input schema.

    Properties that are absent or of the wrong type come back as ``None``;
    if such a property is required, :class:`MissingParameterError` is raised.
    Undeclared arguments are ignored.
    """
    extracted = {
        name: _EXTRACTORS[prop.type](arguments, name)
        for name, prop in tool.inputSchema.properties.items()
    }
    for name in tool.inputSchema.required:
        if extracted.get(name) is None:
            raise MissingParameterError(name)
    return extracted


def encode_result(value: Any) -> str:
    """Pretty-print an upstream result as JSON text."""
    return json.dumps(to_jsonable_python(value), indent=2, ensure_ascii=False)


Handler = Callable[[Dict[str, Any]], Awaitable[Any]]


class ToolExecutor:
    """Runs registered tools against the Rick and Morty API.

    :meth:`execute` never raises for tool failures: unknown tools, bad
    arguments and upstream errors all come back as results with
    ``isError`` set.
    """

    def __init__(self, client: RickMortyClient):
        self.client = client
        self.logger = logging.getLogger("tool_executor")
        self._handlers: Dict[str, Handler] = self._build_handlers()

    def _build_handlers(self) -> Dict[str, Handler]:
        client = self.client

        def get_one(kind: EntityKind) -> Handler:
            return lambda args: client.get_entity(kind, args["id"])

        def get_many(kind: EntityKind) -> Handler:
            return lambda args: client.get_entities_by_ids(kind, args["ids"])

        def list_pages(kind: EntityKind) -> Handler:
            return lambda args: client.search_entities(kind, {}, _page(args))

        def search(kind: EntityKind, *filters: str) -> Handler:
            return lambda args: client.search_entities(
                kind, {name: args[name] for name in filters}, _page(args)
            )

        def related(kind: EntityKind, id_key: str, relation: str) -> Handler:
            return lambda args: client.get_related(kind, args[id_key], relation)

        return {
            "get_character": get_one(EntityKind.CHARACTER),
            "search_characters": search(
                EntityKind.CHARACTER, "name", "status", "species", "type", "gender"
            ),
            "get_multiple_characters": get_many(EntityKind.CHARACTER),
            "get_all_characters_pages": list_pages(EntityKind.CHARACTER),
            "get_location": get_one(EntityKind.LOCATION),
            "search_locations": search(EntityKind.LOCATION, "name", "type", "dimension"),
            "get_multiple_locations": get_many(EntityKind.LOCATION),
            "get_all_locations_pages": list_pages(EntityKind.LOCATION),
            "get_episode": get_one(EntityKind.EPISODE),
            "search_episodes": search(EntityKind.EPISODE, "name", "episode"),
            "get_multiple_episodes": get_many(EntityKind.EPISODE),
            "get_all_episodes_pages": list_pages(EntityKind.EPISODE),
            "get_character_episodes": related(EntityKind.CHARACTER, "character_id", "episode"),
            "get_location_residents": related(EntityKind.LOCATION, "location_id", "residents"),
            "get_episode_characters": related(EntityKind.EPISODE, "episode_id", "characters"),
        }

    async def execute(self, tool_name: str,
                      arguments: Optional[Mapping[str, Any]] = None) -> CallToolResult:
        """Execute a tool and wrap the outcome as a tool result."""
        self.logger.info(f"Executing tool: {tool_name} with arguments: {arguments}")

        try:
            text = await self._execute_tool(tool_name, arguments or {})
            return CallToolResult.success(text)
        except ToolError as e:
            self.logger.warning(f"Tool error: {e}")
            return CallToolResult.error(str(e))
        except RickMortyAPIError as e:
            self.logger.error(f"API Error: {e}")
            return CallToolResult.error(str(e))
        except Exception as e:
            self.logger.exception(f"Unexpected error while executing {tool_name}")
            return CallToolResult.error(f"Unexpected error: {e}")

    async def _execute_tool(self, name: str, arguments: Mapping[str, Any]) -> str:
        tool = get_tool(name)
        handler = self._handlers.get(name)
        if tool is None or handler is None:
            raise UnknownToolError(name)

        args = extract_arguments(tool, arguments)
        result = await handler(args)
        return encode_result(result)


def _page(args: Mapping[str, Any]) -> int:
    page = args.get("page")
    return DEFAULT_PAGE if page is None else page
