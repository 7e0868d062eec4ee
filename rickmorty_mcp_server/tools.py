"""Static catalog of the tools exposed over MCP."""

from typing import Dict, List, Optional, Tuple

from .models import InputSchema, PropertySchema, Tool


def _integer(description: str) -> PropertySchema:
    return PropertySchema(type="integer", description=description)


def _string(description: str, enum_values: Optional[List[str]] = None) -> PropertySchema:
    return PropertySchema(type="string", description=description, enum_values=enum_values)


def _integer_list(description: str) -> PropertySchema:
    return PropertySchema(type="array", description=description, items={"type": "integer"})


def _tool(name: str, description: str, properties: Dict[str, PropertySchema],
          required: Tuple[str, ...] = ()) -> Tool:
    return Tool(
        name=name,
        description=description,
        inputSchema=InputSchema(properties=properties, required=list(required))
    )


_TOOLS: Tuple[Tool, ...] = (
    # Characters
    _tool(
        "get_character",
        "Get a single character by ID from the Rick and Morty universe",
        {"id": _integer("Character ID (1-826)")},
        required=("id",)
    ),
    _tool(
        "search_characters",
        "Search for characters with optional filters. Results are paginated, 20 per page.",
        {
            "name": _string("Filter by character name (partial match)"),
            "status": _string("Filter by status", ["alive", "dead", "unknown"]),
            "species": _string("Filter by species"),
            "type": _string("Filter by type or subspecies"),
            "gender": _string("Filter by gender", ["female", "male", "genderless", "unknown"]),
            "page": _integer("Page number for pagination (default: 1)")
        }
    ),
    _tool(
        "get_multiple_characters",
        "Get multiple characters by their IDs in a single request",
        {"ids": _integer_list("Array of character IDs")},
        required=("ids",)
    ),
    _tool(
        "get_all_characters_pages",
        "Get a paginated list of all characters",
        {"page": _integer("Page number (default: 1)")}
    ),
    # Locations
    _tool(
        "get_location",
        "Get a single location by ID",
        {"id": _integer("Location ID")},
        required=("id",)
    ),
    _tool(
        "search_locations",
        "Search for locations with optional filters. Results are paginated, 20 per page.",
        {
            "name": _string("Filter by location name (partial match)"),
            "type": _string("Filter by location type (e.g. Planet, Space station)"),
            "dimension": _string("Filter by dimension"),
            "page": _integer("Page number for pagination (default: 1)")
        }
    ),
    _tool(
        "get_multiple_locations",
        "Get multiple locations by their IDs in a single request",
        {"ids": _integer_list("Array of location IDs")},
        required=("ids",)
    ),
    _tool(
        "get_all_locations_pages",
        "Get a paginated list of all locations",
        {"page": _integer("Page number (default: 1)")}
    ),
    # Episodes
    _tool(
        "get_episode",
        "Get a single episode by ID",
        {"id": _integer("Episode ID")},
        required=("id",)
    ),
    _tool(
        "search_episodes",
        "Search for episodes with optional filters. Results are paginated, 20 per page.",
        {
            "name": _string("Filter by episode name (partial match)"),
            "episode": _string("Filter by episode code (e.g. S01E01)"),
            "page": _integer("Page number for pagination (default: 1)")
        }
    ),
    _tool(
        "get_multiple_episodes",
        "Get multiple episodes by their IDs in a single request",
        {"ids": _integer_list("Array of episode IDs")},
        required=("ids",)
    ),
    _tool(
        "get_all_episodes_pages",
        "Get a paginated list of all episodes",
        {"page": _integer("Page number (default: 1)")}
    ),
    # Cross-references
    _tool(
        "get_character_episodes",
        "Get all episodes in which a character appears",
        {"character_id": _integer("Character ID")},
        required=("character_id",)
    ),
    _tool(
        "get_location_residents",
        "Get all characters residing in a location",
        {"location_id": _integer("Location ID")},
        required=("location_id",)
    ),
    _tool(
        "get_episode_characters",
        "Get all characters appearing in an episode",
        {"episode_id": _integer("Episode ID")},
        required=("episode_id",)
    ),
)

_TOOLS_BY_NAME: Dict[str, Tool] = {tool.name: tool for tool in _TOOLS}


def all_tools() -> List[Tool]:
    """Return every registered tool, in catalog order."""
    return list(_TOOLS)


def tool_names() -> List[str]:
    return [tool.name for tool in _TOOLS]


def get_tool(name: str) -> Optional[Tool]:
    """Look up a tool by name; ``None`` if it is not registered."""
    return _TOOLS_BY_NAME.get(name)
