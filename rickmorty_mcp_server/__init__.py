"""MCP server exposing the Rick and Morty API as tools."""

__version__ = "1.0.0"
