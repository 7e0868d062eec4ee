"""Pytest configuration and shared fixtures."""

import json
from typing import Callable, Dict, List

import httpx
import pytest

from rickmorty_mcp_server.config import Config
from rickmorty_mcp_server.rickmorty_client import RickMortyClient
from rickmorty_mcp_server.server import MCPServer

BASE_URL = "https://rickandmortyapi.com/api"


def make_character(character_id: int, name: str, episodes: List[int] = (1,)) -> Dict:
    return {
        "id": character_id,
        "name": name,
        "status": "Alive",
        "species": "Human",
        "type": "",
        "gender": "Male",
        "origin": {"name": "Earth (C-137)", "url": f"{BASE_URL}/location/1"},
        "location": {"name": "Citadel of Ricks", "url": f"{BASE_URL}/location/3"},
        "image": f"{BASE_URL}/character/avatar/{character_id}.jpeg",
        "episode": [f"{BASE_URL}/episode/{e}" for e in episodes],
        "url": f"{BASE_URL}/character/{character_id}",
        "created": "2017-11-04T18:48:46.250Z"
    }


def make_location(location_id: int, name: str, residents: List[int] = ()) -> Dict:
    return {
        "id": location_id,
        "name": name,
        "type": "Space station",
        "dimension": "unknown",
        "residents": [f"{BASE_URL}/character/{r}" for r in residents],
        "url": f"{BASE_URL}/location/{location_id}",
        "created": "2017-11-10T13:08:13.191Z"
    }


def make_episode(episode_id: int, name: str, code: str, characters: List[int] = ()) -> Dict:
    return {
        "id": episode_id,
        "name": name,
        "air_date": "December 2, 2013",
        "episode": code,
        "characters": [f"{BASE_URL}/character/{c}" for c in characters],
        "url": f"{BASE_URL}/episode/{episode_id}",
        "created": "2017-11-10T12:56:33.798Z"
    }


CHARACTERS = {
    1: make_character(1, "Rick Sanchez", episodes=[1, 2]),
    2: make_character(2, "Morty Smith", episodes=[1]),
}
LOCATIONS = {
    3: make_location(3, "Citadel of Ricks", residents=[1, 2]),
    4: make_location(4, "Empty Space"),
}
EPISODES = {
    1: make_episode(1, "Pilot", "S01E01", characters=[1, 2]),
    2: make_episode(2, "Lawnmower Dog", "S01E02", characters=[1]),
}
COLLECTIONS = {"character": CHARACTERS, "location": LOCATIONS, "episode": EPISODES}


def upstream_handler(request: httpx.Request) -> httpx.Response:
    """Serve a tiny in-memory copy of the Rick and Morty API."""
    parts = request.url.path.strip("/").split("/")
    assert parts[0] == "api"
    kind = parts[1]

    if kind == "broken":
        return httpx.Response(500, text="boom")
    if kind == "garbage":
        return httpx.Response(200, json={"unexpected": True})

    collection = COLLECTIONS[kind]
    if len(parts) == 2:
        page = int(request.url.params.get("page", "1"))
        results = list(collection.values())
        name = request.url.params.get("name")
        if name:
            results = [r for r in results if name.lower() in r["name"].lower()]
        if not results or page > 1:
            return httpx.Response(404, json={"error": "There is nothing here"})
        return httpx.Response(200, json={
            "info": {"count": len(results), "pages": 1, "next": None, "prev": None},
            "results": results
        })

    ids = [int(i) for i in parts[2].split(",")]
    if len(ids) == 1:
        if ids[0] not in collection:
            return httpx.Response(404, json={"error": f"{kind.title()} not found"})
        return httpx.Response(200, json=collection[ids[0]])
    return httpx.Response(200, json=[collection[i] for i in ids if i in collection])


@pytest.fixture
def upstream_requests() -> List[httpx.Request]:
    """Requests seen by the fake upstream, in order."""
    return []


@pytest.fixture
def upstream_transport(upstream_requests) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        upstream_requests.append(request)
        return upstream_handler(request)

    return httpx.MockTransport(handler)


@pytest.fixture
def api_client(upstream_transport) -> RickMortyClient:
    """Rick and Morty client backed by the fake upstream."""
    http_client = httpx.AsyncClient(transport=upstream_transport)
    return RickMortyClient(base_url=BASE_URL, http_client=http_client)


@pytest.fixture
def test_config() -> Config:
    """Configuration that keeps log files out of the working tree."""
    return Config(log_file=None, api_log_file=None)


@pytest.fixture
def server(test_config, api_client) -> MCPServer:
    return MCPServer(config=test_config, client=api_client, configure_logging=False)


@pytest.fixture
def rpc() -> Callable[..., Dict]:
    """Build a JSON-RPC request body."""
    def build(method: str, params=None, request_id=1) -> Dict:
        body = {"jsonrpc": "2.0", "method": method}
        if request_id is not None:
            body["id"] = request_id
        if params is not None:
            body["params"] = params
        return body

    return build


@pytest.fixture
def sample_initialize_params():
    """Sample initialize params for testing."""
    return {
        "protocolVersion": "2024-11-05",
        "capabilities": {"roots": {"listChanged": True}},
        "clientInfo": {"name": "test-client", "version": "1.0.0"}
    }


def tool_payload(response_json: Dict):
    """Decode the JSON text of a successful tool result."""
    return json.loads(response_json["result"]["content"][0]["text"])
