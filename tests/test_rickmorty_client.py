"""Tests for the Rick and Morty API client."""

import httpx
import pytest

from rickmorty_mcp_server.entities import Character, EntityKind, Episode, Location, id_from_url
from rickmorty_mcp_server.rickmorty_client import (
    DecodeError, HTTPStatusError, NotFoundError, RequestFailedError, RickMortyClient,
)

BASE_URL = "https://rickandmortyapi.com/api"


class TestGetEntity:
    """Test single entity lookups."""

    @pytest.mark.asyncio
    async def test_get_character(self, api_client, upstream_requests):
        character = await api_client.get_entity(EntityKind.CHARACTER, 1)

        assert isinstance(character, Character)
        assert character.name == "Rick Sanchez"
        assert str(upstream_requests[0].url) == f"{BASE_URL}/character/1"

    @pytest.mark.asyncio
    async def test_kind_may_be_plain_string(self, api_client):
        location = await api_client.get_entity("location", 3)
        assert isinstance(location, Location)

    @pytest.mark.asyncio
    async def test_not_found(self, api_client):
        with pytest.raises(NotFoundError, match="Resource not found"):
            await api_client.get_entity(EntityKind.EPISODE, 404)

    @pytest.mark.asyncio
    async def test_user_agent_header(self, upstream_transport, upstream_requests):
        client = RickMortyClient(base_url=BASE_URL)
        client._client = httpx.AsyncClient(
            transport=upstream_transport,
            headers={"User-Agent": client.config.user_agent}
        )
        await client.get_entity(EntityKind.CHARACTER, 2)
        assert upstream_requests[0].headers["User-Agent"] == "RickMortyMCP/1.0.0"
        await client.close()


class TestSearchEntities:
    """Test paginated listings."""

    @pytest.mark.asyncio
    async def test_search_with_filters(self, api_client, upstream_requests):
        page = await api_client.search_entities(
            EntityKind.CHARACTER, {"name": "morty", "status": None}, page=1
        )

        assert page.info.count == 1
        assert [c.name for c in page.results] == ["Morty Smith"]
        params = upstream_requests[0].url.params
        assert params["page"] == "1"
        assert params["name"] == "morty"
        assert "status" not in params

    @pytest.mark.asyncio
    async def test_list_all(self, api_client):
        page = await api_client.search_entities(EntityKind.EPISODE)
        assert all(isinstance(e, Episode) for e in page.results)
        assert page.info.next is None

    @pytest.mark.asyncio
    async def test_empty_search_is_not_found(self, api_client):
        with pytest.raises(NotFoundError):
            await api_client.search_entities(EntityKind.CHARACTER, {"name": "Jerry"})


class TestGetEntitiesByIds:
    """Test batch lookups."""

    @pytest.mark.asyncio
    async def test_batch(self, api_client, upstream_requests):
        characters = await api_client.get_entities_by_ids(EntityKind.CHARACTER, [1, 2])

        assert [c.id for c in characters] == [1, 2]
        assert upstream_requests[0].url.path == "/api/character/1,2"

    @pytest.mark.asyncio
    async def test_single_id_reply_is_wrapped(self, api_client):
        episodes = await api_client.get_entities_by_ids(EntityKind.EPISODE, [2])
        assert len(episodes) == 1
        assert episodes[0].name == "Lawnmower Dog"

    @pytest.mark.asyncio
    async def test_empty_ids_skip_network(self, api_client, upstream_requests):
        assert await api_client.get_entities_by_ids(EntityKind.LOCATION, []) == []
        assert upstream_requests == []


class TestGetRelated:
    """Test cross-reference resolution."""

    @pytest.mark.asyncio
    async def test_character_episodes(self, api_client, upstream_requests):
        episodes = await api_client.get_related(EntityKind.CHARACTER, 1, "episode")

        assert [e.episode for e in episodes] == ["S01E01", "S01E02"]
        assert [r.url.path for r in upstream_requests] == ["/api/character/1", "/api/episode/1,2"]

    @pytest.mark.asyncio
    async def test_location_residents(self, api_client):
        residents = await api_client.get_related(EntityKind.LOCATION, 3, "residents")
        assert [c.name for c in residents] == ["Rick Sanchez", "Morty Smith"]

    @pytest.mark.asyncio
    async def test_no_references_short_circuits(self, api_client, upstream_requests):
        residents = await api_client.get_related(EntityKind.LOCATION, 4, "residents")

        assert residents == []
        assert len(upstream_requests) == 1

    @pytest.mark.asyncio
    async def test_unknown_relation(self, api_client):
        with pytest.raises(ValueError, match="Unknown relation"):
            await api_client.get_related(EntityKind.EPISODE, 1, "residents")

    @pytest.mark.asyncio
    async def test_root_not_found(self, api_client):
        with pytest.raises(NotFoundError):
            await api_client.get_related(EntityKind.EPISODE, 99, "characters")


class TestFailures:
    """Test the upstream failure taxonomy."""

    @pytest.mark.asyncio
    async def test_http_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        async with httpx.AsyncClient(transport=transport) as http_client:
            client = RickMortyClient(base_url=BASE_URL, http_client=http_client)
            with pytest.raises(HTTPStatusError) as exc_info:
                await client.get_entity(EntityKind.CHARACTER, 1)
        assert exc_info.value.status_code == 503
        assert str(exc_info.value) == "HTTP error with status code: 503"

    @pytest.mark.asyncio
    async def test_decode_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"id": "one"}))
        async with httpx.AsyncClient(transport=transport) as http_client:
            client = RickMortyClient(base_url=BASE_URL, http_client=http_client)
            with pytest.raises(DecodeError, match="Failed to decode response"):
                await client.get_entity(EntityKind.CHARACTER, 1)

    @pytest.mark.asyncio
    async def test_connection_error(self):
        async def refuse(request: httpx.Request):
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as http_client:
            client = RickMortyClient(base_url=BASE_URL, http_client=http_client)
            with pytest.raises(RequestFailedError, match="refused"):
                await client.get_entity(EntityKind.CHARACTER, 1)

    @pytest.mark.asyncio
    async def test_single_attempt(self):
        """Test that a failed call is not retried."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            client = RickMortyClient(base_url=BASE_URL, http_client=http_client)
            with pytest.raises(HTTPStatusError):
                await client.get_entity(EntityKind.CHARACTER, 1)
        assert len(calls) == 1


class TestClientLifecycle:
    """Test HTTP client ownership."""

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self, api_client):
        http_client = api_client._client
        await api_client.close()
        assert not http_client.is_closed

    @pytest.mark.asyncio
    async def test_close_owned_client(self):
        client = RickMortyClient()
        http_client = await client._get_client()
        await client.close()
        assert http_client.is_closed
        assert client._client is None


@pytest.mark.parametrize("url, expected", [
    (f"{BASE_URL}/episode/28", 28),
    (f"{BASE_URL}/episode/28/", 28),
    (f"{BASE_URL}/episode/abc", None),
    ("", None),
])
def test_id_from_url(url, expected):
    assert id_from_url(url) == expected
