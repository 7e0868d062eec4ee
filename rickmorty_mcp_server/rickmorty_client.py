"""Rick and Morty REST API client."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx
from pydantic import TypeAdapter, ValidationError

from .entities import ENTITY_MODELS, RELATIONS, EntityKind, Page, id_from_url

DEFAULT_BASE_URL = "https://rickandmortyapi.com/api"
DEFAULT_USER_AGENT = "RickMortyMCP/1.0.0"


@dataclass
class RickMortyConfig:
    """Upstream API configuration."""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30
    user_agent: str = DEFAULT_USER_AGENT


class RickMortyAPIError(Exception):
    """Base class for upstream API failures."""


class NotFoundError(RickMortyAPIError):
    """Upstream answered 404."""

    def __init__(self, url: str = ""):
        self.url = url
        super().__init__("Resource not found")


class HTTPStatusError(RickMortyAPIError):
    """Upstream answered with a non-2xx status other than 404."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"HTTP error with status code: {status_code}")


class DecodeError(RickMortyAPIError):
    """Upstream body did not match the expected shape."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to decode response: {reason}")


class RequestFailedError(RickMortyAPIError):
    """The request never produced a response (connect error, timeout)."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Request failed: {reason}")


class RickMortyClient:
    """Read-only client for the Rick and Morty API.

    Every call makes exactly one attempt; failures surface as
    :class:`RickMortyAPIError` subclasses.
    """

    def __init__(self, base_url: str = None, timeout: float = 30,
                 user_agent: str = DEFAULT_USER_AGENT, config: RickMortyConfig = None,
                 http_client: Optional[httpx.AsyncClient] = None):
        if config is not None:
            self.config = config
        else:
            self.config = RickMortyConfig(
                base_url=base_url or DEFAULT_BASE_URL,
                timeout=timeout,
                user_agent=user_agent
            )
        self.base_url = self.config.base_url.rstrip("/")
        self._client = http_client
        self._owns_client = http_client is None
        self.logger = logging.getLogger("rickmorty_client")

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                headers={"User-Agent": self.config.user_agent}
            )
            self._owns_client = True
        return self._client

    async def close(self):
        """Close the HTTP client connection."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _fetch(self, path: str, response_type: Any,
                     params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``path`` and decode the JSON body into ``response_type``."""
        url = f"{self.base_url}/{path}"
        start_time = time.time()
        self.logger.info(f"Fetching URL: {url} params={params or {}}")

        client = await self._get_client()
        try:
            response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            duration = time.time() - start_time
            self.logger.error(f"Request failed: {url} - Duration: {duration:.3f}s - Error: {e}")
            raise RequestFailedError(str(e) or type(e).__name__) from e

        duration = time.time() - start_time
        self.logger.info(f"Response: {url} - Duration: {duration:.3f}s - Status: {response.status_code}")

        if response.status_code == 404:
            raise NotFoundError(url)
        if not response.is_success:
            raise HTTPStatusError(response.status_code)

        try:
            return TypeAdapter(response_type).validate_json(response.content)
        except ValidationError as e:
            self.logger.error(f"Decoding error for {url}: {e}")
            raise DecodeError(str(e)) from e

    async def get_entity(self, kind: EntityKind, entity_id: int):
        """Get a single entity by ID."""
        kind = EntityKind(kind)
        return await self._fetch(f"{kind.value}/{entity_id}", ENTITY_MODELS[kind])

    async def search_entities(
        self,
        kind: EntityKind,
        filters: Optional[Dict[str, Optional[str]]] = None,
        page: int = 1
    ) -> Page:
        """Get one page of entities, optionally filtered.

        Args:
            kind: Resource collection to search
            filters: Query filters; ``None`` values are left out
            page: 1-based page number

        Returns:
            The decoded page
        """
        kind = EntityKind(kind)
        params: Dict[str, Any] = {"page": page}
        for key, value in (filters or {}).items():
            if value is not None:
                params[key] = value
        return await self._fetch(kind.value, Page[ENTITY_MODELS[kind]], params=params)

    async def get_entities_by_ids(self, kind: EntityKind, ids: Sequence[int]) -> List[Any]:
        """Get several entities in one request.

        An empty id list returns ``[]`` without touching the network. The
        upstream answers a single id with a bare object, which is wrapped.
        """
        kind = EntityKind(kind)
        if not ids:
            return []
        model = ENTITY_MODELS[kind]
        joined = ",".join(str(i) for i in ids)
        result = await self._fetch(f"{kind.value}/{joined}", Union[model, List[model]])
        if isinstance(result, list):
            return result
        return [result]

    async def get_related(self, kind: EntityKind, entity_id: int, relation: str) -> List[Any]:
        """Get the entities referenced by one cross-reference field of an entity.

        Args:
            kind: Kind of the root entity
            entity_id: Root entity ID
            relation: Cross-reference field on the root entity
                (``episode``, ``residents`` or ``characters``)

        Returns:
            List of related entities, empty if the root references none
        """
        kind = EntityKind(kind)
        try:
            target = RELATIONS[(kind, relation)]
        except KeyError:
            raise ValueError(f"Unknown relation '{relation}' for {kind.value}") from None

        root = await self.get_entity(kind, entity_id)
        related_ids = [
            related_id
            for related_id in (id_from_url(url) for url in getattr(root, relation))
            if related_id is not None
        ]
        if not related_ids:
            return []
        return await self.get_entities_by_ids(target, related_ids)
