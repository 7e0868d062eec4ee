"""Rick and Morty API domain records."""

from enum import Enum
from typing import Dict, Generic, List, Optional, Tuple, TypeVar

from pydantic import BaseModel


class EntityKind(str, Enum):
    """Resource collections exposed by the upstream API."""
    CHARACTER = "character"
    LOCATION = "location"
    EPISODE = "episode"


class LocationRef(BaseModel):
    """Named link to a location, as embedded in a character."""
    name: str
    url: str


class Character(BaseModel):
    id: int
    name: str
    status: str
    species: str
    type: str
    gender: str
    origin: LocationRef
    location: LocationRef
    image: str
    episode: List[str]
    url: str
    created: str


class Location(BaseModel):
    id: int
    name: str
    type: str
    dimension: str
    residents: List[str]
    url: str
    created: str


class Episode(BaseModel):
    id: int
    name: str
    air_date: str
    episode: str
    characters: List[str]
    url: str
    created: str


class Info(BaseModel):
    """Pagination metadata."""
    count: int
    pages: int
    next: Optional[str] = None
    prev: Optional[str] = None


T = TypeVar("T", bound=BaseModel)


class Page(BaseModel, Generic[T]):
    """One page of a paginated listing."""
    info: Info
    results: List[T]


ENTITY_MODELS: Dict[EntityKind, type] = {
    EntityKind.CHARACTER: Character,
    EntityKind.LOCATION: Location,
    EntityKind.EPISODE: Episode,
}

# (root kind, cross-reference field) -> kind of the referenced entities
RELATIONS: Dict[Tuple[EntityKind, str], EntityKind] = {
    (EntityKind.CHARACTER, "episode"): EntityKind.EPISODE,
    (EntityKind.LOCATION, "residents"): EntityKind.CHARACTER,
    (EntityKind.EPISODE, "characters"): EntityKind.CHARACTER,
}


def id_from_url(url: str) -> Optional[int]:
    """Return the trailing integer path segment of a resource URL, if any."""
    segment = url.rstrip("/").rsplit("/", 1)[-1]
    try:
        return int(segment)
    except ValueError:
        return None
