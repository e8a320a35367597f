from typing import Annotated, Any

import httpx
from fastapi import Depends
from loguru import logger

from app.core.cache import TTLCache, get_cache
from app.core.config import settings
from app.core.enums import PokemonSortField, SortOrder
from app.core.errors import PokemonNotFoundError, UpstreamError
from app.schemas.common import PaginationData
from app.schemas.pokemon import (
    PokemonDetails,
    PokemonList,
    PokemonListQuery,
    PokemonStats,
    PokemonSummary,
)

# Highest national dex number introduced by each generation
GENERATION_BOUNDARIES = (151, 251, 386, 493, 649, 721, 809, 905, 1025)

# PokeAPI stat name -> PokemonStats field
STAT_FIELDS = {
    "hp": "hp",
    "attack": "attack",
    "defense": "defense",
    "special-attack": "special_attack",
    "special-defense": "special_defense",
    "speed": "speed",
}

INDEX_LIMIT = 100_000


def get_pokemon_generation(pokemon_id: int) -> int | None:
    """Generation a national dex number belongs to, None for alternate forms."""
    for generation, last_id in enumerate(GENERATION_BOUNDARIES, start=1):
        if pokemon_id <= last_id:
            return generation
    return None


def _id_from_url(url: str) -> int:
    # e.g. https://pokeapi.co/api/v2/pokemon/25/
    return int(url.rstrip("/").rsplit("/", maxsplit=1)[-1])


def parse_pokemon(payload: dict[str, Any]) -> PokemonDetails:
    """Convert a PokeAPI ``/pokemon/{name}`` payload into PokemonDetails."""
    values = dict.fromkeys(STAT_FIELDS.values(), 0)
    for entry in payload.get("stats", []):
        field = STAT_FIELDS.get(entry["stat"]["name"])
        if field:
            values[field] = entry["base_stat"]

    types = [t["type"]["name"] for t in sorted(payload.get("types", []), key=lambda t: t["slot"])]

    return PokemonDetails(
        id=payload["id"],
        name=payload["name"],
        types=types,
        stats=PokemonStats(**values, total=sum(values.values())),
        height=payload.get("height"),
        weight=payload.get("weight"),
        sprite=(payload.get("sprites") or {}).get("front_default"),
    )


class PokemonService:
    """Pokemon stats provider backed by PokeAPI, with responses cached in the TTL cache."""

    def __init__(self, cache: Annotated[TTLCache, Depends(get_cache)]) -> None:
        self.cache = cache

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=settings.pokeapi_base_url, timeout=settings.pokeapi_timeout_seconds
        )

    async def _get_json(self, path: str) -> dict[str, Any] | None:
        """GET a PokeAPI resource, returning None on 404.

        Raises:
            UpstreamError: On timeouts, transport errors or unexpected status codes.
        """
        try:
            async with self._client() as client:
                response = await client.get(path)
        except httpx.HTTPError as e:
            logger.warning(f"PokeAPI request {path} failed: {e!r}")
            msg = "Pokemon data provider is unavailable"
            raise UpstreamError(msg) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        if response.status_code != httpx.codes.OK:
            logger.error(f"PokeAPI {path} returned {response.status_code}: {response.text[:200]}")
            msg = f"Pokemon data provider returned {response.status_code}"
            raise UpstreamError(msg)
        return response.json()

    async def get_pokemon(self, name_or_id: str | int) -> PokemonDetails:
        """Fetch a Pokemon's stat block by name (case-insensitive) or national dex id.

        Raises:
            PokemonNotFoundError: If PokeAPI has no such Pokemon.
            UpstreamError: If PokeAPI cannot be reached.
        """
        key = str(name_or_id).strip().lower()
        if not key:
            raise PokemonNotFoundError(str(name_or_id))

        cache_key = f"pokemon:{key}"
        cached: PokemonDetails | None = self.cache.get(cache_key)
        if cached is not None:
            return cached

        payload = await self._get_json(f"/pokemon/{key}")
        if payload is None:
            raise PokemonNotFoundError(str(name_or_id))

        pokemon = parse_pokemon(payload)
        self.cache.set(cache_key, pokemon)
        # Lookups by id and by canonical name share the entry
        self.cache.set(f"pokemon:{pokemon.name}", pokemon)
        self.cache.set(f"pokemon:{pokemon.id}", pokemon)
        return pokemon

    async def _get_index(self) -> tuple[list[PokemonSummary], bool]:
        cached: list[PokemonSummary] | None = self.cache.get("pokemon-index")
        if cached is not None:
            return cached, True

        payload = await self._get_json(f"/pokemon?limit={INDEX_LIMIT}&offset=0")
        if payload is None:
            msg = "Pokemon index is unavailable"
            raise UpstreamError(msg)

        index = []
        for entry in payload.get("results", []):
            pokemon_id = _id_from_url(entry["url"])
            index.append(
                PokemonSummary(
                    id=pokemon_id,
                    name=entry["name"],
                    generation=get_pokemon_generation(pokemon_id),
                )
            )
        self.cache.set("pokemon-index", index)
        return index, False

    async def _get_type_members(self, type_name: str) -> set[str]:
        key = type_name.strip().lower()
        cache_key = f"pokemon-type:{key}"
        cached: set[str] | None = self.cache.get(cache_key)
        if cached is not None:
            return cached

        payload = await self._get_json(f"/type/{key}")
        members = (
            {entry["pokemon"]["name"] for entry in payload.get("pokemon", [])}
            if payload
            else set()
        )
        self.cache.set(cache_key, members)
        return members

    async def list_pokemon(self, query: PokemonListQuery) -> tuple[PokemonList, PaginationData]:
        index, cached = await self._get_index()

        pokemon = index
        if query.type:
            members = await self._get_type_members(query.type)
            pokemon = [p for p in pokemon if p.name in members]
        if query.generation:
            pokemon = [p for p in pokemon if p.generation == query.generation]

        sort_key = (
            (lambda p: p.name) if query.sort_by == PokemonSortField.NAME else (lambda p: p.id)
        )
        pokemon = sorted(pokemon, key=sort_key, reverse=query.sort_order == SortOrder.DESC)

        total_items = len(pokemon)
        total_pages = (total_items + query.limit - 1) // query.limit
        offset = (query.page - 1) * query.limit

        pagination = PaginationData(
            page=query.page,
            page_size=query.limit,
            total_items=total_items,
            total_pages=total_pages,
        )
        return PokemonList(pokemon=pokemon[offset : offset + query.limit], cached=cached), pagination
