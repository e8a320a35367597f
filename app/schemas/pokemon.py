from pydantic import BaseModel, Field

from app.core.enums import PokemonSortField, SortOrder


class PokemonStats(BaseModel):
    """Base stat block of a Pokemon."""

    hp: int = Field(ge=0)
    attack: int = Field(ge=0)
    defense: int = Field(ge=0)
    special_attack: int = Field(ge=0)
    special_defense: int = Field(ge=0)
    speed: int = Field(ge=0)
    total: int = Field(ge=0)


class PokemonDetails(BaseModel):
    id: int
    name: str
    types: list[str] = Field(default_factory=list)
    stats: PokemonStats
    height: int | None = None
    weight: int | None = None
    sprite: str | None = None


class PokemonSummary(BaseModel):
    id: int
    name: str
    generation: int | None = None


class PokemonListQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    type: str | None = None
    generation: int | None = Field(default=None, ge=1, le=9)
    sort_by: PokemonSortField = PokemonSortField.ID
    sort_order: SortOrder = SortOrder.ASC


class PokemonList(BaseModel):
    pokemon: list[PokemonSummary]
    cached: bool
    """Whether the PokeAPI index was served from the cache"""
