from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.core.rate_limit import rate_limit
from app.core.security import get_current_user
from app.schemas.common import APIResponse, PaginatedResponse
from app.schemas.pokemon import PokemonDetails, PokemonList, PokemonListQuery
from app.services.pokemon import PokemonService

router = APIRouter(
    prefix="/pokemon",
    tags=["pokemon"],
    dependencies=[Depends(get_current_user), Depends(rate_limit)],
)


@router.get("/list")
async def get_pokemon_list(
    query: Annotated[PokemonListQuery, Query()], service: Annotated[PokemonService, Depends()]
) -> PaginatedResponse[PokemonList]:
    pokemon, pagination = await service.list_pokemon(query)
    return PaginatedResponse(data=pokemon, pagination=pagination)


@router.get("/{name}")
async def get_pokemon(
    name: str, service: Annotated[PokemonService, Depends()]
) -> APIResponse[PokemonDetails]:
    return APIResponse(data=await service.get_pokemon(name))
