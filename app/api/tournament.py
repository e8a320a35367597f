from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.core.rate_limit import rate_limit
from app.core.security import get_current_user
from app.models.battle import Battle
from app.models.tournament import Tournament
from app.models.user import User
from app.schemas.common import APIResponse, PaginatedResponse
from app.schemas.tournament import (
    CompletedTournamentSummary,
    LiveTournamentSummary,
    TournamentBattleCreate,
    TournamentCreate,
    TournamentResults,
)
from app.services.tournament import TournamentService

router = APIRouter(
    prefix="/tournaments",
    tags=["tournaments"],
    dependencies=[Depends(get_current_user), Depends(rate_limit)],
)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_tournament(
    data: TournamentCreate,
    service: Annotated[TournamentService, Depends()],
    user: Annotated[User, Depends(get_current_user)],
) -> APIResponse[Tournament]:
    tournament = await service.create_tournament(data, user_id=user.id)
    return APIResponse(data=tournament, message="Tournament created successfully")


@router.get("/live")
async def get_live_tournaments(
    service: Annotated[TournamentService, Depends()],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
) -> PaginatedResponse[list[LiveTournamentSummary]]:
    tournaments, pagination = await service.get_live_tournaments(page=page, page_size=page_size)
    return PaginatedResponse(data=tournaments, pagination=pagination)


@router.get("/completed")
async def get_completed_tournaments(
    service: Annotated[TournamentService, Depends()],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
) -> PaginatedResponse[list[CompletedTournamentSummary]]:
    tournaments, pagination = await service.get_completed_tournaments(
        page=page, page_size=page_size
    )
    return PaginatedResponse(data=tournaments, pagination=pagination)


@router.post("/{tournament_id}/battle", status_code=status.HTTP_201_CREATED)
async def add_battle_to_tournament(
    tournament_id: int,
    data: TournamentBattleCreate,
    service: Annotated[TournamentService, Depends()],
) -> APIResponse[Battle]:
    battle = await service.add_battle(tournament_id, data.attacker, data.defender)
    return APIResponse(data=battle, message="Battle added to tournament")


@router.get("/{tournament_id}/results")
async def get_tournament_results(
    tournament_id: int,
    service: Annotated[TournamentService, Depends()],
) -> APIResponse[TournamentResults]:
    return APIResponse(data=await service.get_results(tournament_id))
