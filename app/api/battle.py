from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.security import get_current_user
from app.models.battle import Battle
from app.models.user import User
from app.schemas.battle import BattleSimulateRequest, BattleSimulation
from app.schemas.common import APIResponse, PaginatedResponse
from app.services.battle import BattleService

router = APIRouter(prefix="/battles", tags=["battles"])


@router.get("/")
async def get_battles(
    service: Annotated[BattleService, Depends()],
    _user: Annotated[User, Depends(get_current_user)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
    tournament_id: Annotated[int | None, Query()] = None,
) -> PaginatedResponse[Sequence[Battle]]:
    battles, pagination = await service.get_battles(
        page=page, page_size=page_size, tournament_id=tournament_id
    )
    return PaginatedResponse(data=battles, pagination=pagination)


@router.get("/{battle_id}")
async def get_battle(
    battle_id: int,
    service: Annotated[BattleService, Depends()],
    _user: Annotated[User, Depends(get_current_user)],
) -> APIResponse[Battle]:
    battle = await service.get_battle(battle_id)
    if not battle:
        raise HTTPException(status_code=404, detail="Battle not found")
    return APIResponse(data=battle)


@router.post("/")
async def simulate_battle(
    request: BattleSimulateRequest,
    service: Annotated[BattleService, Depends()],
    user: Annotated[User, Depends(get_current_user)],
) -> APIResponse[BattleSimulation]:
    simulation = await service.simulate_battle(request, user_id=user.id)
    return APIResponse(data=simulation, message="Battle completed successfully")
