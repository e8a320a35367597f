from collections.abc import Sequence
from typing import Annotated

from fastapi import Depends
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.db import get_db
from app.core.errors import PersistenceError
from app.engine.battle import resolve_battle
from app.models.battle import Battle
from app.schemas.battle import BattleSimulateRequest, BattleSimulation, Combatant
from app.schemas.common import PaginationData


class BattleService:
    """Standalone battles between client supplied Pokemon, outside any tournament."""

    def __init__(self, db: Annotated[AsyncSession, Depends(get_db)]) -> None:
        self.db = db

    async def get_battles(
        self, *, page: int, page_size: int, tournament_id: int | None = None
    ) -> tuple[Sequence[Battle], PaginationData]:
        offset = (page - 1) * page_size

        query = select(Battle)
        count_query = select(func.count()).select_from(Battle)
        if tournament_id is not None:
            query = query.where(Battle.tournament_id == tournament_id)
            count_query = count_query.where(Battle.tournament_id == tournament_id)

        total_items = (await self.db.exec(count_query)).one()
        total_pages = (total_items + page_size - 1) // page_size

        result = await self.db.exec(
            query.order_by(col(Battle.created_at).desc(), col(Battle.id).desc())
            .offset(offset)
            .limit(page_size)
        )
        battles = result.all()

        pagination = PaginationData(
            page=page, page_size=page_size, total_items=total_items, total_pages=total_pages
        )

        return battles, pagination

    async def get_battle(self, battle_id: int) -> Battle | None:
        result = await self.db.exec(select(Battle).where(Battle.id == battle_id))
        return result.first()

    async def simulate_battle(
        self, request: BattleSimulateRequest, user_id: int | None = None
    ) -> BattleSimulation:
        """Resolve an ad-hoc battle at full HP and record it as a standalone battle."""
        first = Combatant(name=request.attacker1.name, stats=request.attacker1.stats)
        second = Combatant(name=request.attacker2.name, stats=request.attacker2.stats)
        outcome = resolve_battle(first, second)

        battle = Battle(
            user_id=user_id,
            attacker1_name=first.name,
            attacker2_name=second.name,
            winner_name=outcome.winner.name,
            winner_remaining_hp=outcome.winner.remaining_hp,
            rounds=outcome.rounds,
            battle_log=[entry.model_dump() for entry in outcome.battle_log],
        )
        try:
            self.db.add(battle)
            await self.db.commit()
            await self.db.refresh(battle)
        except SQLAlchemyError as e:
            await self.db.rollback()
            msg = "Failed to save battle"
            raise PersistenceError(msg) from e

        logger.info(
            f"Battle {battle.id}: {first.name} vs {second.name}, {outcome.winner.name} wins "
            f"in {outcome.rounds} rounds"
        )
        return BattleSimulation(battle=battle, outcome=outcome)
