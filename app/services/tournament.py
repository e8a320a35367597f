import asyncio
from collections.abc import Sequence
from datetime import timedelta
from typing import Annotated

from fastapi import Depends
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.clock import Clock, get_clock
from app.core.db import get_db
from app.core.enums import TournamentClosedReason, TournamentStatus
from app.core.errors import (
    InvalidRequestError,
    PersistenceError,
    TournamentClosedError,
    TournamentNotFoundError,
)
from app.core.locks import KeyedLock, get_tournament_locks
from app.engine.battle import resolve_battle
from app.models.battle import Battle
from app.models.tournament import Tournament, combatant_key
from app.schemas.battle import Combatant
from app.schemas.common import PaginationData
from app.schemas.pokemon import PokemonDetails
from app.schemas.tournament import (
    CompletedTournamentSummary,
    LiveTournamentSummary,
    PokemonStanding,
    TournamentCreate,
    TournamentResults,
)
from app.services.pokemon import PokemonService
from app.utils.misc import ensure_utc


class TournamentService:
    """Runs tournaments: sequences battles, carries HP between them and closes tournaments.

    Closing is lazy. A tournament whose end time has passed is only marked
    completed the next time it is read or a battle is added to it. Battles added
    to the same tournament are serialized through ``locks`` so two requests can
    never claim the same battle number.
    """

    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db)],
        pokemon_service: Annotated[PokemonService, Depends()],
        clock: Annotated[Clock, Depends(get_clock)],
        locks: Annotated[KeyedLock, Depends(get_tournament_locks)],
    ) -> None:
        self.db = db
        self.pokemon_service = pokemon_service
        self.clock = clock
        self.locks = locks

    async def _commit(self, *objects: Tournament | Battle) -> None:
        try:
            for obj in objects:
                self.db.add(obj)
            await self.db.commit()
            for obj in objects:
                await self.db.refresh(obj)
        except SQLAlchemyError as e:
            await self.db.rollback()
            msg = "Failed to save tournament data"
            raise PersistenceError(msg) from e

    def _has_expired(self, tournament: Tournament) -> bool:
        return self.clock.now() > ensure_utc(tournament.end_time)

    def _closed_reason(self, tournament: Tournament) -> TournamentClosedReason:
        if self._has_expired(tournament):
            return TournamentClosedReason.ENDED_BY_TIME
        if tournament.is_full:
            return TournamentClosedReason.ROUND_LIMIT_REACHED
        return TournamentClosedReason.NOT_LIVE

    async def _complete_if_due(self, tournament: Tournament) -> None:
        """Mark a live tournament completed once its time is up or its rounds are used."""
        if not tournament.is_live:
            return
        if not (self._has_expired(tournament) or tournament.is_full):
            return

        tournament.status = TournamentStatus.COMPLETED
        await self._commit(tournament)
        logger.info(
            f"Tournament {tournament.id} completed "
            f"({len(tournament.rounds)}/{tournament.max_rounds} rounds)"
        )

    async def get_tournament(self, tournament_id: int) -> Tournament | None:
        result = await self.db.exec(select(Tournament).where(Tournament.id == tournament_id))
        tournament = result.first()
        if tournament:
            await self._complete_if_due(tournament)
        return tournament

    async def _get_tournament_or_raise(self, tournament_id: int) -> Tournament:
        tournament = await self.get_tournament(tournament_id)
        if not tournament:
            raise TournamentNotFoundError(tournament_id)
        return tournament

    async def create_tournament(
        self, data: TournamentCreate, user_id: int | None = None
    ) -> Tournament:
        tournament = Tournament(
            name=data.name,
            status=TournamentStatus.LIVE,
            max_rounds=data.max_rounds,
            tournament_active_time=data.tournament_active_time,
            end_time=self.clock.now() + timedelta(minutes=data.tournament_active_time),
            rounds=[],
            hp_state={},
            user_id=user_id,
        )
        await self._commit(tournament)
        logger.info(
            f"Tournament {tournament.id} '{tournament.name}' created: "
            f"{tournament.max_rounds} rounds, ends {tournament.end_time.isoformat()}"
        )
        return tournament

    async def _sweep_expired(self) -> None:
        """Complete every live tournament whose time is up or whose rounds are used."""
        result = await self.db.exec(
            select(Tournament).where(Tournament.status == TournamentStatus.LIVE)
        )
        for tournament in result.all():
            await self._complete_if_due(tournament)

    async def _get_tournaments_page(
        self, status: TournamentStatus, *, page: int, page_size: int
    ) -> tuple[Sequence[Tournament], PaginationData]:
        offset = (page - 1) * page_size

        count_query = (
            select(func.count()).select_from(Tournament).where(Tournament.status == status)
        )
        total_items = (await self.db.exec(count_query)).one()
        total_pages = (total_items + page_size - 1) // page_size

        result = await self.db.exec(
            select(Tournament)
            .where(Tournament.status == status)
            .order_by(col(Tournament.created_at).desc(), col(Tournament.id).desc())
            .offset(offset)
            .limit(page_size)
        )
        pagination = PaginationData(
            page=page, page_size=page_size, total_items=total_items, total_pages=total_pages
        )
        return result.all(), pagination

    async def get_live_tournaments(
        self, *, page: int, page_size: int
    ) -> tuple[list[LiveTournamentSummary], PaginationData]:
        await self._sweep_expired()
        live, pagination = await self._get_tournaments_page(
            TournamentStatus.LIVE, page=page, page_size=page_size
        )

        now = self.clock.now()
        summaries = [
            LiveTournamentSummary(
                id=t.id,
                name=t.name,
                status=t.status,
                rounds_played=len(t.rounds),
                end_time=t.end_time,
                created_at=t.created_at,
                max_rounds=t.max_rounds,
                next_round=len(t.rounds) + 1,
                tournament_ends_in=max(0, int((ensure_utc(t.end_time) - now).total_seconds())),
            )
            for t in live
        ]
        return summaries, pagination

    async def get_completed_tournaments(
        self, *, page: int, page_size: int
    ) -> tuple[list[CompletedTournamentSummary], PaginationData]:
        # Expired live tournaments must show up here
        await self._sweep_expired()
        completed, pagination = await self._get_tournaments_page(
            TournamentStatus.COMPLETED, page=page, page_size=page_size
        )
        summaries = [
            CompletedTournamentSummary(
                id=t.id,
                name=t.name,
                status=t.status,
                rounds_played=len(t.rounds),
                end_time=t.end_time,
                created_at=t.created_at,
            )
            for t in completed
        ]
        return summaries, pagination

    def _to_combatant(self, tournament: Tournament, pokemon: PokemonDetails) -> Combatant:
        """Snapshot a Pokemon with the HP it carries in this tournament (full HP on first appearance)."""
        current_hp = tournament.hp_state.get(combatant_key(pokemon.id, pokemon.name))
        return Combatant(
            id=pokemon.id,
            name=pokemon.name,
            types=pokemon.types,
            stats=pokemon.stats,
            current_hp=pokemon.stats.hp if current_hp is None else current_hp,
        )

    async def add_battle(self, tournament_id: int, attacker: str, defender: str) -> Battle:
        """Fight ``attacker`` against ``defender`` as the next round of a tournament.

        Raises:
            TournamentNotFoundError: If the tournament does not exist.
            TournamentClosedError: If the tournament has ended or used all its rounds.
            InvalidRequestError: If both sides are the same Pokemon.
            PokemonNotFoundError: If either Pokemon is unknown.
            UpstreamError: If Pokemon stats cannot be fetched.
            PersistenceError: If saving the result fails.
        """
        async with self.locks.acquire(tournament_id):
            tournament = await self._get_tournament_or_raise(tournament_id)
            if not tournament.is_live:
                raise TournamentClosedError(self._closed_reason(tournament))

            if attacker == defender:
                msg = "Cannot battle the same Pokemon"
                raise InvalidRequestError(msg)

            first, second = await asyncio.gather(
                self.pokemon_service.get_pokemon(attacker),
                self.pokemon_service.get_pokemon(defender),
            )
            if first.id == second.id:
                msg = "Cannot battle the same Pokemon"
                raise InvalidRequestError(msg)

            outcome = resolve_battle(
                self._to_combatant(tournament, first), self._to_combatant(tournament, second)
            )

            battle = Battle(
                tournament_id=tournament.id,
                battle_number=len(tournament.rounds) + 1,
                attacker1_id=first.id,
                attacker1_name=first.name,
                attacker2_id=second.id,
                attacker2_name=second.name,
                winner_name=outcome.winner.name,
                winner_remaining_hp=outcome.winner.remaining_hp,
                rounds=outcome.rounds,
                battle_log=[entry.model_dump() for entry in outcome.battle_log],
            )
            await self._commit(battle)

            # JSON columns are replaced, not mutated in place, so the change is tracked
            tournament.hp_state = {
                **tournament.hp_state,
                combatant_key(outcome.winner.id, outcome.winner.name): outcome.winner.remaining_hp,
                combatant_key(outcome.loser.id, outcome.loser.name): 0,
            }
            tournament.rounds = [*tournament.rounds, battle.id]
            try:
                await self._commit(tournament)
            except PersistenceError:
                logger.error(
                    f"Battle {battle.id} was saved but could not be linked to tournament "
                    f"{tournament.id}"
                )
                raise

            logger.info(
                f"Tournament {tournament.id} battle #{battle.battle_number}: "
                f"{first.name} vs {second.name}, {outcome.winner.name} wins with "
                f"{outcome.winner.remaining_hp} HP"
            )

            await self._complete_if_due(tournament)
            return battle

    async def get_results(self, tournament_id: int) -> TournamentResults:
        tournament = await self._get_tournament_or_raise(tournament_id)

        battles_by_id: dict[int, Battle] = {}
        if tournament.rounds:
            result = await self.db.exec(
                select(Battle).where(col(Battle.id).in_(tournament.rounds))
            )
            battles_by_id = {battle.id: battle for battle in result.all()}

        standings = []
        for key, remaining_hp in tournament.hp_state.items():
            pokemon_id, _, name = key.partition("-")
            standings.append(
                PokemonStanding(
                    pokemon_id=int(pokemon_id) if pokemon_id.isdigit() else None,
                    name=name,
                    remaining_hp=remaining_hp,
                    fainted=remaining_hp <= 0,
                )
            )
        standings.sort(key=lambda s: (-s.remaining_hp, s.name))

        return TournamentResults(
            id=tournament.id,
            name=tournament.name,
            status=tournament.status,
            max_rounds=tournament.max_rounds,
            tournament_active_time=tournament.tournament_active_time,
            end_time=tournament.end_time,
            created_at=tournament.created_at,
            rounds=[battles_by_id[i] for i in tournament.rounds if i in battles_by_id],
            hp_state=tournament.hp_state,
            standings=standings,
        )

