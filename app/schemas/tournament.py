from datetime import datetime

from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.enums import TournamentStatus
from app.models.battle import Battle


class TournamentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    max_rounds: int = Field(ge=1, le=20)
    tournament_active_time: int = Field(
        default=settings.default_tournament_active_time,
        ge=1,
        le=1440,
        description="Minutes the tournament accepts battles for",
    )


class TournamentBattleCreate(BaseModel):
    attacker: str = Field(min_length=1, max_length=100)
    defender: str = Field(min_length=1, max_length=100)


class CompletedTournamentSummary(BaseModel):
    id: int
    name: str
    status: TournamentStatus
    rounds_played: int
    end_time: datetime
    created_at: datetime


class LiveTournamentSummary(CompletedTournamentSummary):
    max_rounds: int
    next_round: int
    tournament_ends_in: int
    """Seconds until the tournament stops accepting battles"""


class PokemonStanding(BaseModel):
    pokemon_id: int | None
    name: str
    remaining_hp: int
    fainted: bool


class TournamentResults(BaseModel):
    id: int
    name: str
    status: TournamentStatus
    max_rounds: int
    tournament_active_time: int
    end_time: datetime
    created_at: datetime
    rounds: list[Battle]
    hp_state: dict[str, int]
    standings: list[PokemonStanding]
