from datetime import datetime

import sqlmodel

from app.core.enums import TournamentStatus

from ._base import BaseModel


def combatant_key(pokemon_id: int | None, name: str) -> str:
    """Key under which a Pokemon's remaining HP is tracked in ``Tournament.hp_state``."""
    return f"{pokemon_id}-{name}"


class Tournament(BaseModel, table=True):
    __tablename__: str = "tournaments"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    name: str = sqlmodel.Field(max_length=100)
    status: TournamentStatus = sqlmodel.Field(default=TournamentStatus.LIVE, index=True)
    max_rounds: int = sqlmodel.Field(ge=1, le=20)
    tournament_active_time: int = sqlmodel.Field(ge=1, le=1440)
    """Minutes the tournament accepts battles for"""
    end_time: datetime = sqlmodel.Field(sa_type=sqlmodel.DateTime(timezone=True))
    rounds: list[int] = sqlmodel.Field(
        default_factory=list, sa_column=sqlmodel.Column(sqlmodel.JSON, nullable=False)
    )
    """Battle IDs in the order they were fought"""
    hp_state: dict[str, int] = sqlmodel.Field(
        default_factory=dict, sa_column=sqlmodel.Column(sqlmodel.JSON, nullable=False)
    )
    """Last known HP per Pokemon, keyed by ``combatant_key``"""
    user_id: int | None = sqlmodel.Field(
        foreign_key="users.id", index=True, nullable=True, default=None
    )

    @property
    def is_live(self) -> bool:
        return self.status == TournamentStatus.LIVE

    @property
    def is_full(self) -> bool:
        return len(self.rounds) >= self.max_rounds
