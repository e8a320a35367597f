from typing import Any

import sqlmodel

from ._base import BaseModel


class Battle(BaseModel, table=True):
    __tablename__: str = "battles"
    __table_args__ = (
        sqlmodel.UniqueConstraint(
            "tournament_id", "battle_number", name="tournament_battle_number_unique"
        ),
    )

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    tournament_id: int | None = sqlmodel.Field(
        foreign_key="tournaments.id", index=True, nullable=True, default=None
    )
    """None for standalone battles"""
    user_id: int | None = sqlmodel.Field(
        foreign_key="users.id", index=True, nullable=True, default=None
    )
    battle_number: int | None = sqlmodel.Field(default=None, ge=1)
    """1-based position within the owning tournament"""

    attacker1_id: int | None = None
    attacker1_name: str = sqlmodel.Field(max_length=100, index=True)
    attacker2_id: int | None = None
    attacker2_name: str = sqlmodel.Field(max_length=100, index=True)
    winner_name: str = sqlmodel.Field(max_length=100, index=True)
    winner_remaining_hp: int = sqlmodel.Field(ge=0)

    rounds: int = sqlmodel.Field(default=0, ge=0)
    battle_log: list[dict[str, Any]] = sqlmodel.Field(
        default_factory=list, sa_column=sqlmodel.Column(sqlmodel.JSON, nullable=False)
    )
