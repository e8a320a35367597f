from pydantic import BaseModel, Field, model_validator

from app.models.battle import Battle
from app.schemas.pokemon import PokemonStats


class Combatant(BaseModel):
    """Snapshot of a Pokemon entering a single battle."""

    id: int | None = None
    name: str
    types: list[str] = Field(default_factory=list)
    stats: PokemonStats
    current_hp: int | None = None
    """HP carried into the battle; None means full base HP"""

    @property
    def starting_hp(self) -> int:
        return self.stats.hp if self.current_hp is None else self.current_hp


class BattleLogEntry(BaseModel):
    round: int
    attacker: str
    defender: str
    damage: int = Field(ge=1)
    defender_hp_after: int = Field(ge=0)


class BattleWinner(BaseModel):
    id: int | None
    name: str
    remaining_hp: int = Field(ge=0)


class BattleLoser(BaseModel):
    id: int | None
    name: str


class BattleOutcome(BaseModel):
    winner: BattleWinner
    loser: BattleLoser
    rounds: int = Field(ge=0)
    battle_log: list[BattleLogEntry]


class CombatantInput(BaseModel):
    """Client supplied Pokemon for an ad-hoc battle."""

    name: str = Field(min_length=1, max_length=100)
    stats: PokemonStats

    @model_validator(mode="after")
    def validate_defense(self) -> "CombatantInput":
        if self.stats.defense < 1:
            msg = "defense must be at least 1"
            raise ValueError(msg)
        return self


class BattleSimulateRequest(BaseModel):
    attacker1: CombatantInput
    attacker2: CombatantInput

    @model_validator(mode="after")
    def validate_distinct(self) -> "BattleSimulateRequest":
        if self.attacker1.name.lower() == self.attacker2.name.lower():
            msg = "Cannot battle the same Pokemon"
            raise ValueError(msg)
        return self


class BattleSimulation(BaseModel):
    battle: Battle
    outcome: BattleOutcome
