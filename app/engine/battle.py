"""Deterministic one-on-one battle resolution.

Both Pokemon use a single fixed-power move. The Pokemon passed first always
strikes first and turns alternate until one side reaches 0 HP. Speed is kept
on the snapshot but does not affect turn order.
"""

import math

from loguru import logger

from app.schemas.battle import (
    BattleLogEntry,
    BattleLoser,
    BattleOutcome,
    BattleWinner,
    Combatant,
)
from app.schemas.pokemon import PokemonStats

LEVEL = 50
BASE_POWER = 60


def calculate_damage(
    attacker: PokemonStats, defender: PokemonStats, type_modifier: float = 1.0
) -> int:
    """Damage dealt by one hit, never less than 1.

    ``defender.defense`` must be positive.
    """
    damage = math.floor(
        ((2 * LEVEL + 10) / 250)
        * (attacker.attack / defender.defense)
        * BASE_POWER
        * type_modifier
    )
    return max(1, damage)


def _forfeit(winner: Combatant, loser: Combatant) -> BattleOutcome:
    logger.debug(f"{loser.name} entered with no HP left, {winner.name} wins without a fight")
    return BattleOutcome(
        winner=BattleWinner(
            id=winner.id, name=winner.name, remaining_hp=max(0, winner.starting_hp)
        ),
        loser=BattleLoser(id=loser.id, name=loser.name),
        rounds=0,
        battle_log=[],
    )


def resolve_battle(first: Combatant, second: Combatant) -> BattleOutcome:
    """Fight ``first`` against ``second`` until one of them faints.

    If either side starts at 0 HP or below it loses immediately with no rounds
    played; ``first`` is checked before ``second``.
    """
    logger.debug(
        f"Battle start: {first.name} vs {second.name} "
        f"(first attacker {first.name}, speed {first.stats.speed})"
    )

    if first.starting_hp <= 0:
        return _forfeit(winner=second, loser=first)
    if second.starting_hp <= 0:
        return _forfeit(winner=first, loser=second)

    fighters = (first, second)
    hp = [first.starting_hp, second.starting_hp]
    battle_log: list[BattleLogEntry] = []
    attacker, defender = 0, 1

    while True:
        damage = calculate_damage(fighters[attacker].stats, fighters[defender].stats)
        hp[defender] = max(0, hp[defender] - damage)
        battle_log.append(
            BattleLogEntry(
                round=len(battle_log) + 1,
                attacker=fighters[attacker].name,
                defender=fighters[defender].name,
                damage=damage,
                defender_hp_after=hp[defender],
            )
        )
        if hp[defender] == 0:
            break
        attacker, defender = defender, attacker

    winner, loser = fighters[attacker], fighters[defender]
    logger.debug(f"{loser.name} fainted after {len(battle_log)} rounds, {winner.name} wins")

    return BattleOutcome(
        winner=BattleWinner(id=winner.id, name=winner.name, remaining_hp=hp[attacker]),
        loser=BattleLoser(id=loser.id, name=loser.name),
        rounds=len(battle_log),
        battle_log=battle_log,
    )
