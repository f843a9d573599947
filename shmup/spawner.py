"""
Shmup - Spawner Module

Decides when ordinary enemies spawn and what they look like.

Difficulty inputs: current power level and the boss-clear count. Spawning is
fully suspended during the boss phase.
"""

from __future__ import annotations
import random
from typing import Final

from shmup import enums as enum
from shmup.types import Enemy, GameState
from shmup.utils import weighted_choice

ET = enum.EnemyType # shorthand

NORMAL_MIX: Final[tuple[tuple[float, enum.EnemyType], ...]] = (
    (0.50, ET.NORMAL),
    (0.30, ET.SHOOTER),
    (0.20, ET.FAST),
)

HARD_MIX: Final[tuple[tuple[float, enum.EnemyType], ...]] = (
    (0.80, ET.SHOOTER),
    (0.05, ET.FAST),
    (0.15, ET.NORMAL),
)
"""Used once at least one boss has been cleared"""

EXTRA_ENEMIES_AT_MAX_POWER: Final[int] = 4

SHOOTER_SLOWDOWN: Final[dict[int, float]] = {
    2: 0.4,
    3: 0.8,
}
"""Shooter speed multiplier by power level at spawn time"""
HARD_SHOOTER_SLOWDOWN: Final[float] = 0.8


def is_hard_mode(state: GameState) -> bool:
    return state.boss_clear_count > 0

def type_mix(state: GameState):
    return HARD_MIX if is_hard_mode(state) else NORMAL_MIX


def batch_size(state: GameState, rng: random.Random) -> int:
    """
    Random 2-4, then in order:
        first encounter (no boss cleared yet) halves it, minimum 1
        max power level adds EXTRA_ENEMIES_AT_MAX_POWER
    """
    count = int(rng.random() * 3) + 2
    if state.boss_clear_count == 0:
        count = max(1, count // 2)
    if state.shot_level == enum.MAX_POWER_LEVEL:
        count += EXTRA_ENEMIES_AT_MAX_POWER
    return count


def create_enemy(state: GameState, timestamp: float, index: int, rng: random.Random) -> Enemy:
    enemy_type = weighted_choice(type_mix(state), rng)
    x = rng.uniform(enum.SPAWN_MARGIN_X, enum.GAME_WIDTH - enum.SPAWN_MARGIN_X)

    enemy = Enemy(
        x=x,
        y=enum.ENEMY_SPAWN_Y - index * enum.ENEMY_SPAWN_STACK,
        id=state.new_id(),
        last_shot=timestamp,
        type=enemy_type,
        speed=enum.ENEMY_SPEEDS[enemy_type],
    )

    if enemy_type is ET.SHOOTER:
        enemy.speed *= SHOOTER_SLOWDOWN.get(state.shot_level, 1.0)

    if is_hard_mode(state):
        enemy.last_shot = timestamp - enum.HARD_MODE_FIRST_SHOT_LEAD
        if enemy_type is ET.SHOOTER:
            enemy.speed *= HARD_SHOOTER_SLOWDOWN

    return enemy


def spawn_tick(state: GameState, timestamp: float, rng: random.Random) -> list[Enemy]:
    """
    Spawn a batch if the spawn interval has elapsed. Returns the new enemies.

    Never spawns while the boss phase is active.
    """
    if state.is_boss_phase:
        return []
    if timestamp - state.last_enemy_spawn <= enum.ENEMY_SPAWN_INTERVAL:
        return []

    spawned = [create_enemy(state, timestamp, i, rng) for i in range(batch_size(state, rng))]
    state.enemies.extend(spawned)
    state.last_enemy_spawn = timestamp
    return spawned
