"""
Shmup - Bullet Pattern Module

Turns an emitter (ordinary enemy or boss) into outgoing enemy bullets.

Ordinary enemies pick a pattern with one weighted draw from a table that
depends on their type. The boss pattern is fixed by its phase index, see
`enums.BossAttack`.
"""

from __future__ import annotations
import math
import random
from dataclasses import dataclass
from typing import Final, Iterable

from shmup import enums as enum
from shmup.types import Boss, Enemy, EnemyBullet, GameState
from shmup.utils import angle_fan, weighted_choice

BP = enum.BulletPattern # shorthand


@dataclass(frozen=True, slots=True)
class PatternShape:
    pattern: enum.BulletPattern
    offsets: tuple[float, ...] = ()
    """Spread offsets in radians from straight down"""


# ============================================================================
# PATTERN TABLES  (weight, shape)
# ============================================================================

SHOOTER_PATTERNS: Final[tuple[tuple[float, PatternShape], ...]] = (
    (0.40, PatternShape(BP.AIMED)),
    (0.30, PatternShape(BP.SPREAD_2, (-0.3, 0.3))),
    (0.15, PatternShape(BP.SPREAD_3, (-0.4, 0.0, 0.4))),
    (0.15, PatternShape(BP.CIRCLE)),
)

BASIC_PATTERNS: Final[tuple[tuple[float, PatternShape], ...]] = (
    (0.50, PatternShape(BP.STRAIGHT)),
    (0.30, PatternShape(BP.SPREAD_2, (-0.2, 0.2))),
    (0.20, PatternShape(BP.SPREAD_3, (-0.3, 0.0, 0.3))),
)


def pattern_table(enemy_type: enum.EnemyType):
    if enemy_type is enum.EnemyType.SHOOTER:
        return SHOOTER_PATTERNS
    return BASIC_PATTERNS


# ============================================================================
# SPEEDS
# ============================================================================

def base_bullet_speed(boss_clear_count: int) -> float:
    """Enemy bullet speed ramps up permanently after the first boss clear."""
    if boss_clear_count == 0:
        return enum.ENEMY_BULLET_SPEED * enum.EASY_BULLET_FACTOR
    return enum.ENEMY_BULLET_SPEED * enum.HARD_BULLET_FACTOR

def enemy_bullet_speed(enemy_type: enum.EnemyType, boss_clear_count: int) -> float:
    speed = base_bullet_speed(boss_clear_count)
    if enemy_type is enum.EnemyType.FAST:
        speed *= enum.FAST_ENEMY_BULLET_FACTOR
    return speed


# ============================================================================
# GENERATORS
# ============================================================================

def _radial(state: GameState, x: float, y: float,
    angles: Iterable[float], speed: float) -> list[EnemyBullet]:
    return [
        EnemyBullet(x, y, float(math.cos(a) * speed), float(math.sin(a) * speed), state.new_id())
        for a in angles
    ]

def _aimed(state: GameState, x: float, y: float, speed: float) -> EnemyBullet:
    angle = math.atan2(enum.PLAYER_Y - y, state.player_x - x)
    return EnemyBullet(x, y, math.cos(angle) * speed, math.sin(angle) * speed, state.new_id())


def shape_bullets(shape: PatternShape, x: float, y: float,
    speed: float, state: GameState) -> list[EnemyBullet]:
    """Build the bullets of one pattern fired from (x, y)."""
    match shape.pattern:
        case BP.STRAIGHT:
            return [EnemyBullet(x, y, 0.0, speed, state.new_id())]
        case BP.AIMED:
            return [_aimed(state, x, y, speed)]
        case BP.SPREAD_2 | BP.SPREAD_3:
            # vy stays at full speed, so wide spreads travel slightly faster
            return [EnemyBullet(x, y, math.sin(o) * speed, speed, state.new_id()) for o in shape.offsets]
        case BP.CIRCLE:
            angles = angle_fan(0, 2 * math.pi, enum.ENEMY_CIRCLE_COUNT, closed_circle=True)
            return _radial(state, x, y, angles, speed)
        case _:
            raise ValueError(f"Unknown bullet pattern: {shape.pattern}")


def generate_enemy_bullets(enemy: Enemy, state: GameState, rng: random.Random) -> list[EnemyBullet]:
    shape = weighted_choice(pattern_table(enemy.type), rng)
    speed = enemy_bullet_speed(enemy.type, state.boss_clear_count)
    return shape_bullets(shape, enemy.x, enemy.y, speed, state)


def generate_boss_bullets(boss: Boss, state: GameState) -> list[EnemyBullet]:
    """One shot of the boss's current attack."""
    match enum.BossAttack.for_phase(boss.phase):
        case enum.BossAttack.AIMED_BURST:
            return [_aimed(state, boss.x, boss.y, enum.BOSS_AIMED_SPEED)]

        case enum.BossAttack.SPREAD_SHOT:
            count = enum.BOSS_SPREAD_COUNT_HARD if state.boss_clear_count > 0 else enum.BOSS_SPREAD_COUNT
            start = math.pi / 2 - enum.BOSS_SPREAD_ANGLE / 2
            angles = angle_fan(start, start + enum.BOSS_SPREAD_ANGLE, count)
            return _radial(state, boss.x, boss.y, angles, enum.BOSS_SPREAD_SPEED)

        case enum.BossAttack.CIRCLE_SHOT:
            angles = angle_fan(0, 2 * math.pi, enum.BOSS_CIRCLE_COUNT, closed_circle=True)
            return _radial(state, boss.x, boss.y, angles, enum.BOSS_CIRCLE_SPEED)
