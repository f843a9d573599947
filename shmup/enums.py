"""
Shmup - Enums and Constants Module

All game constants, tuned gameplay values, and enumerated values.
Central location for magic numbers with type safety and IDE autocomplete.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Final


# ============================================================================
# ENTITY VARIANTS
# ============================================================================

class EnemyType(str, Enum):
    NORMAL = "normal"
    SHOOTER = "shooter"
    FAST = "fast"


class PowerUpKind(str, Enum):
    MULTI_SHOT = "multiShot"


class BossState(str, Enum):
    """Boss lifecycle. Always entered at APPEARING."""
    APPEARING = "appearing"
    FIGHTING = "fighting"
    DYING = "dying"


class Lifecycle(str, Enum):
    """Externally visible session state. Only PLAYING advances the clock."""
    START = "start"
    PLAYING = "playing"
    GAMEOVER = "gameover"
    RANKING = "ranking"


class BulletPattern(str, Enum):
    """Ordinary enemy bullet patterns"""
    STRAIGHT = "straight"
    AIMED = "aimed"
    SPREAD_2 = "spread2"
    SPREAD_3 = "spread3"
    CIRCLE = "circle"


# ============================================================================
# BOSS ATTACK PATTERNS
# ============================================================================

@dataclass(frozen=True, slots=True)
class AttackCadence:
    shots: int
    """Shots fired per set"""
    sets: int
    """Sets fired before the boss moves to its next phase"""
    interval: float
    """ms between shots within a set"""
    set_interval: float
    """ms to wait after the last shot of a set"""


class BossAttack(Enum):
    """Boss attack pattern, selected by `phase % 3`"""
    AIMED_BURST = AttackCadence(shots=20, sets=3, interval=50, set_interval=1000)
    SPREAD_SHOT = AttackCadence(shots=4, sets=3, interval=650, set_interval=1000)
    CIRCLE_SHOT = AttackCadence(shots=16, sets=2, interval=300, set_interval=2000)

    @property
    def cadence(self) -> AttackCadence:
        return self.value

    @classmethod
    def for_phase(cls, phase: int) -> "BossAttack":
        return _BOSS_ATTACK_ORDER[phase % len(_BOSS_ATTACK_ORDER)]


_BOSS_ATTACK_ORDER: Final[tuple[BossAttack, ...]] = (
    BossAttack.AIMED_BURST, BossAttack.SPREAD_SHOT, BossAttack.CIRCLE_SHOT
)


# ============================================================================
# PLAY FIELD
# ============================================================================

GAME_WIDTH: Final[int] = 360
GAME_HEIGHT: Final[int] = 520
PLAYER_Y: Final[int] = GAME_HEIGHT - 120
PLAYER_START_X: Final[float] = 160

PLAYER_MIN_X: Final[float] = 20
PLAYER_MAX_X: Final[float] = GAME_WIDTH - 20

ENEMY_SHOOT_LIMIT_Y: Final[float] = GAME_HEIGHT * 0.6
"""Enemies only fire while above this line"""

BULLET_MARGIN: Final[int] = 10
"""Bullets and power-ups are purged this far outside the field"""
ENEMY_BOTTOM_Y: Final[int] = GAME_HEIGHT - 20
"""Enemies are purged once they reach this height"""

SPAWN_MARGIN_X: Final[int] = 20
ENEMY_SPAWN_Y: Final[int] = -20
ENEMY_SPAWN_STACK: Final[int] = 30
"""Vertical gap between enemies of one batch"""

STAR_COUNT: Final[int] = 25
STAR_RESET_Y: Final[int] = -10

# ============================================================================
# TIMING
# ============================================================================

FRAME_MS: Final[float] = 16
"""Baseline frame; velocities are per FRAME_MS"""

ENEMY_SPAWN_INTERVAL: Final[float] = 800
PLAYER_SHOT_INTERVAL: Final[float] = 150
HARD_MODE_FIRST_SHOT_LEAD: Final[float] = 800

ENEMY_SHOT_INTERVALS: Final[dict[EnemyType, float]] = {
    EnemyType.SHOOTER: 800,
    EnemyType.FAST: 1200,
    EnemyType.NORMAL: 1000,
}

BOSS_APPEAR_MS: Final[float] = 2000
BOSS_DEATH_MS: Final[float] = 1500

# ============================================================================
# SPEEDS
# ============================================================================

ENEMY_SPEEDS: Final[dict[EnemyType, float]] = {
    EnemyType.NORMAL: 4,
    EnemyType.SHOOTER: 1.5,
    EnemyType.FAST: 4.2,
}

PLAYER_BULLET_SPEED: Final[float] = 8
PLAYER_SPREAD_STEP: Final[float] = math.pi / 8
"""22.5 degrees between bullets of the player fan"""

ENEMY_BULLET_SPEED: Final[float] = 4
EASY_BULLET_FACTOR: Final[float] = 0.6
HARD_BULLET_FACTOR: Final[float] = 1.2
FAST_ENEMY_BULLET_FACTOR: Final[float] = 1.2

BOSS_AIMED_SPEED: Final[float] = 6
BOSS_SPREAD_SPEED: Final[float] = 3
BOSS_CIRCLE_SPEED: Final[float] = 4
BOSS_SPREAD_ANGLE: Final[float] = math.pi / 4
BOSS_SPREAD_COUNT: Final[int] = 6
BOSS_SPREAD_COUNT_HARD: Final[int] = 8
BOSS_CIRCLE_COUNT: Final[int] = 16
ENEMY_CIRCLE_COUNT: Final[int] = 8

POWERUP_SPEED: Final[float] = 2

# ============================================================================
# BOSS
# ============================================================================

BOSS_MAX_HP: Final[int] = 1000
BOSS_DAMAGE: Final[int] = 10
BOSS_START_Y: Final[float] = -50
BOSS_REST_Y: Final[float] = 100
BOSS_SWAY: Final[float] = 100
"""Horizontal amplitude while fighting"""
BOSS_DEATH_SPREAD: Final[float] = 80
BOSS_DEATH_EXPLOSION_CHANCE: Final[float] = 0.3

BOSS_COMING_POINT: Final[int] = 5000
BOSS_BONUS_SCORE: Final[int] = 30000

# ============================================================================
# HIT RADII
# ============================================================================

HITBOX_SHOOTER: Final[float] = 30
HITBOX_DEFAULT: Final[float] = 20
HITBOX_BOSS: Final[float] = 40
HITBOX_POWERUP: Final[float] = 30
HITBOX_PLAYER: Final[float] = 10

# ============================================================================
# SCORING & PROGRESSION
# ============================================================================

SCORE_SHOOTER: Final[int] = 200
SCORE_DEFAULT: Final[int] = 100
SCORE_POWERUP: Final[int] = 500

MIN_POWER_LEVEL: Final[int] = 1
MAX_POWER_LEVEL: Final[int] = 3
POWERUP_DROP_CHANCE: Final[float] = 0.1

# ============================================================================
# EXPLOSIONS  (size, duration ms)
# ============================================================================

EXPLOSION_BOSS_HIT: Final[tuple[float, float]] = (0.5, 200)
EXPLOSION_ENEMY: Final[tuple[float, float]] = (1, 500)
EXPLOSION_SHOOTER: Final[tuple[float, float]] = (2, 500)
EXPLOSION_PLAYER: Final[tuple[float, float]] = (2, 1000)
EXPLOSION_BOSS_DEATH_MS: Final[float] = 800

# ============================================================================
# SESSION
# ============================================================================

HMAC_KEY_ENV: Final[str] = "SHMUP_HMAC_KEY"
ANONYMOUS_PLAYER: Final[int] = 0
"""Player id used when no profile is known; never submits a score"""
RANKING_SIZE: Final[int] = 10
