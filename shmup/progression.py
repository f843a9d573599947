"""
Shmup - Score & Progression Module

Score, power level and boss-clear bookkeeping, plus the player's volley.

Score only moves through `award`, which refuses negative amounts, so the
score can never go down within a session.
"""

from __future__ import annotations

import numpy as np

from shmup import enums as enum
from shmup.types import Explosion, GameplayData, GameState, PlayerBullet
from shmup.utils import angle_fan


def award(state: GameState, points: int) -> int:
    if points < 0:
        raise ValueError(f"Score awards must be non-negative. Got: {points}")
    state.score += points
    return state.score


def add_explosion(state: GameState, x: float, y: float,
    size: float, duration: float, timestamp: float) -> Explosion:
    explosion = Explosion(x, y, state.new_id(), size, duration, timestamp)
    state.explosions.append(explosion)
    return explosion


# ============================================================================
# POWER LEVEL
# ============================================================================

def power_up(state: GameState, telemetry: GameplayData) -> None:
    state.shot_level = min(state.shot_level + 1, enum.MAX_POWER_LEVEL)
    award(state, enum.SCORE_POWERUP)
    telemetry.powerups_collected += 1


def player_fan_angles(level: int):
    """`level` bullets spaced PLAYER_SPREAD_STEP apart, centred straight up."""
    half_width = (level - 1) / 2 * enum.PLAYER_SPREAD_STEP
    return angle_fan(-half_width, half_width, level)


def fire_volley(state: GameState, telemetry: GameplayData) -> list[PlayerBullet]:
    telemetry.shots_fired += 1
    volley = [
        PlayerBullet(
            x=state.player_x, y=enum.PLAYER_Y,
            vx=float(np.sin(a) * enum.PLAYER_BULLET_SPEED),
            vy=float(-np.cos(a) * enum.PLAYER_BULLET_SPEED),
            id=state.new_id(),
        )
        for a in player_fan_angles(state.shot_level)
    ]
    state.player_bullets.extend(volley)
    return volley


def update_firing(state: GameState, telemetry: GameplayData, timestamp: float) -> None:
    """Auto-fire while the trigger is held, plus one volley per pending click."""
    if state.click_shot_pending:
        state.click_shot_pending = False
        fire_volley(state, telemetry)

    if state.is_fire_pressed and timestamp - state.last_shot > enum.PLAYER_SHOT_INTERVAL:
        fire_volley(state, telemetry)
        state.last_shot = timestamp


# ============================================================================
# BOSS PHASE
# ============================================================================

def boss_threshold(state: GameState) -> int:
    """Score needed since the last boss before the next one appears."""
    return enum.BOSS_COMING_POINT * (state.boss_clear_count + 1)

def boss_due(state: GameState) -> bool:
    if state.is_boss_phase:
        return False
    gained = state.score - state.last_boss_score
    return gained > 0 and gained >= boss_threshold(state)


def record_boss_clear(state: GameState) -> None:
    """Bonus, bookkeeping and cleanup once the boss death animation ends."""
    award(state, enum.BOSS_BONUS_SCORE)
    state.last_boss_score = state.score
    state.enemy_bullets.clear()
    state.boss = None
    state.is_boss_phase = False
    state.boss_clear_count += 1


# ============================================================================
# GAME OVER
# ============================================================================

def player_killed(state: GameState, timestamp: float) -> None:
    size, duration = enum.EXPLOSION_PLAYER
    add_explosion(state, state.player_x, enum.PLAYER_Y, size, duration, timestamp)
    state.game_over = True
