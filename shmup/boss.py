"""
Shmup - Boss Encounter Module

Boss lifecycle:  APPEARING -> FIGHTING -> DYING -> (removed)

    APPEARING   descends from off-field over BOSS_APPEAR_MS
    FIGHTING    sways horizontally and runs its attack cadence; takes damage
    DYING       random secondary explosions over BOSS_DEATH_MS, then the
                clear bonus is paid and the boss phase ends

A new encounter always starts at APPEARING.
"""

from __future__ import annotations
import math
import random

from shmup import enums as enum, progression
from shmup.patterns import generate_boss_bullets
from shmup.types import Boss, EnemyBullet, GameState

BS = enum.BossState # shorthand


def create_boss(state: GameState) -> Boss:
    return Boss(x=enum.GAME_WIDTH / 2, y=enum.BOSS_START_Y, id=state.new_id())


def enter_boss_phase(state: GameState) -> Boss:
    """Suspend spawning, clear the field of ordinary enemies and bring in a boss."""
    if state.is_boss_phase or state.boss is not None:
        raise RuntimeError("enter_boss_phase: a boss encounter is already active")

    boss = create_boss(state)
    state.is_boss_phase = True
    state.last_boss_score = state.score
    state.boss = boss
    state.enemies.clear()
    return boss


# ============================================================================
# ATTACK CADENCE
# ============================================================================

def boss_attack(boss: Boss, state: GameState, timestamp: float) -> list[EnemyBullet]:
    """
    Fire the current phase's pattern on its cadence. Returns bullets fired.

    After `shots` shots the boss rests for `set_interval`; after `sets` sets
    it moves on to the next phase.
    """
    if boss.state is not BS.FIGHTING:
        return []

    cadence = enum.BossAttack.for_phase(boss.phase).cadence
    since_last = timestamp - boss.last_shot
    if since_last <= cadence.interval:
        return []

    if boss.shot_count < cadence.shots:
        bullets = generate_boss_bullets(boss, state)
        state.enemy_bullets.extend(bullets)
        boss.shot_count += 1
        boss.last_shot = timestamp
        return bullets

    if since_last > cadence.set_interval:
        boss.shot_count = 0
        boss.set_count += 1
        if boss.set_count >= cadence.sets:
            boss.phase = (boss.phase + 1) % 3
            boss.set_count = 0
    return []


# ============================================================================
# DAMAGE
# ============================================================================

def damage_boss(boss: Boss, state: GameState, x: float, y: float, timestamp: float) -> None:
    """One qualifying player bullet hit at (x, y)."""
    if boss.state is not BS.FIGHTING:
        return
    boss.hp -= enum.BOSS_DAMAGE
    size, duration = enum.EXPLOSION_BOSS_HIT
    progression.add_explosion(state, x, y, size, duration, timestamp)

    if boss.hp <= 0:
        boss.state = BS.DYING
        boss.progress = 0


# ============================================================================
# STATE MACHINE
# ============================================================================

def _appearing(boss: Boss, delta: float) -> None:
    boss.progress = min(boss.progress + delta / enum.BOSS_APPEAR_MS, 1)
    boss.y = enum.BOSS_START_Y + boss.progress * (enum.BOSS_REST_Y - enum.BOSS_START_Y)
    if boss.progress >= 1:
        boss.state = BS.FIGHTING


def _fighting(boss: Boss, state: GameState, timestamp: float) -> None:
    boss.x = enum.GAME_WIDTH / 2 + math.sin(timestamp / 1000) * enum.BOSS_SWAY
    boss_attack(boss, state, timestamp)


def _dying(boss: Boss, state: GameState, timestamp: float, delta: float, rng: random.Random) -> None:
    boss.progress = min(boss.progress + delta / enum.BOSS_DEATH_MS, 1)

    if rng.random() < enum.BOSS_DEATH_EXPLOSION_CHANCE:
        spread = enum.BOSS_DEATH_SPREAD
        progression.add_explosion(state,
            boss.x + (rng.random() - 0.5) * spread,
            boss.y + (rng.random() - 0.5) * spread,
            size=1 + rng.random(),
            duration=enum.EXPLOSION_BOSS_DEATH_MS,
            timestamp=timestamp)

    if boss.progress >= 1:
        progression.record_boss_clear(state)


def update_boss(state: GameState, timestamp: float, delta: float, rng: random.Random) -> None:
    """Advance the active boss by one tick. No-op outside the boss phase."""
    boss = state.boss
    if not state.is_boss_phase or boss is None:
        return

    match boss.state:
        case BS.APPEARING:
            _appearing(boss, delta)
        case BS.FIGHTING:
            _fighting(boss, state, timestamp)
        case BS.DYING:
            _dying(boss, state, timestamp, delta, rng)
