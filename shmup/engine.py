"""
Shmup - Engine Module

One simulation step over an explicitly owned GameState.

Tick order (load-bearing):
    1. frame delta              first tick of a session has delta 0
    2. boss phase entry         score threshold reached -> boss appears
    3. background stars
    4. player firing
    5. boss update OR enemy spawning
    6. movement                 (enemies fire before they move)
    7. collisions
    8. bounds purge, explosion decay
    9. boss exclusivity check
Bounds are purged after collisions, so a bullet that left the field this tick
can still score its hit.
"""

from __future__ import annotations
import random

from shmup import boss as boss_fsm, enums as enum, progression, spawner
from shmup.collision import resolve_collisions
from shmup.patterns import generate_enemy_bullets
from shmup.types import GameplayData, GameState, Star
from shmup.utils import scaled, warn


def make_stars(rng: random.Random, count: int = enum.STAR_COUNT) -> list[Star]:
    return [
        Star(
            x=rng.random() * enum.GAME_WIDTH,
            y=rng.random() * enum.GAME_HEIGHT,
            size=rng.random() * 1.2 + 0.2,
            speed=rng.random() * 1.5 + 0.5,
            brightness=rng.random() * 0.5 + 0.5,
        )
        for _ in range(count)
    ]


def new_game_state(rng: random.Random) -> GameState:
    return GameState(stars=make_stars(rng))


def frame_delta(state: GameState, timestamp: float) -> float:
    """ms since the previous tick; 0 on the first tick."""
    if state.last_render is None:
        state.last_render = timestamp
    delta = max(0.0, timestamp - state.last_render)
    state.last_render = timestamp
    return delta


# ============================================================================
# MOVEMENT
# ============================================================================

def update_stars(state: GameState, step: float, rng: random.Random) -> None:
    for star in state.stars:
        star.y += star.speed * step
        if star.y > enum.GAME_HEIGHT:
            star.y = enum.STAR_RESET_Y
            star.x = rng.random() * enum.GAME_WIDTH


def update_enemies(state: GameState, timestamp: float, step: float, rng: random.Random) -> None:
    for enemy in state.enemies:
        if enemy.y < enum.ENEMY_SHOOT_LIMIT_Y:
            if timestamp - enemy.last_shot > enum.ENEMY_SHOT_INTERVALS[enemy.type]:
                state.enemy_bullets.extend(generate_enemy_bullets(enemy, state, rng))
                enemy.last_shot = timestamp
        enemy.y += enemy.speed * step


def move_entities(state: GameState, timestamp: float, step: float, rng: random.Random) -> None:
    for pb in state.player_bullets:
        pb.x += pb.vx * step
        pb.y += pb.vy * step
    for eb in state.enemy_bullets:
        eb.x += eb.vx * step
        eb.y += eb.vy * step
    for p in state.power_ups:
        p.y += p.speed * step
    update_enemies(state, timestamp, step, rng)


# ============================================================================
# CLEANUP
# ============================================================================

def _in_field_x(x: float) -> bool:
    return -enum.BULLET_MARGIN < x < enum.GAME_WIDTH + enum.BULLET_MARGIN

def purge_out_of_bounds(state: GameState) -> None:
    margin = enum.BULLET_MARGIN
    state.player_bullets = [b for b in state.player_bullets if b.y > -margin and _in_field_x(b.x)]
    state.enemy_bullets = [
        b for b in state.enemy_bullets
        if -margin < b.y < enum.GAME_HEIGHT + margin and _in_field_x(b.x)
    ]
    state.power_ups = [p for p in state.power_ups if -margin < p.y < enum.GAME_HEIGHT + margin]
    state.enemies = [e for e in state.enemies if e.y < enum.ENEMY_BOTTOM_Y]


def decay_explosions(state: GameState, timestamp: float) -> None:
    state.explosions = [x for x in state.explosions if timestamp - x.start_time < x.duration]


def enforce_boss_exclusivity(state: GameState) -> None:
    """Ordinary enemies never coexist with a boss. Self-heals if they do."""
    if state.boss is not None and state.enemies:
        warn(f"Boss {state.boss.id} present alongside {len(state.enemies)} enemies; clearing enemies")
        state.enemies.clear()


# ============================================================================
# TICK
# ============================================================================

def tick(state: GameState, timestamp: float,
    telemetry: GameplayData, rng: random.Random) -> GameState:
    """Advance `state` to `timestamp` (ms). Returns the same, mutated, state."""
    if state.game_over:
        return state

    delta = frame_delta(state, timestamp)
    step = scaled(delta, enum.FRAME_MS)

    if progression.boss_due(state):
        boss_fsm.enter_boss_phase(state)

    update_stars(state, step, rng)
    progression.update_firing(state, telemetry, timestamp)

    if state.is_boss_phase and state.boss is not None:
        boss_fsm.update_boss(state, timestamp, delta, rng)
    else:
        spawner.spawn_tick(state, timestamp, rng)

    move_entities(state, timestamp, step, rng)
    resolve_collisions(state, telemetry, timestamp, rng)

    purge_out_of_bounds(state)
    decay_explosions(state, timestamp)
    enforce_boss_exclusivity(state)
    return state
