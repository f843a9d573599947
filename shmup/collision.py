"""
Shmup - Collision Module

Per-tick proximity tests. Every test is a Euclidean distance against a fixed
radius (strictly less than), never a rectangle overlap.

    player bullet  x enemy      shooter 30, others 20
    player bullet  x boss       40 (FIGHTING only)
    power-up       x player     30
    enemy bullet   x player     10 (lethal)

Each pair sweep builds the full bullets-by-targets distance matrix with numpy,
then resolves hits in list order so one bullet is spent at most once and one
target is destroyed at most once.
"""

from __future__ import annotations
import random
from typing import NamedTuple, Sequence

import numpy as np

from shmup import enums as enum, progression
from shmup.boss import damage_boss
from shmup.types import Enemy, GameplayData, GameState, PowerUp


class CollisionReport(NamedTuple):
    enemies_destroyed: int
    boss_hits: int
    powerups_collected: int
    player_hit: bool


def hit_radius(enemy_type: enum.EnemyType) -> float:
    if enemy_type is enum.EnemyType.SHOOTER:
        return enum.HITBOX_SHOOTER
    return enum.HITBOX_DEFAULT

def kill_score(enemy_type: enum.EnemyType) -> int:
    if enemy_type is enum.EnemyType.SHOOTER:
        return enum.SCORE_SHOOTER
    return enum.SCORE_DEFAULT


def _coords(entities: Sequence) -> tuple[np.ndarray, np.ndarray]:
    return (np.fromiter((e.x for e in entities), dtype=float, count=len(entities)),
            np.fromiter((e.y for e in entities), dtype=float, count=len(entities)))

def distance_matrix(sources: Sequence, targets: Sequence) -> np.ndarray:
    """Shape (len(sources), len(targets))"""
    sx, sy = _coords(sources)
    tx, ty = _coords(targets)
    return np.hypot(sx[:, None] - tx[None, :], sy[:, None] - ty[None, :])

def distances_to(entities: Sequence, x: float, y: float) -> np.ndarray:
    ex, ey = _coords(entities)
    return np.hypot(ex - x, ey - y)


# ============================================================================
# SWEEPS
# ============================================================================

def _destroy_enemy(state: GameState, telemetry: GameplayData,
    enemy: Enemy, timestamp: float, rng: random.Random) -> None:
    progression.award(state, kill_score(enemy.type))

    size, duration = enum.EXPLOSION_SHOOTER if enemy.type is enum.EnemyType.SHOOTER else enum.EXPLOSION_ENEMY
    progression.add_explosion(state, enemy.x, enemy.y, size, duration, timestamp)

    if rng.random() < enum.POWERUP_DROP_CHANCE:
        # enemies above the field drop at the top edge
        drop_y = max(enemy.y, -enum.BULLET_MARGIN + 1)
        state.power_ups.append(PowerUp(enemy.x, drop_y, state.new_id()))

    telemetry.enemies_destroyed += 1


def player_bullets_vs_enemies(state: GameState, telemetry: GameplayData,
    timestamp: float, rng: random.Random) -> int:
    bullets = state.player_bullets
    enemies = state.enemies
    if not bullets or not enemies:
        return 0

    radii = np.fromiter((hit_radius(e.type) for e in enemies), dtype=float, count=len(enemies))
    hits = distance_matrix(bullets, enemies) < radii[None, :]

    enemy_alive = np.ones(len(enemies), dtype=bool)
    bullet_spent = np.zeros(len(bullets), dtype=bool)
    for b in np.flatnonzero(hits.any(axis=1)):
        candidates = np.flatnonzero(hits[b] & enemy_alive)
        if len(candidates) == 0: continue
        e = int(candidates[0])
        enemy_alive[e] = False
        bullet_spent[b] = True
        _destroy_enemy(state, telemetry, enemies[e], timestamp, rng)

    state.player_bullets = [bl for bl, spent in zip(bullets, bullet_spent) if not spent]
    state.enemies = [en for en, alive in zip(enemies, enemy_alive) if alive]
    return int(np.count_nonzero(~enemy_alive))


def player_bullets_vs_boss(state: GameState, timestamp: float) -> int:
    boss = state.boss
    if boss is None or boss.state is not enum.BossState.FIGHTING or not state.player_bullets:
        return 0

    close = distances_to(state.player_bullets, boss.x, boss.y) < enum.HITBOX_BOSS
    spent = np.zeros(len(state.player_bullets), dtype=bool)
    for i in np.flatnonzero(close):
        if boss.state is not enum.BossState.FIGHTING: break
        bullet = state.player_bullets[i]
        spent[i] = True
        damage_boss(boss, state, bullet.x, bullet.y, timestamp)

    state.player_bullets = [bl for bl, s in zip(state.player_bullets, spent) if not s]
    return int(np.count_nonzero(spent))


def powerups_vs_player(state: GameState, telemetry: GameplayData) -> int:
    if not state.power_ups:
        return 0

    picked = distances_to(state.power_ups, state.player_x, enum.PLAYER_Y) < enum.HITBOX_POWERUP
    for _ in range(int(np.count_nonzero(picked))):
        progression.power_up(state, telemetry)

    state.power_ups = [p for p, taken in zip(state.power_ups, picked) if not taken]
    return int(np.count_nonzero(picked))


def enemy_bullets_vs_player(state: GameState, timestamp: float) -> bool:
    if not state.enemy_bullets:
        return False
    if not np.any(distances_to(state.enemy_bullets, state.player_x, enum.PLAYER_Y) < enum.HITBOX_PLAYER):
        return False
    progression.player_killed(state, timestamp)
    return True


def resolve_collisions(state: GameState, telemetry: GameplayData,
    timestamp: float, rng: random.Random) -> CollisionReport:
    """Run every sweep in a fixed order. Consumed entities are gone on return."""
    return CollisionReport(
        enemies_destroyed=player_bullets_vs_enemies(state, telemetry, timestamp, rng),
        boss_hits=player_bullets_vs_boss(state, timestamp),
        powerups_collected=powerups_vs_player(state, telemetry),
        player_hit=enemy_bullets_vs_player(state, timestamp),
    )
