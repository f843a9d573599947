"""
Shmup - Type Definitions

Plain entity records, the GameState aggregate, and the collaborator protocols.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Protocol, TypedDict

from shmup import enums as enum

# ==========================================
# ENTITIES
# ==========================================

@dataclass(slots=True)
class PlayerBullet:
    x: float
    y: float
    vx: float
    vy: float
    id: int


@dataclass(slots=True)
class EnemyBullet:
    x: float
    y: float
    vx: float
    vy: float
    id: int


@dataclass(slots=True)
class Enemy:
    x: float
    y: float
    id: int
    last_shot: float
    type: enum.EnemyType
    speed: float


@dataclass(slots=True)
class PowerUp:
    x: float
    y: float
    id: int
    speed: float = enum.POWERUP_SPEED
    kind: enum.PowerUpKind = enum.PowerUpKind.MULTI_SHOT


@dataclass(slots=True)
class Explosion:
    """Visual only. Gone once `duration` ms have passed since `start_time`."""
    x: float
    y: float
    id: int
    size: float
    duration: float
    start_time: float


@dataclass(slots=True)
class Boss:
    x: float
    y: float
    id: int
    hp: int = enum.BOSS_MAX_HP
    max_hp: int = enum.BOSS_MAX_HP
    phase: int = 0
    last_shot: float = 0
    shot_count: int = 0
    set_count: int = 0
    state: enum.BossState = enum.BossState.APPEARING
    progress: float = 0
    """Appear progress while APPEARING, death progress while DYING (0-1)"""


@dataclass(slots=True)
class Star:
    x: float
    y: float
    size: float
    speed: float
    brightness: float


# ==========================================
# AGGREGATES
# ==========================================

@dataclass(slots=True)
class GameState:
    """Everything one play session simulates. Owned by exactly one session."""
    player_x: float = enum.PLAYER_START_X
    player_bullets: list[PlayerBullet] = field(default_factory=list)
    enemy_bullets: list[EnemyBullet] = field(default_factory=list)
    enemies: list[Enemy] = field(default_factory=list)
    power_ups: list[PowerUp] = field(default_factory=list)
    explosions: list[Explosion] = field(default_factory=list)
    stars: list[Star] = field(default_factory=list)

    score: int = 0
    shot_level: int = enum.MIN_POWER_LEVEL
    boss_clear_count: int = 0
    boss: Boss | None = None
    is_boss_phase: bool = False
    last_boss_score: int = 0

    last_render: float | None = None
    last_enemy_spawn: float = 0
    last_shot: float = 0
    is_fire_pressed: bool = False
    click_shot_pending: bool = False
    game_over: bool = False

    next_id: int = 1

    def new_id(self) -> int:
        """Unique, monotonically increasing entity id for this session."""
        result = self.next_id
        self.next_id += 1
        return result


@dataclass(slots=True)
class GameplayData:
    shots_fired: int = 0
    enemies_destroyed: int = 0
    powerups_collected: int = 0
    start_time_ms: float = 0


@dataclass(frozen=True, slots=True)
class PlayerProfile:
    player_id: int = enum.ANONYMOUS_PLAYER
    user_name: str = ""
    display_name: str = ""
    avatar_url: str = ""


@dataclass(frozen=True, slots=True)
class PlayLimit:
    daily_limit: int
    current_count: int
    reset_hour: int = 0

    def __post_init__(self):
        if not (0 <= self.reset_hour <= 23):
            raise ValueError(f"PlayLimit: reset_hour must be in range 0-23. Got: {self.reset_hour}")


@dataclass(frozen=True, slots=True)
class ScoreSubmission:
    """Finalized result of one session, handed to the submitter once."""
    score: int
    player_id: int
    user_name: str
    display_name: str
    avatar_url: str
    shots_fired: int
    enemies_destroyed: int
    powerups_collected: int
    play_duration_ms: int
    timestamp_ms: int


@dataclass(frozen=True, slots=True)
class SignedSubmission:
    data: ScoreSubmission
    signature: str


@dataclass(frozen=True, slots=True)
class RankingEntry:
    rank: int
    score: int
    player_id: int
    user_name: str
    display_name: str
    avatar_url: str
    enemies_destroyed: int
    play_duration_ms: int
    created_at_ms: int


# ==========================================
# WIRE FORMAT
# ==========================================

GameplayWire = TypedDict("GameplayWire", {
    "shotsFired": int,
    "enemiesDestroyed": int,
    "powerupsCollected": int,
    "playDuration": int,
    "timestamp": int,
})

ScoreWire = TypedDict("ScoreWire", {
    "score": int,
    "fid": int,
    "userName": str,
    "displayName": str,
    "pfpUrl": str,
    "gameplayData": GameplayWire,
})


# ==========================================
# COLLABORATOR PROTOCOLS
# ==========================================

class PlayLimitSource(Protocol):
    """Daily play-count lookup. None means no limit is known."""
    def fetch(self, player_id: int) -> PlayLimit | None: ...


class ScoreSubmitter(Protocol):
    """Receives each finished session's signed result. Fire-and-forget."""
    def submit(self, submission: SignedSubmission) -> None: ...


class RankingSource(Protocol):
    def top(self, limit: int = enum.RANKING_SIZE) -> list[RankingEntry]: ...


FrameCallback = Callable[[float], None]
"""Receives the refresh timestamp in ms"""


class FrameSource(Protocol):
    """Display-refresh hook in the manner of requestAnimationFrame."""
    def request(self, callback: FrameCallback) -> int: ...
    def cancel(self, handle: int) -> None: ...
