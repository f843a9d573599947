"""
Shmup - Session Module

One player's sequence of plays: lifecycle, input contract, play-limit gate and
the single score submission per finished game.

Lifecycle:
    START --start()--> PLAYING --player hit--> GAMEOVER --start()--> PLAYING
    START / GAMEOVER --show_ranking()--> RANKING --back()--> START

Collaborators (play limits, score submitter, ranking source) are optional.
Their failures are warned about and never end a game.
"""

from __future__ import annotations
import copy
import math
import random
import time
from typing import Callable

from shmup import engine, enums as enum
from shmup.submission import build_submission, sign
from shmup.types import (
    GameplayData, GameState, PlayerProfile, PlayLimit, PlayLimitSource,
    RankingEntry, RankingSource, ScoreSubmitter
)
from shmup.utils import clamp, warn

LC = enum.Lifecycle # shorthand

LifecycleListener = Callable[[enum.Lifecycle, enum.Lifecycle], None]
"""Called with (old, new) on every lifecycle change"""


class PlayLimitExceeded(RuntimeError):
    pass


def wall_clock_ms() -> float:
    return time.time() * 1000


class GameSession:
    def __init__(self, profile: PlayerProfile | None = None, *,
        submitter: ScoreSubmitter | None = None,
        play_limits: PlayLimitSource | None = None,
        rankings: RankingSource | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = wall_clock_ms,
        hmac_key: str | None = None):
        self.profile = profile or PlayerProfile()
        self.submitter = submitter
        self.play_limits = play_limits
        self.rankings = rankings
        self.rng = rng or random.Random()
        self.clock = clock
        self.hmac_key = hmac_key

        self.lifecycle: enum.Lifecycle = LC.START
        self.state: GameState = engine.new_game_state(self.rng)
        self.telemetry = GameplayData()

        self.play_limit: PlayLimit | None = None
        self.play_count = 0
        self.play_permission = False
        self._limit_loaded = False
        self._score_submitted = False
        self._listeners: list[LifecycleListener] = []

    # ==========================================
    # LIFECYCLE
    # ==========================================

    def subscribe(self, listener: LifecycleListener) -> None:
        self._listeners.append(listener)

    def _transition(self, new: enum.Lifecycle) -> None:
        old = self.lifecycle
        if old is new: return
        self.lifecycle = new
        if new is LC.GAMEOVER:
            self._submit_score()
        for listener in self._listeners:
            listener(old, new)

    @property
    def is_playing(self) -> bool:
        return self.lifecycle is LC.PLAYING

    def start(self) -> GameState:
        """Begin a fresh game. Raises PlayLimitExceeded when out of plays."""
        if self.is_playing:
            raise RuntimeError("GameSession.start: a game is already in progress")
        if not self._limit_loaded:
            self.refresh_play_limit()
        if not self.can_start():
            assert self.play_limit is not None
            raise PlayLimitExceeded(
                f"Daily play limit reached ({self.play_count}/{self.play_limit.daily_limit}); "
                f"resets at {self.play_limit.reset_hour}:00")

        self.state = engine.new_game_state(self.rng)
        self.telemetry = GameplayData(start_time_ms=self.clock())
        self.play_count += 1
        self.play_permission = False
        self._score_submitted = False
        self._transition(LC.PLAYING)
        return self.state

    def advance(self, timestamp: float) -> GameState:
        """Run one tick at `timestamp` (ms). Only PLAYING moves the simulation."""
        if not self.is_playing:
            return self.state
        engine.tick(self.state, timestamp, self.telemetry, self.rng)
        if self.state.game_over:
            self._transition(LC.GAMEOVER)
        return self.state

    def snapshot(self) -> GameState:
        """Detached copy for rendering. Changes to it never reach the game."""
        return copy.deepcopy(self.state)

    def show_ranking(self) -> list[RankingEntry]:
        if self.is_playing:
            raise RuntimeError("GameSession.show_ranking: cannot open rankings mid-game")
        self._transition(LC.RANKING)
        return self.ranking_entries()

    def back(self) -> None:
        if self.lifecycle is not LC.RANKING:
            raise RuntimeError(f"GameSession.back: only valid from ranking, not {self.lifecycle.value}")
        self._transition(LC.START)

    def ranking_entries(self) -> list[RankingEntry]:
        if self.rankings is None:
            return []
        try:
            return self.rankings.top(enum.RANKING_SIZE)
        except Exception as exc:
            warn(f"Failed to fetch rankings: {exc!r}")
            return []

    # ==========================================
    # INPUT CONTRACT
    # ==========================================

    def set_player_target(self, x: float) -> None:
        if not self.is_playing: return
        if not math.isfinite(x):
            warn(f"Ignoring non-finite player target: {x}")
            return
        self.state.player_x = clamp(x, enum.PLAYER_MIN_X, enum.PLAYER_MAX_X)

    def set_firing_intent(self, firing: bool) -> None:
        if not self.is_playing: return
        self.state.is_fire_pressed = firing

    def request_shot(self) -> None:
        """Single volley on the next tick (click-to-fire)."""
        if not self.is_playing: return
        self.state.click_shot_pending = True

    # ==========================================
    # PLAY LIMIT
    # ==========================================

    def refresh_play_limit(self) -> PlayLimit | None:
        """Ask the play-limit source again. Any failure means unrestricted."""
        self._limit_loaded = True
        self.play_limit = None
        if self.play_limits is None:
            return None
        try:
            self.play_limit = self.play_limits.fetch(self.profile.player_id)
        except Exception as exc:
            warn(f"Failed to fetch play limit for player {self.profile.player_id}: {exc!r}")
            return None
        if self.play_limit is not None:
            self.play_count = self.play_limit.current_count
        return self.play_limit

    def grant_play_permission(self) -> None:
        """One extra play, e.g. after a confirmed payment. Used up by start()."""
        self.play_permission = True

    def can_start(self) -> bool:
        if self.play_limit is None or self.play_permission:
            return True
        return self.play_count < self.play_limit.daily_limit

    @property
    def plays_remaining(self) -> int | None:
        if self.play_limit is None:
            return None
        return max(0, self.play_limit.daily_limit - self.play_count)

    # ==========================================
    # SCORE SUBMISSION
    # ==========================================

    @property
    def score_submitted(self) -> bool:
        return self._score_submitted

    def _submit_score(self) -> None:
        if self._score_submitted: return
        self._score_submitted = True

        if self.profile.player_id == enum.ANONYMOUS_PLAYER or self.submitter is None:
            return

        try:
            submission = build_submission(self.state, self.telemetry, self.profile, self.clock())
            self.submitter.submit(sign(submission, self.hmac_key))
        except Exception as exc:
            warn(f"Error submitting score: {exc!r}")
            return
        print(f"Score {submission.score} submitted successfully")
