# pyright: reportPrivateUsage=false
"""
Tests for everything around the simulation: session lifecycle, the frame
scheduler, input translation, score signing and the ranking board.
"""

import hashlib
import hmac
import math
import random
import warnings

import orjson
import pytest
from pytest import ExceptionInfo

from shmup import engine, enums as enum
from shmup.input import InputHandler, KEY_STEP
from shmup.ranking import LocalRankingBoard
from shmup.scheduler import FrameScheduler, ManualFrameSource
from shmup.session import GameSession, PlayLimitExceeded
from shmup.submission import build_submission, canonical_bytes, request_body, sign
from shmup.types import (
    EnemyBullet, GameplayData, GameState, PlayerProfile, PlayLimit,
    ScoreSubmission, SignedSubmission
)

LC = enum.Lifecycle

PROFILE = PlayerProfile(player_id=7, user_name="alice", display_name="Alice", avatar_url="https://example.com/a.png")
KEY = "test-key"


class RecordingSubmitter:
    def __init__(self, fail: bool = False):
        self.received: list[SignedSubmission] = []
        self.fail = fail

    def submit(self, submission: SignedSubmission) -> None:
        if self.fail:
            raise ConnectionError("endpoint unreachable")
        self.received.append(submission)


class FixedLimits:
    def __init__(self, limit: PlayLimit | None = None, fail: bool = False):
        self.limit = limit
        self.fail = fail
        self.calls = 0

    def fetch(self, player_id: int) -> PlayLimit | None:
        self.calls += 1
        if self.fail:
            raise TimeoutError("play-limit service timed out")
        return self.limit


class FakeClock:
    def __init__(self, now: float = 1_000):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

@pytest.fixture
def submitter() -> RecordingSubmitter:
    return RecordingSubmitter()

@pytest.fixture
def session(submitter: RecordingSubmitter, clock: FakeClock) -> GameSession:
    return GameSession(PROFILE, submitter=submitter, rng=random.Random(3), clock=clock, hmac_key=KEY)


def kill_player(session: GameSession, timestamp: float = 0) -> None:
    """Put a bullet on the player and run one frame."""
    state = session.state
    state.enemy_bullets.append(EnemyBullet(state.player_x, enum.PLAYER_Y, 0, 0, state.new_id()))
    session.advance(timestamp)


def assert_error(exc_info: ExceptionInfo[BaseException], *patterns: str) -> None:
    """Assert exception message contains all patterns (case-insensitive)."""
    msg = str(exc_info.value).lower()
    for pattern in patterns:
        p = pattern.lower()
        assert p in msg, f"Expected '{pattern}' in: {str(exc_info.value)}"

def assert_warning(warning_list: list[warnings.WarningMessage], *patterns: str) -> None:
    """Assert warning list contains all patterns (case-insensitive)."""
    combined_msgs = " ".join(str(w.message).lower() for w in warning_list)
    for pattern in patterns:
        p = pattern.lower()
        assert p in combined_msgs, f"Expected '{pattern}' in warnings."

# ============================================================================
# LIFECYCLE
# ============================================================================

class TestLifecycle:
    def test_starts_idle(self, session: GameSession):
        assert session.lifecycle is LC.START
        session.advance(1000)
        assert session.state.last_render is None

    def test_start_resets_state(self, session: GameSession, clock: FakeClock):
        session.state.score = 999
        session.start()
        assert session.lifecycle is LC.PLAYING
        assert session.state.score == 0
        assert session.state.player_x == enum.PLAYER_START_X
        assert len(session.state.stars) == enum.STAR_COUNT
        assert session.telemetry.start_time_ms == clock.now

    def test_double_start_rejected(self, session: GameSession):
        session.start()
        with pytest.raises(RuntimeError) as exc:
            session.start()
        assert_error(exc, "already in progress")

    def test_game_over_transition(self, session: GameSession):
        session.start()
        kill_player(session)
        assert session.lifecycle is LC.GAMEOVER
        frozen = session.state.last_render
        session.advance(5000)
        assert session.state.last_render == frozen

    def test_restart_after_game_over(self, session: GameSession):
        session.start()
        kill_player(session)
        session.start()
        assert session.lifecycle is LC.PLAYING
        assert session.state.game_over is False
        assert session.score_submitted is False

    def test_listeners_see_transitions(self, session: GameSession):
        seen: list[tuple[LC, LC]] = []
        session.subscribe(lambda old, new: seen.append((old, new)))
        session.start()
        kill_player(session)
        session.show_ranking()
        session.back()
        assert seen == [
            (LC.START, LC.PLAYING),
            (LC.PLAYING, LC.GAMEOVER),
            (LC.GAMEOVER, LC.RANKING),
            (LC.RANKING, LC.START),
        ]

    def test_ranking_not_reachable_mid_game(self, session: GameSession):
        session.start()
        with pytest.raises(RuntimeError) as exc:
            session.show_ranking()
        assert_error(exc, "mid-game")

    def test_back_only_from_ranking(self, session: GameSession):
        with pytest.raises(RuntimeError) as exc:
            session.back()
        assert_error(exc, "ranking", "start")

    def test_snapshot_is_detached(self, session: GameSession):
        session.start()
        session.advance(0)
        snap = session.snapshot()
        snap.score = 123_456
        snap.stars.clear()
        snap.enemy_bullets.append(EnemyBullet(0, 0, 0, 0, 0))
        assert session.state.score == 0
        assert len(session.state.stars) == enum.STAR_COUNT
        assert session.state.enemy_bullets == []


class TestInputContract:
    def test_ignored_unless_playing(self, session: GameSession):
        session.set_player_target(50)
        session.set_firing_intent(True)
        session.request_shot()
        assert session.state.player_x == enum.PLAYER_START_X
        assert session.state.is_fire_pressed is False
        assert session.state.click_shot_pending is False

    @pytest.mark.parametrize("target,expected", [
        (-100, enum.PLAYER_MIN_X),
        (0, enum.PLAYER_MIN_X),
        (200, 200),
        (1000, enum.PLAYER_MAX_X),
    ])
    def test_target_clamped(self, session: GameSession, target: float, expected: float):
        session.start()
        session.set_player_target(target)
        assert session.state.player_x == expected

    @pytest.mark.parametrize("target", [math.nan, math.inf, -math.inf])
    def test_non_finite_target_ignored(self, session: GameSession, target: float):
        session.start()
        with pytest.warns(UserWarning) as record:
            session.set_player_target(target)
        assert_warning(list(record), "non-finite")
        assert session.state.player_x == enum.PLAYER_START_X

    def test_click_fires_one_volley(self, session: GameSession):
        session.start()
        session.request_shot()
        session.advance(0)
        assert session.telemetry.shots_fired == 1
        assert len(session.state.player_bullets) == 1

# ============================================================================
# SCORE SUBMISSION
# ============================================================================

class TestSubmissionOnGameOver:
    def test_submitted_exactly_once(self, session: GameSession, submitter: RecordingSubmitter, clock: FakeClock):
        session.start()
        session.state.score = 1200
        session.telemetry.enemies_destroyed = 9
        clock.now = 6_000
        kill_player(session)
        session.advance(100)
        session.advance(200)

        (signed,) = submitter.received
        assert signed.data.score == 1200
        assert signed.data.player_id == 7
        assert signed.data.enemies_destroyed == 9
        assert signed.data.play_duration_ms == 5_000
        assert signed.data.timestamp_ms == 6_000
        assert session.score_submitted

    def test_each_game_submits(self, session: GameSession, submitter: RecordingSubmitter):
        for _ in range(2):
            session.start()
            kill_player(session)
        assert len(submitter.received) == 2

    def test_anonymous_player_skips(self, submitter: RecordingSubmitter):
        session = GameSession(submitter=submitter, rng=random.Random(1), hmac_key=KEY)
        session.start()
        kill_player(session)
        assert submitter.received == []
        assert session.lifecycle is LC.GAMEOVER

    def test_submitter_failure_is_warned(self, clock: FakeClock):
        session = GameSession(PROFILE, submitter=RecordingSubmitter(fail=True),
            rng=random.Random(1), clock=clock, hmac_key=KEY)
        session.start()
        with pytest.warns(UserWarning) as record:
            kill_player(session)
        assert_warning(list(record), "error submitting score", "unreachable")
        assert session.lifecycle is LC.GAMEOVER

    def test_missing_key_is_warned(self, submitter: RecordingSubmitter, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv(enum.HMAC_KEY_ENV, raising=False)
        session = GameSession(PROFILE, submitter=submitter, rng=random.Random(1))
        session.start()
        with pytest.warns(UserWarning) as record:
            kill_player(session)
        assert_warning(list(record), enum.HMAC_KEY_ENV)
        assert submitter.received == []

    def test_key_from_environment(self, submitter: RecordingSubmitter, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv(enum.HMAC_KEY_ENV, "env-key")
        session = GameSession(PROFILE, submitter=submitter, rng=random.Random(1))
        session.start()
        kill_player(session)
        (signed,) = submitter.received
        expected = hmac.new(b"env-key", canonical_bytes(signed.data), hashlib.sha256).hexdigest()
        assert signed.signature == expected


class TestSigning:
    SUBMISSION = ScoreSubmission(
        score=100, player_id=7, user_name="a", display_name="A", avatar_url="u",
        shots_fired=1, enemies_destroyed=2, powerups_collected=3,
        play_duration_ms=4, timestamp_ms=5,
    )

    def test_canonical_key_order(self):
        assert canonical_bytes(self.SUBMISSION) == (
            b'{"score":100,"fid":7,"userName":"a","displayName":"A","pfpUrl":"u",'
            b'"gameplayData":{"shotsFired":1,"enemiesDestroyed":2,"powerupsCollected":3,'
            b'"playDuration":4,"timestamp":5}}'
        )

    def test_signature_is_hmac_sha256_hex(self):
        signed = sign(self.SUBMISSION, "k")
        assert signed.signature == hmac.new(b"k", canonical_bytes(self.SUBMISSION), hashlib.sha256).hexdigest()
        assert len(signed.signature) == 64

    def test_different_key_different_tag(self):
        assert sign(self.SUBMISSION, "k1").signature != sign(self.SUBMISSION, "k2").signature

    def test_request_body(self):
        body = orjson.loads(request_body(sign(self.SUBMISSION, "k")))
        assert list(body) == ["data", "signature"]
        assert body["data"]["gameplayData"]["timestamp"] == 5

    def test_build_submission(self):
        state = GameState(score=3300)
        telemetry = GameplayData(shots_fired=40, enemies_destroyed=12, powerups_collected=2, start_time_ms=1_000.0)
        sub = build_submission(state, telemetry, PROFILE, 31_000.7)
        assert sub.play_duration_ms == 30_000
        assert sub.timestamp_ms == 31_000
        assert (sub.user_name, sub.display_name, sub.avatar_url) == ("alice", "Alice", "https://example.com/a.png")
        assert (sub.shots_fired, sub.enemies_destroyed, sub.powerups_collected) == (40, 12, 2)

# ============================================================================
# PLAY LIMIT
# ============================================================================

class TestPlayLimit:
    def test_exhausted_limit_blocks_start(self, clock: FakeClock):
        session = GameSession(PROFILE, play_limits=FixedLimits(PlayLimit(3, 3, 9)), clock=clock)
        with pytest.raises(PlayLimitExceeded) as exc:
            session.start()
        assert_error(exc, "3/3", "9:00")
        assert session.lifecycle is LC.START

    def test_counts_local_plays(self, clock: FakeClock):
        session = GameSession(PROFILE, play_limits=FixedLimits(PlayLimit(2, 1)), clock=clock, hmac_key=KEY)
        session.start()
        assert session.plays_remaining == 0
        kill_player(session)
        with pytest.raises(PlayLimitExceeded):
            session.start()

    def test_permission_grants_one_play(self, clock: FakeClock):
        session = GameSession(PROFILE, play_limits=FixedLimits(PlayLimit(1, 1)), clock=clock, hmac_key=KEY)
        session.grant_play_permission()
        session.start()
        assert session.play_permission is False
        kill_player(session)
        with pytest.raises(PlayLimitExceeded):
            session.start()

    def test_no_limit_means_unrestricted(self, clock: FakeClock):
        session = GameSession(PROFILE, play_limits=FixedLimits(None), clock=clock, hmac_key=KEY)
        for _ in range(5):
            session.start()
            kill_player(session)
        assert session.plays_remaining is None

    def test_failing_source_means_unrestricted(self, clock: FakeClock):
        limits = FixedLimits(fail=True)
        session = GameSession(PROFILE, play_limits=limits, clock=clock)
        with pytest.warns(UserWarning) as record:
            session.start()
        assert_warning(list(record), "play limit", "timed out")
        assert session.lifecycle is LC.PLAYING

    def test_limit_fetched_once_until_refreshed(self, clock: FakeClock):
        limits = FixedLimits(PlayLimit(10, 0))
        session = GameSession(PROFILE, play_limits=limits, clock=clock, hmac_key=KEY)
        session.start()
        kill_player(session)
        session.start()
        assert limits.calls == 1
        kill_player(session)
        limits.limit = PlayLimit(10, 10)
        session.refresh_play_limit()
        assert limits.calls == 2
        assert session.can_start() is False

    @pytest.mark.parametrize("hour", [-1, 24])
    def test_reset_hour_validated(self, hour: int):
        with pytest.raises(ValueError) as exc:
            PlayLimit(3, 0, hour)
        assert_error(exc, "0-23", str(hour))

# ============================================================================
# FRAME SCHEDULER
# ============================================================================

class TestManualFrameSource:
    def test_fires_pending_only(self):
        frames = ManualFrameSource()
        seen: list[float] = []

        def again(ts: float):
            seen.append(ts)
            frames.request(again)

        frames.request(again)
        assert frames.fire(16) == 1
        assert frames.pending == 1
        frames.fire(32)
        assert seen == [16, 32]

    def test_cancel(self):
        frames = ManualFrameSource()
        seen: list[float] = []
        handle = frames.request(seen.append)
        frames.cancel(handle)
        frames.cancel(handle)
        assert frames.fire(16) == 0
        assert seen == []


class TestFrameScheduler:
    def test_idle_until_playing(self, session: GameSession):
        frames = ManualFrameSource()
        scheduler = FrameScheduler(session, frames)
        assert not scheduler.armed
        assert frames.pending == 0
        session.start()
        assert scheduler.armed
        assert frames.pending == 1

    def test_one_tick_per_frame(self, session: GameSession):
        frames = ManualFrameSource()
        rendered: list[GameState] = []
        FrameScheduler(session, frames, render=rendered.append)
        session.start()
        for ts in (0, 16, 32):
            frames.fire(ts)
        assert session.state.last_render == 32
        assert len(rendered) == 3
        assert frames.pending == 1
        assert rendered[-1] is not session.state

    def test_stops_on_game_over(self, session: GameSession):
        frames = ManualFrameSource()
        rendered: list[GameState] = []
        scheduler = FrameScheduler(session, frames, render=rendered.append)
        session.start()
        frames.fire(0)
        session.state.enemy_bullets.append(
            EnemyBullet(session.state.player_x, enum.PLAYER_Y, 0, 0, session.state.new_id()))
        frames.fire(16)
        assert session.lifecycle is LC.GAMEOVER
        assert rendered[-1].game_over
        assert not scheduler.armed
        assert frames.pending == 0

    def test_restart_arms_single_frame(self, session: GameSession):
        frames = ManualFrameSource()
        FrameScheduler(session, frames)
        for _ in range(3):
            session.start()
            kill_player(session)
        session.start()
        assert frames.pending == 1

    def test_stale_frame_does_nothing(self, session: GameSession):
        frames = ManualFrameSource()
        scheduler = FrameScheduler(session, frames)
        session.start()
        scheduler.stop()
        assert frames.fire(16) == 0
        assert session.state.last_render is None

    def test_failing_tick_skips_frame(self, session: GameSession, monkeypatch: pytest.MonkeyPatch):
        frames = ManualFrameSource()
        scheduler = FrameScheduler(session, frames)
        session.start()

        def boom(*args, **kwargs):
            raise ZeroDivisionError("bad frame")

        monkeypatch.setattr(engine, "tick", boom)
        with pytest.warns(UserWarning) as record:
            frames.fire(16)
        assert_warning(list(record), "skipped", "bad frame")
        assert scheduler.frames_skipped == 1
        assert frames.pending == 1
        assert session.lifecycle is LC.PLAYING

# ============================================================================
# INPUT HANDLER
# ============================================================================

@pytest.fixture
def playing(session: GameSession) -> GameSession:
    session.start()
    return session


class TestInputHandler:
    def test_pointer_follows(self, playing: GameSession):
        controls = InputHandler(playing)
        controls.pointer_move(250)
        assert playing.state.player_x == 250
        controls.pointer_move(500)
        assert playing.state.player_x == enum.PLAYER_MAX_X

    def test_pointer_hold_fires(self, playing: GameSession):
        controls = InputHandler(playing)
        controls.pointer_down()
        assert playing.state.is_fire_pressed
        controls.pointer_up()
        assert not playing.state.is_fire_pressed

    def test_click_requests_shot(self, playing: GameSession):
        InputHandler(playing).click()
        assert playing.state.click_shot_pending

    def test_touch_drag_is_relative(self, playing: GameSession):
        controls = InputHandler(playing)
        playing.state.player_x = 100
        controls.touch_start(300)
        assert playing.state.is_fire_pressed
        controls.touch_move(340)
        assert playing.state.player_x == 140
        controls.touch_move(200)
        assert playing.state.player_x == enum.PLAYER_MIN_X
        controls.touch_end()
        assert not playing.state.is_fire_pressed
        controls.touch_move(360)
        assert playing.state.player_x == enum.PLAYER_MIN_X

    def test_touch_ignored_when_not_playing(self, session: GameSession):
        controls = InputHandler(session)
        controls.touch_start(100)
        controls.touch_move(200)
        assert session.state.player_x == enum.PLAYER_START_X

    def test_keyboard(self, playing: GameSession):
        controls = InputHandler(playing)
        controls.nudge(1)
        assert playing.state.player_x == enum.PLAYER_START_X + KEY_STEP
        controls.nudge(-1)
        controls.nudge(0)
        assert playing.state.player_x == enum.PLAYER_START_X
        controls.fire_key(True)
        assert playing.state.is_fire_pressed

    def test_fire_held_while_any_source_holds(self, playing: GameSession):
        controls = InputHandler(playing)
        controls.fire_key(True)
        controls.pointer_down()
        controls.pointer_up()
        assert playing.state.is_fire_pressed
        controls.fire_key(False)
        assert not playing.state.is_fire_pressed

# ============================================================================
# RANKING
# ============================================================================

def signed(score: int, player_id: int = 1, created: int = 0) -> SignedSubmission:
    data = ScoreSubmission(score, player_id, f"user{player_id}", f"User {player_id}", "",
        0, 0, 0, 1000, created)
    return sign(data, KEY)


class TestLocalRankingBoard:
    def test_sorted_descending(self):
        board = LocalRankingBoard()
        for score in (300, 1000, 50):
            board.submit(signed(score))
        assert [e.score for e in board.top()] == [1000, 300, 50]
        assert [e.rank for e in board.top()] == [1, 2, 3]

    def test_ties_keep_submission_order(self):
        board = LocalRankingBoard()
        board.submit(signed(500, player_id=1))
        board.submit(signed(500, player_id=2))
        assert [e.player_id for e in board.top()] == [1, 2]

    def test_top_limit(self):
        board = LocalRankingBoard()
        for score in range(15):
            board.submit(signed(score * 100))
        top = board.top()
        assert len(top) == enum.RANKING_SIZE
        assert top[0].score == 1400
        assert len(board) == 15

    def test_capacity(self):
        board = LocalRankingBoard(capacity=2)
        for score in (1, 3, 2):
            board.submit(signed(score))
        assert [e.score for e in board.top()] == [3, 2]

    def test_invalid_capacity(self):
        with pytest.raises(ValueError) as exc:
            LocalRankingBoard(capacity=0)
        assert_error(exc, "positive", "0")

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "rankings.json"
        board = LocalRankingBoard()
        board.submit(signed(700, player_id=3, created=99))
        board.submit(signed(900, player_id=4))
        board.save(path)

        loaded = LocalRankingBoard.load(path)
        assert loaded.top() == board.top()
        assert loaded.top()[1].created_at_ms == 99

    def test_missing_file_is_empty(self, tmp_path):
        assert len(LocalRankingBoard.load(tmp_path / "nope.json")) == 0

    def test_corrupt_file_warns(self, tmp_path):
        path = tmp_path / "rankings.json"
        path.write_bytes(b"{not json")
        with pytest.warns(UserWarning) as record:
            board = LocalRankingBoard.load(path)
        assert_warning(list(record), "unreadable")
        assert len(board) == 0

    @pytest.mark.parametrize("payload", [
        b'{"scores": [1, 2]}',
        b'{"scores": null}',
        b'{"scores": [{"score": 10}]}',
        b'{"scores": "top"}',
        b'[1, 2, 3]',
    ])
    def test_malformed_scores_warn(self, tmp_path, payload: bytes):
        path = tmp_path / "rankings.json"
        path.write_bytes(payload)
        with pytest.warns(UserWarning) as record:
            board = LocalRankingBoard.load(path)
        assert_warning(list(record), "unreadable")
        assert len(board) == 0
        assert board.top() == []

    def test_session_ranking_flow(self, clock: FakeClock):
        board = LocalRankingBoard()
        session = GameSession(PROFILE, submitter=board, rankings=board,
            rng=random.Random(5), clock=clock, hmac_key=KEY)
        session.start()
        session.state.score = 4200
        kill_player(session)
        (entry,) = session.show_ranking()
        assert entry.score == 4200
        assert entry.display_name == "Alice"
        assert session.lifecycle is LC.RANKING
