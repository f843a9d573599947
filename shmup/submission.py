"""
Shmup - Score Submission Module

Builds the finalized result of a session and its authentication tag.

The tag is HMAC-SHA256 (hex) over the canonical serialization: compact JSON
with a fixed key order. Any change to the key order or field names breaks
verification on the receiving side.
"""

from __future__ import annotations
import hashlib
import hmac
import os

import orjson

from shmup import enums as enum
from shmup.types import (
    GameplayData, GameState, PlayerProfile, ScoreSubmission, ScoreWire, SignedSubmission
)


def build_submission(state: GameState, telemetry: GameplayData,
    profile: PlayerProfile, now_ms: float) -> ScoreSubmission:
    return ScoreSubmission(
        score=state.score,
        player_id=profile.player_id,
        user_name=profile.user_name,
        display_name=profile.display_name,
        avatar_url=profile.avatar_url,
        shots_fired=telemetry.shots_fired,
        enemies_destroyed=telemetry.enemies_destroyed,
        powerups_collected=telemetry.powerups_collected,
        play_duration_ms=int(now_ms - telemetry.start_time_ms),
        timestamp_ms=int(now_ms),
    )


def to_wire(submission: ScoreSubmission) -> ScoreWire:
    """Insertion order here IS the canonical key order."""
    return {
        "score": submission.score,
        "fid": submission.player_id,
        "userName": submission.user_name,
        "displayName": submission.display_name,
        "pfpUrl": submission.avatar_url,
        "gameplayData": {
            "shotsFired": submission.shots_fired,
            "enemiesDestroyed": submission.enemies_destroyed,
            "powerupsCollected": submission.powerups_collected,
            "playDuration": submission.play_duration_ms,
            "timestamp": submission.timestamp_ms,
        },
    }


def canonical_bytes(submission: ScoreSubmission) -> bytes:
    return orjson.dumps(to_wire(submission))


def hmac_key_from_env() -> str:
    key = os.environ.get(enum.HMAC_KEY_ENV)
    if not key:
        raise RuntimeError(f"{enum.HMAC_KEY_ENV} is not set")
    return key


def sign(submission: ScoreSubmission, key: str | None = None) -> SignedSubmission:
    """Attach the tag. Reads the key from the environment when not given."""
    if key is None:
        key = hmac_key_from_env()
    digest = hmac.new(key.encode("utf-8"), canonical_bytes(submission), hashlib.sha256).hexdigest()
    return SignedSubmission(data=submission, signature=digest)


def request_body(signed: SignedSubmission) -> bytes:
    """`{"data": ..., "signature": ...}` as posted to a score endpoint."""
    return orjson.dumps({"data": to_wire(signed.data), "signature": signed.signature})
