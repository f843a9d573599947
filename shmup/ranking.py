"""
Shmup - Ranking Module

Local ranking board. Accepts signed submissions like a remote score endpoint
would and serves the top entries for the ranking screen.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Final, Self

import orjson

from shmup import enums as enum
from shmup.types import RankingEntry, SignedSubmission
from shmup.utils import warn


RECORD_KEYS: Final[frozenset[str]] = frozenset({
    "score", "fid", "user_name", "display_name", "pfp_url",
    "enemies_destroyed", "play_duration", "created_at",
})


def _check_records(records: Any) -> None:
    if not isinstance(records, list):
        raise TypeError(f"'scores' must be a list. Got: {type(records).__name__}")
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            raise TypeError(f"Record {i} must be an object. Got: {type(record).__name__}")
        missing = RECORD_KEYS - record.keys()
        if missing:
            raise ValueError(f"Record {i} is missing {sorted(missing)}")
        if not isinstance(record["score"], (int, float)) or isinstance(record["score"], bool):
            raise TypeError(f"Record {i} has a non-numeric score: {record['score']!r}")


class LocalRankingBoard:
    def __init__(self, capacity: int | None = None):
        if capacity is not None and capacity < 1:
            raise ValueError(f"LocalRankingBoard: capacity must be positive. Got: {capacity}")
        self.capacity = capacity
        self._records: list[dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self._records)

    def submit(self, submission: SignedSubmission) -> None:
        data = submission.data
        self._records.append({
            "score": data.score,
            "fid": data.player_id,
            "user_name": data.user_name,
            "display_name": data.display_name,
            "pfp_url": data.avatar_url,
            "enemies_destroyed": data.enemies_destroyed,
            "play_duration": data.play_duration_ms,
            "created_at": data.timestamp_ms,
        })
        # stable sort keeps the earlier record ahead on equal scores
        self._records.sort(key=lambda r: r["score"], reverse=True)
        if self.capacity is not None:
            del self._records[self.capacity:]

    def top(self, limit: int = enum.RANKING_SIZE) -> list[RankingEntry]:
        return [
            RankingEntry(
                rank=i + 1,
                score=r["score"],
                player_id=r["fid"],
                user_name=r["user_name"],
                display_name=r["display_name"],
                avatar_url=r["pfp_url"],
                enemies_destroyed=r["enemies_destroyed"],
                play_duration_ms=r["play_duration"],
                created_at_ms=r["created_at"],
            )
            for i, r in enumerate(self._records[:limit])
        ]

    # ==========================================
    # FILE STORAGE
    # ==========================================

    def save(self, filename: str | Path) -> None:
        with open(filename, "wb") as file:
            file.write(orjson.dumps({"scores": self._records}))

    @classmethod
    def load(cls, filename: str | Path, capacity: int | None = None) -> Self:
        """Missing or unreadable files give an empty board."""
        board = cls(capacity)
        path = Path(filename)
        if not path.exists():
            return board
        try:
            records = orjson.loads(path.read_bytes())["scores"]
            _check_records(records)
            records = sorted(records, key=lambda r: r["score"], reverse=True)
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            warn(f"Ranking file {path} is unreadable ({exc}); starting empty")
            return board

        board._records = records
        if capacity is not None:
            del board._records[capacity:]
        return board
