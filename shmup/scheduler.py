"""
Shmup - Frame Scheduler Module

Drives a GameSession from a display-refresh source. At most one frame is ever
pending, and it is cancelled as soon as the session leaves PLAYING.
"""

from __future__ import annotations
from typing import Callable

from shmup import enums as enum
from shmup.session import GameSession
from shmup.types import FrameCallback, FrameSource, GameState
from shmup.utils import warn

RenderCallback = Callable[[GameState], None]


class ManualFrameSource:
    """FrameSource fired by hand, e.g. from a window loop or a test."""

    def __init__(self):
        self._pending: dict[int, FrameCallback] = {}
        self._next_handle = 1

    def request(self, callback: FrameCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def fire(self, timestamp: float) -> int:
        """
        Run the callbacks pending right now. Requests made while firing wait
        for the next call. Returns how many callbacks ran.
        """
        ran = 0
        for handle in list(self._pending):
            callback = self._pending.pop(handle, None)
            if callback is None: continue
            callback(timestamp)
            ran += 1
        return ran


class FrameScheduler:
    def __init__(self, session: GameSession, frames: FrameSource,
        render: RenderCallback | None = None):
        self.session = session
        self.frames = frames
        self.render = render
        self._handle: int | None = None
        self.frames_skipped = 0
        session.subscribe(self._on_lifecycle)
        if session.is_playing:
            self.start()

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """Begin a fresh frame cycle, dropping any frame still pending."""
        self.stop()
        self._handle = self.frames.request(self._on_frame)

    def stop(self) -> None:
        if self._handle is not None:
            self.frames.cancel(self._handle)
            self._handle = None

    def _on_lifecycle(self, old: enum.Lifecycle, new: enum.Lifecycle) -> None:
        if new is enum.Lifecycle.PLAYING:
            self.start()
        elif old is enum.Lifecycle.PLAYING:
            self.stop()

    def _on_frame(self, timestamp: float) -> None:
        self._handle = None
        if not self.session.is_playing:
            return

        try:
            self.session.advance(timestamp)
        except Exception as exc:
            self.frames_skipped += 1
            warn(f"Frame at {timestamp:.1f}ms skipped: {exc!r}")

        if self.render is not None:
            self.render(self.session.snapshot())

        if self.session.is_playing and self._handle is None:
            self._handle = self.frames.request(self._on_frame)
