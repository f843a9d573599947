"""
Shmup - Input Module

Translates pointer, touch and keyboard signals into the session's input
contract (lateral target and firing intent). Coordinates are field-relative.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Final

from shmup.session import GameSession

KEY_STEP: Final[float] = 6
"""Lateral movement per keyboard nudge"""


@dataclass(slots=True)
class _TouchDrag:
    start_x: float
    player_x: float


class InputHandler:
    def __init__(self, session: GameSession):
        self.session = session
        self._drag: _TouchDrag | None = None
        self._key_fire = False
        self._pointer_fire = False

    def _sync_firing(self) -> None:
        self.session.set_firing_intent(self._pointer_fire or self._key_fire or self._drag is not None)

    # ==========================================
    # POINTER
    # ==========================================

    def pointer_move(self, x: float) -> None:
        """The player follows the pointer directly."""
        self.session.set_player_target(x)

    def pointer_down(self) -> None:
        self._pointer_fire = True
        self._sync_firing()

    def pointer_up(self) -> None:
        """Also called when the pointer leaves the field."""
        self._pointer_fire = False
        self._sync_firing()

    def click(self) -> None:
        self.session.request_shot()

    # ==========================================
    # TOUCH
    # ==========================================

    def touch_start(self, x: float) -> None:
        if not self.session.is_playing: return
        self._drag = _TouchDrag(start_x=x, player_x=self.session.state.player_x)
        self._sync_firing()

    def touch_move(self, x: float) -> None:
        """Drag is relative: the player moves by how far the finger moved."""
        if self._drag is None: return
        self.session.set_player_target(self._drag.player_x + (x - self._drag.start_x))

    def touch_end(self) -> None:
        self._drag = None
        self._sync_firing()

    # ==========================================
    # KEYBOARD
    # ==========================================

    def nudge(self, direction: int, step: float = KEY_STEP) -> None:
        """direction: -1 left, +1 right. Call once per frame while a key is held."""
        if direction == 0: return
        self.session.set_player_target(self.session.state.player_x + step * (1 if direction > 0 else -1))

    def fire_key(self, pressed: bool) -> None:
        self._key_fire = pressed
        self._sync_firing()

    def reset(self) -> None:
        """Forget every held control, e.g. when a new game starts."""
        self._drag = None
        self._key_fire = False
        self._pointer_fire = False
