"""
Shmup - pygame front-end

    python main.py

Mouse: move to steer, hold or click to shoot. Keyboard: arrows/A-D to steer,
SPACE to shoot. Touch: drag to steer, fingers down to shoot.
Scores go to a local ranking file.
"""

import os
import sys

import pygame

from shmup import enums as enum
from shmup.input import InputHandler
from shmup.ranking import LocalRankingBoard
from shmup.renderer import Renderer, load_sprites
from shmup.scheduler import FrameScheduler, ManualFrameSource
from shmup.session import GameSession, PlayLimitExceeded
from shmup.types import GameState, PlayerProfile
from shmup.utils import warn

if __name__ != "__main__":
    print("Don't import this! exiting.")
    exit()

FPS = 60
RANKING_FILE = os.environ.get("SHMUP_RANKING_FILE", "rankings.json")
SPRITE_DIR = os.environ.get("SHMUP_SPRITE_DIR", "images")
RANKING_CAPACITY = 100

# ===========================================================================
# WIRING
# ===========================================================================

pygame.init()
pygame.display.set_caption("Shmup")
window = pygame.display.set_mode((enum.GAME_WIDTH, enum.GAME_HEIGHT), pygame.SCALED)
clock = pygame.time.Clock()

board = LocalRankingBoard.load(RANKING_FILE, RANKING_CAPACITY)
profile = PlayerProfile(
    player_id=int(os.environ.get("SHMUP_PLAYER_ID", "1")),
    user_name=os.environ.get("SHMUP_USER_NAME", "local"),
    display_name=os.environ.get("SHMUP_DISPLAY_NAME", "Player"),
)
session = GameSession(profile, submitter=board, rankings=board,
    hmac_key=os.environ.get(enum.HMAC_KEY_ENV, "local"))

controls = InputHandler(session)
frames = ManualFrameSource()
renderer = Renderer(load_sprites(SPRITE_DIR))

latest: GameState = session.snapshot()

def keep_frame(snapshot: GameState):
    global latest
    latest = snapshot

def on_lifecycle(old: enum.Lifecycle, new: enum.Lifecycle):
    if new is enum.Lifecycle.GAMEOVER:
        print(f"Game over. Score: {session.state.score:,}")
        board.save(RANKING_FILE)

scheduler = FrameScheduler(session, frames, render=keep_frame)
session.subscribe(on_lifecycle)

def try_start():
    try:
        session.start()
    except PlayLimitExceeded as exc:
        warn(str(exc))
        return
    controls.reset()


# ===========================================================================
# EVENTS
# ===========================================================================

def handle_event(event: pygame.event.Event) -> bool:
    """False once the window should close."""
    lc = session.lifecycle
    if event.type == pygame.QUIT:
        return False

    if event.type == pygame.KEYDOWN:
        if event.key == pygame.K_ESCAPE:
            if lc is enum.Lifecycle.RANKING:
                session.back()
            else:
                return False
        elif event.key == pygame.K_SPACE:
            if lc in (enum.Lifecycle.START, enum.Lifecycle.GAMEOVER):
                try_start()
            else:
                controls.fire_key(True)
        elif event.key == pygame.K_r and lc in (enum.Lifecycle.START, enum.Lifecycle.GAMEOVER):
            session.show_ranking()
    elif event.type == pygame.KEYUP and event.key == pygame.K_SPACE:
        controls.fire_key(False)

    elif event.type == pygame.MOUSEMOTION and not event.touch:
        controls.pointer_move(event.pos[0])
    elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1 and not event.touch:
        if lc is enum.Lifecycle.START:
            try_start()
        else:
            controls.pointer_down()
            controls.click()
    elif event.type == pygame.MOUSEBUTTONUP and event.button == 1 and not event.touch:
        controls.pointer_up()
    elif event.type == pygame.WINDOWLEAVE:
        controls.pointer_up()

    elif event.type == pygame.FINGERDOWN:
        controls.touch_start(event.x * enum.GAME_WIDTH)
    elif event.type == pygame.FINGERMOTION:
        controls.touch_move(event.x * enum.GAME_WIDTH)
    elif event.type == pygame.FINGERUP:
        controls.touch_end()
    return True


def draw(surface: pygame.Surface):
    lc = session.lifecycle
    if lc is enum.Lifecycle.PLAYING:
        renderer.draw_game(surface, latest)
    elif lc is enum.Lifecycle.GAMEOVER:
        renderer.draw_game_over(surface, latest)
    elif lc is enum.Lifecycle.RANKING:
        renderer.draw_ranking(surface, latest, session.ranking_entries())
    else:
        renderer.draw_start(surface, latest, session.plays_remaining)


# ===========================================================================
# MAIN LOOP
# ===========================================================================

running = True
while running:
    for event in pygame.event.get():
        if not handle_event(event):
            running = False

    keys = pygame.key.get_pressed()
    direction = (keys[pygame.K_RIGHT] or keys[pygame.K_d]) - (keys[pygame.K_LEFT] or keys[pygame.K_a])
    controls.nudge(direction)

    frames.fire(pygame.time.get_ticks())
    draw(window)
    pygame.display.flip()
    clock.tick(FPS)

scheduler.stop()
board.save(RANKING_FILE)
pygame.quit()
sys.exit()
