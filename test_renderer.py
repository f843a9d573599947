"""
Renderer smoke tests. Runs headless through SDL's dummy video driver.
"""

import copy
import os
import random

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import pygame
import pytest

from shmup import boss as boss_fsm, engine, enums as enum, progression
from shmup.renderer import (
    C_BG, Renderer, SPRITE_FILES, boss_alpha, explosion_radius, hp_color, load_sprites
)
from shmup.types import (
    Enemy, EnemyBullet, GameState, PlayerBullet, PowerUp, RankingEntry
)


@pytest.fixture(scope="module", autouse=True)
def pygame_headless():
    pygame.init()
    yield
    pygame.quit()


@pytest.fixture
def surface() -> pygame.Surface:
    return pygame.Surface((enum.GAME_WIDTH, enum.GAME_HEIGHT))


@pytest.fixture
def busy_state() -> GameState:
    """A frame with one of everything on screen."""
    state = engine.new_game_state(random.Random(11))
    state.last_render = 1000
    state.player_bullets.append(PlayerBullet(150, 300, 0, -8, state.new_id()))
    state.enemy_bullets.append(EnemyBullet(90, 200, 0, 2.4, state.new_id()))
    state.power_ups.append(PowerUp(60, 250, state.new_id()))
    for i, enemy_type in enumerate(enum.EnemyType):
        state.enemies.append(Enemy(50 + i * 60, 120, state.new_id(), 0, enemy_type, 1))
    progression.add_explosion(state, 200, 200, 1, 500, 800)
    state.score = 12_345
    return state


class TestDrawing:
    def test_draw_does_not_touch_state(self, surface: pygame.Surface, busy_state: GameState):
        before = copy.deepcopy(busy_state)
        Renderer().draw_game(surface, busy_state)
        assert busy_state == before

    def test_background_color(self, surface: pygame.Surface):
        Renderer().draw_game(surface, GameState())
        assert surface.get_at((5, enum.GAME_HEIGHT - 5))[:3] == C_BG

    def test_player_drawn_with_shapes(self, surface: pygame.Surface):
        state = GameState()
        Renderer().draw_player(surface, state)
        assert surface.get_at((int(state.player_x), enum.PLAYER_Y))[:3] != (0, 0, 0)

    def test_boss_and_screens(self, surface: pygame.Surface, busy_state: GameState):
        state = copy.deepcopy(busy_state)
        state.enemies.clear()
        boss_fsm.enter_boss_phase(state)
        renderer = Renderer()
        renderer.draw_game(surface, state)
        renderer.draw_start(surface, state, plays_remaining=2)
        state.game_over = True
        renderer.draw_game_over(surface, state)
        entry = RankingEntry(1, 5000, 7, "alice", "Alice", "", 20, 60_000, 0)
        renderer.draw_ranking(surface, state, [entry])
        renderer.draw_ranking(surface, state, [])

    def test_sprites_used_when_present(self, surface: pygame.Surface):
        sprite = pygame.Surface((8, 8))
        sprite.fill((1, 2, 3))
        state = GameState()
        Renderer({"player": sprite}).draw_player(surface, state)
        assert surface.get_at((int(state.player_x), enum.PLAYER_Y))[:3] == (1, 2, 3)


class TestSprites:
    def test_missing_sprites_warn(self, tmp_path):
        with pytest.warns(UserWarning) as record:
            sprites = load_sprites(tmp_path)
        assert sprites == {}
        assert len(record) == len(SPRITE_FILES)

    def test_loads_existing(self, tmp_path):
        image = pygame.Surface((4, 4))
        pygame.image.save(image, str(tmp_path / "boss.png"))
        with pytest.warns(UserWarning):
            sprites = load_sprites(tmp_path)
        assert list(sprites) == ["boss"]


class TestHelpers:
    @pytest.mark.parametrize("ratio,color", [
        (1.0, (0, 255, 0)),
        (0.5, (255, 255, 0)),
        (0.2, (255, 0, 0)),
    ])
    def test_hp_color(self, ratio: float, color: tuple[int, int, int]):
        assert hp_color(ratio) == color

    def test_boss_fades(self):
        state = GameState()
        boss = boss_fsm.enter_boss_phase(state)
        boss.progress = 0.25
        assert boss_alpha(boss) == 0.25
        boss.state = enum.BossState.DYING
        assert boss_alpha(boss) == 0.75
        boss.state = enum.BossState.FIGHTING
        assert boss_alpha(boss) == 1.0

    def test_explosion_grows(self):
        assert explosion_radius(1, 0) == 1
        assert explosion_radius(1, 0.5) == 11
        assert explosion_radius(2, 5) == 42
