"""
Shmup - Renderer Module

Draws a GameState snapshot onto a pygame Surface. Read-only: nothing here
writes to the state it is given.

Sprites are optional. Any that fail to load are replaced by primitive shapes.
"""

from __future__ import annotations
from pathlib import Path
from typing import Final

import pygame

from shmup import enums as enum
from shmup.types import Boss, GameState, RankingEntry
from shmup.utils import clamp, warn

Color = tuple[int, int, int]

C_BG: Final[Color]            = (17, 24, 39)
C_STAR: Final[Color]          = (255, 255, 255)
C_PLAYER: Final[Color]        = (96, 165, 250)
C_PLAYER_BULLET: Final[Color] = (251, 191, 36)
C_ENEMY_BULLET: Final[Color]  = (248, 113, 113)
C_POWERUP: Final[Color]       = (52, 211, 153)
C_EXPLOSION: Final[Color]     = (255, 215, 0)
C_WHITE: Final[Color]         = (255, 255, 255)
C_HP_BG: Final[Color]         = (51, 51, 51)
C_TEXT_DIM: Final[Color]      = (156, 163, 175)

ENEMY_COLORS: Final[dict[enum.EnemyType, Color]] = {
    enum.EnemyType.NORMAL: (239, 68, 68),
    enum.EnemyType.SHOOTER: (168, 85, 247),
    enum.EnemyType.FAST: (249, 115, 22),
}

# Sprite edge length on screen
PLAYER_SIZE: Final[int] = 30
POWERUP_SIZE: Final[int] = 24
BOSS_SIZE: Final[int] = 150
ENEMY_SIZES: Final[dict[enum.EnemyType, int]] = {
    enum.EnemyType.NORMAL: 30,
    enum.EnemyType.SHOOTER: 42,
    enum.EnemyType.FAST: 30,
}
BULLET_RADIUS: Final[int] = 3

HP_BAR_W: Final[int] = 200
HP_BAR_H: Final[int] = 10
HP_BAR_Y: Final[int] = 20
EXPLOSION_GROWTH: Final[float] = 20

SPRITE_FILES: Final[dict[str, str]] = {
    "player": "player.png",
    "enemy": "enemy.png",
    "shooter": "shooter.png",
    "fast": "fast.png",
    "powerup": "powerup.png",
    "boss": "boss.png",
}

_SPRITE_KEYS: Final[dict[enum.EnemyType, str]] = {
    enum.EnemyType.NORMAL: "enemy",
    enum.EnemyType.SHOOTER: "shooter",
    enum.EnemyType.FAST: "fast",
}


def load_sprites(directory: str | Path) -> dict[str, pygame.Surface]:
    """Load whatever sprites exist in `directory`. Missing ones are warned about."""
    sprites: dict[str, pygame.Surface] = {}
    for key, filename in SPRITE_FILES.items():
        path = Path(directory) / filename
        try:
            image = pygame.image.load(str(path))
        except (pygame.error, FileNotFoundError) as exc:
            warn(f"Sprite '{key}' unavailable ({exc}); drawing shapes instead")
            continue
        if pygame.display.get_surface() is not None:
            image = image.convert_alpha()
        sprites[key] = image
    return sprites


def hp_color(ratio: float) -> Color:
    if ratio > 0.5: return (0, 255, 0)
    if ratio > 0.2: return (255, 255, 0)
    return (255, 0, 0)


def boss_alpha(boss: Boss) -> float:
    if boss.state is enum.BossState.APPEARING:
        return clamp(boss.progress, 0, 1)
    if boss.state is enum.BossState.DYING:
        return clamp(1 - boss.progress, 0, 1)
    return 1.0


def draw_circle_alpha(surface: pygame.Surface, color: Color, center: tuple[float, float],
    radius: float, alpha: float) -> None:
    r = max(1, int(radius))
    s = pygame.Surface((r * 2 + 2, r * 2 + 2), pygame.SRCALPHA)
    pygame.draw.circle(s, (*color, int(clamp(alpha, 0, 1) * 255)), (r + 1, r + 1), r)
    surface.blit(s, (int(center[0]) - r - 1, int(center[1]) - r - 1))


def draw_text_centered(surface: pygame.Surface, text: str, font: pygame.font.Font,
    color: Color, cx: float, cy: float) -> pygame.Rect:
    img = font.render(text, True, color)
    rect = img.get_rect(center=(int(cx), int(cy)))
    surface.blit(img, rect)
    return rect


class Renderer:
    def __init__(self, sprites: dict[str, pygame.Surface] | None = None):
        pygame.font.init()
        self.font_title = pygame.font.Font(None, 32)
        self.font_medium = pygame.font.Font(None, 24)
        self.font_small = pygame.font.Font(None, 18)
        self._sprites: dict[tuple[str, int], pygame.Surface] = {}
        for key, image in (sprites or {}).items():
            self._sprites[(key, 0)] = image

    def _sprite(self, key: str, size: int) -> pygame.Surface | None:
        """Scaled sprite, cached per size."""
        scaled = self._sprites.get((key, size))
        if scaled is not None:
            return scaled
        original = self._sprites.get((key, 0))
        if original is None:
            return None
        scaled = pygame.transform.scale(original, (size, size))
        self._sprites[(key, size)] = scaled
        return scaled

    def _blit_centered(self, surface: pygame.Surface, key: str, size: int,
        x: float, y: float, alpha: float = 1.0) -> bool:
        image = self._sprite(key, size)
        if image is None:
            return False
        if alpha < 1.0:
            image = image.copy()
            image.set_alpha(int(clamp(alpha, 0, 1) * 255))
        surface.blit(image, (int(x - size / 2), int(y - size / 2)))
        return True

    # ==========================================
    # WORLD
    # ==========================================

    def draw_background(self, surface: pygame.Surface, state: GameState) -> None:
        surface.fill(C_BG)
        for star in state.stars:
            draw_circle_alpha(surface, C_STAR, (star.x, star.y), max(1.0, star.size), star.brightness)

    def draw_player(self, surface: pygame.Surface, state: GameState) -> None:
        x, y = state.player_x, enum.PLAYER_Y
        if self._blit_centered(surface, "player", PLAYER_SIZE, x, y):
            return
        half = PLAYER_SIZE / 2
        pts = [(x, y - half), (x + half, y + half), (x, y + half * 0.5), (x - half, y + half)]
        pygame.draw.polygon(surface, C_PLAYER, pts)
        pygame.draw.polygon(surface, C_WHITE, pts, 1)

    def draw_bullets(self, surface: pygame.Surface, state: GameState) -> None:
        for b in state.player_bullets:
            pygame.draw.circle(surface, C_PLAYER_BULLET, (int(b.x), int(b.y)), BULLET_RADIUS)
        for b in state.enemy_bullets:
            pygame.draw.circle(surface, C_ENEMY_BULLET, (int(b.x), int(b.y)), BULLET_RADIUS)

    def draw_power_ups(self, surface: pygame.Surface, state: GameState) -> None:
        for p in state.power_ups:
            if self._blit_centered(surface, "powerup", POWERUP_SIZE, p.x, p.y):
                continue
            pygame.draw.circle(surface, C_POWERUP, (int(p.x), int(p.y)), POWERUP_SIZE // 2)
            draw_text_centered(surface, "P", self.font_small, C_WHITE, p.x, p.y)

    def draw_enemies(self, surface: pygame.Surface, state: GameState) -> None:
        for e in state.enemies:
            size = ENEMY_SIZES[e.type]
            if self._blit_centered(surface, _SPRITE_KEYS[e.type], size, e.x, e.y):
                continue
            half = size / 2
            pts = [(e.x - half, e.y - half), (e.x + half, e.y - half), (e.x, e.y + half)]
            pygame.draw.polygon(surface, ENEMY_COLORS[e.type], pts)
            pygame.draw.polygon(surface, C_WHITE, pts, 1)

    def draw_boss(self, surface: pygame.Surface, boss: Boss) -> None:
        alpha = boss_alpha(boss)
        if not self._blit_centered(surface, "boss", BOSS_SIZE, boss.x, boss.y, alpha):
            draw_circle_alpha(surface, ENEMY_COLORS[enum.EnemyType.SHOOTER], (boss.x, boss.y), BOSS_SIZE / 3, alpha)

        x = (enum.GAME_WIDTH - HP_BAR_W) // 2
        ratio = clamp(boss.hp / boss.max_hp, 0, 1) if boss.max_hp > 0 else 0
        pygame.draw.rect(surface, C_HP_BG, (x, HP_BAR_Y, HP_BAR_W, HP_BAR_H))
        if ratio > 0:
            pygame.draw.rect(surface, hp_color(ratio), (x, HP_BAR_Y, int(HP_BAR_W * ratio), HP_BAR_H))
        pygame.draw.rect(surface, C_WHITE, (x, HP_BAR_Y, HP_BAR_W, HP_BAR_H), 1)

    def draw_explosions(self, surface: pygame.Surface, state: GameState) -> None:
        now = state.last_render if state.last_render is not None else 0
        for x in state.explosions:
            if x.duration <= 0: continue
            progress = (now - x.start_time) / x.duration
            if not (0 <= progress < 1): continue
            size = explosion_radius(x.size, progress)
            alpha = 1 - progress
            draw_circle_alpha(surface, C_EXPLOSION, (x.x, x.y), size, alpha)
            draw_circle_alpha(surface, C_WHITE, (x.x, x.y), size * 0.5, alpha * 0.8)

    def draw_hud(self, surface: pygame.Surface, state: GameState) -> None:
        score = self.font_medium.render(f"{state.score:,}", True, C_WHITE)
        surface.blit(score, score.get_rect(topright=(enum.GAME_WIDTH - 8, 8)))
        level = self.font_small.render(f"POWER {state.shot_level}", True, C_TEXT_DIM)
        surface.blit(level, (8, 8))

    def draw_game(self, surface: pygame.Surface, state: GameState, show_player: bool = True) -> None:
        self.draw_background(surface, state)
        if show_player and not state.game_over:
            self.draw_player(surface, state)
        self.draw_bullets(surface, state)
        self.draw_power_ups(surface, state)
        self.draw_enemies(surface, state)
        if state.boss is not None:
            self.draw_boss(surface, state.boss)
        self.draw_explosions(surface, state)
        self.draw_hud(surface, state)

    # ==========================================
    # SCREENS
    # ==========================================

    def _dim(self, surface: pygame.Surface, rgba: tuple[int, int, int, int]) -> None:
        dim = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
        dim.fill(rgba)
        surface.blit(dim, (0, 0))

    def draw_start(self, surface: pygame.Surface, state: GameState, plays_remaining: int | None = None) -> None:
        self.draw_background(surface, state)
        cx = enum.GAME_WIDTH / 2
        draw_text_centered(surface, "Shoot 'em up", self.font_title, C_WHITE, cx, enum.GAME_HEIGHT / 3)
        draw_text_centered(surface, "SPACE / click to start", self.font_small, C_TEXT_DIM, cx, enum.GAME_HEIGHT / 2)
        draw_text_centered(surface, "R for ranking", self.font_small, C_TEXT_DIM, cx, enum.GAME_HEIGHT / 2 + 22)
        if plays_remaining is not None:
            draw_text_centered(surface, f"Plays left today: {plays_remaining}",
                self.font_small, C_PLAYER_BULLET, cx, enum.GAME_HEIGHT / 2 + 50)

    def draw_game_over(self, surface: pygame.Surface, state: GameState) -> None:
        self.draw_game(surface, state, show_player=False)
        self._dim(surface, (0, 0, 0, 160))
        cx = enum.GAME_WIDTH / 2
        draw_text_centered(surface, "GAME OVER", self.font_title, C_ENEMY_BULLET, cx, enum.GAME_HEIGHT / 3)
        draw_text_centered(surface, f"Score: {state.score:,}", self.font_medium, C_WHITE, cx, enum.GAME_HEIGHT / 3 + 40)
        draw_text_centered(surface, "SPACE to retry  |  R for ranking",
            self.font_small, C_TEXT_DIM, cx, enum.GAME_HEIGHT / 2 + 20)

    def draw_ranking(self, surface: pygame.Surface, state: GameState, entries: list[RankingEntry]) -> None:
        self.draw_background(surface, state)
        self._dim(surface, (0, 0, 0, 120))
        cx = enum.GAME_WIDTH / 2
        draw_text_centered(surface, "RANKING", self.font_title, C_PLAYER_BULLET, cx, 40)
        if not entries:
            draw_text_centered(surface, "No scores yet", self.font_small, C_TEXT_DIM, cx, 90)
        for i, entry in enumerate(entries):
            name = entry.display_name or entry.user_name or f"fid {entry.player_id}"
            y = 80 + i * 30
            rank = self.font_medium.render(f"{entry.rank:>2}. {name[:16]}", True, C_WHITE)
            surface.blit(rank, (20, y))
            score = self.font_medium.render(f"{entry.score:,}", True, C_PLAYER_BULLET)
            surface.blit(score, score.get_rect(topright=(enum.GAME_WIDTH - 20, y)))
        draw_text_centered(surface, "ESC to go back", self.font_small, C_TEXT_DIM, cx, enum.GAME_HEIGHT - 30)


def explosion_radius(size: float, progress: float) -> float:
    """On-screen radius of an explosion `progress` (0-1) through its life."""
    return size * (1 + clamp(progress, 0, 1) * EXPLOSION_GROWTH)
