import math
import numpy as np
import pygame

from grid import Tile


class RenderTool:
    """Draws ``Game.get_status_dict()`` snapshots onto a pygame surface."""

    def __init__(self, game):
        self.game = game
        self.font = None
        self.small_font = None
        self._load_colors()

    def _load_colors(self):
        self.colors = {
            "grass": (46, 125, 50),
            "grass_alt": (36, 107, 40),
            "hard_wall": (51, 51, 51),
            "hard_wall_edge": (90, 90, 90),
            "soft_wall": (216, 67, 21),
            "soft_wall_edge": (150, 45, 12),
            "player": (245, 245, 245),
            "player_ear": (255, 182, 193),
            "enemy": (200, 200, 255),
            "bomb": (20, 20, 20),
            "fuse": (255, 165, 0),
            "explosion": (255, 69, 0),
            "overlay": (0, 0, 0, 200),
            "text": (255, 255, 255),
        }

    def _load_fonts(self):
        # fonts are only needed for the overlays, load them on first use
        if self.font is None:
            pygame.font.init()
            self.font = pygame.font.Font(None, 64)
            self.small_font = pygame.font.Font(None, 32)

    @property
    def size(self):
        rows, cols = self.game.map_scheme["size"]
        return cols * self.game.tile_size, rows * self.game.tile_size

    def render_current_frame(self, snapshot=None):
        """Render the current (or given) snapshot to a new surface."""
        surface = pygame.Surface(self.size, 0, 32)
        self.draw(surface, snapshot)
        return surface

    def to_rgb_array(self, surface):
        return np.transpose(pygame.surfarray.array3d(surface), axes=(1, 0, 2))

    def draw(self, surface, snapshot=None):
        if snapshot is None:
            snapshot = self.game.get_status_dict()
        ts = snapshot['game_properties']['tile_size']

        surface.fill(self.colors["grass"])
        if snapshot['board'] is not None:
            self._draw_board(surface, snapshot['board'], ts)
            self._draw_bombs(surface, snapshot['bombs'], ts)
            self._draw_explosions(surface, snapshot['explosions'], ts)
            self._draw_enemies(surface, snapshot['enemies'], ts)
            player = snapshot['player']
            if player['alive'] and snapshot['game_properties']['status'] == 'playing':
                self._draw_player(surface, player, ts)

        status = snapshot['game_properties']['status']
        if status == 'menu':
            self._draw_overlay(surface, "BUNNY BOMBER", "Press ENTER to start")
        elif status == 'won':
            self._draw_overlay(surface, "WIN!", "Press ENTER to play again")
        elif status == 'lost':
            self._draw_overlay(surface, "GAME OVER", "Press ENTER to retry")
        return surface

    def _draw_board(self, surface, board, ts):
        for r in range(board.shape[0]):
            for c in range(board.shape[1]):
                rect = pygame.Rect(c * ts, r * ts, ts, ts)
                if (r + c) % 2 == 1:
                    pygame.draw.rect(surface, self.colors["grass_alt"], rect)
                if board[r, c] == Tile.HARD_WALL:
                    pygame.draw.rect(surface, self.colors["hard_wall"], rect)
                    pygame.draw.rect(surface, self.colors["hard_wall_edge"], rect, 2)
                elif board[r, c] == Tile.SOFT_WALL:
                    inner = rect.inflate(-4, -4)
                    pygame.draw.rect(surface, self.colors["soft_wall"], inner)
                    # brick joints
                    pygame.draw.line(surface, self.colors["soft_wall_edge"],
                                     (inner.left, inner.centery), (inner.right, inner.centery), 2)
                    pygame.draw.line(surface, self.colors["soft_wall_edge"],
                                     (inner.centerx, inner.top), (inner.centerx, inner.centery), 2)

    def _draw_bombs(self, surface, bombs, ts):
        for bomb in bombs:
            # pulse faster as the fuse burns down
            phase = (1.0 - bomb['remaining']) * 6 * math.pi
            scale = 1.0 + math.sin(phase) * 0.1
            radius = int(ts * 0.35 * scale)
            center = (int(bomb['x']), int(bomb['y']))
            pygame.draw.circle(surface, self.colors["bomb"], center, radius)
            fuse_end = (center[0] + radius // 2, center[1] - radius)
            pygame.draw.circle(surface, self.colors["fuse"], fuse_end, max(2, ts // 12))

    def _draw_explosions(self, surface, explosions, ts):
        for explosion in explosions:
            layer = pygame.Surface((ts, ts), pygame.SRCALPHA)
            alpha = int(255 * max(0.0, min(1.0, explosion['remaining'])))
            layer.fill((*self.colors["explosion"], alpha))
            for r, c in explosion['cells']:
                surface.blit(layer, (c * ts, r * ts))

    def _draw_enemies(self, surface, enemies, ts):
        for enemy in enemies:
            center = (int(enemy['x']), int(enemy['y']))
            body = pygame.Rect(0, 0, int(ts * 0.6), int(ts * 0.7))
            body.center = center
            pygame.draw.ellipse(surface, self.colors["enemy"], body)
            # eyes look the way the enemy faces
            eye_dx = enemy['facing'] * ts // 10
            for side in (-1, 1):
                eye = (center[0] + side * ts // 8 + eye_dx, center[1] - ts // 10)
                pygame.draw.circle(surface, self.colors["bomb"], eye, max(2, ts // 16))

    def _draw_player(self, surface, player, ts):
        center = (int(player['x']), int(player['y']))
        pygame.draw.circle(surface, self.colors["player"], center, int(ts * 0.3))
        for side in (-1, 1):
            ear = pygame.Rect(0, 0, ts // 8, ts // 3)
            ear.midbottom = (center[0] + side * ts // 8, center[1] - int(ts * 0.2))
            pygame.draw.ellipse(surface, self.colors["player_ear"], ear)

    def _draw_overlay(self, surface, title, subtitle):
        self._load_fonts()
        shade = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
        shade.fill(self.colors["overlay"])
        surface.blit(shade, (0, 0))
        title_surf = self.font.render(title, True, self.colors["text"])
        surface.blit(title_surf, title_surf.get_rect(center=(surface.get_width() // 2, surface.get_height() // 2 - 30)))
        sub_surf = self.small_font.render(subtitle, True, self.colors["text"])
        surface.blit(sub_surf, sub_surf.get_rect(center=(surface.get_width() // 2, surface.get_height() // 2 + 30)))
