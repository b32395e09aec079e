"""Tests for off-screen rendering of game snapshots."""

import pygame

from game import Game, MapScheme
from render_tool import RenderTool


def test_menu_snapshot_renders_without_a_board():
    game = Game(MapScheme().small, seed=0)
    render_tool = RenderTool(game)

    surface = render_tool.render_current_frame()

    assert surface.get_size() == render_tool.size == (9 * 48, 9 * 48)
    pygame.quit()


def test_playing_frame_converts_to_rgb_rows_first():
    game = Game(MapScheme().large, seed=0)
    game.start()
    render_tool = RenderTool(game)

    frame = render_tool.to_rgb_array(render_tool.render_current_frame())

    rows, cols = game.map_scheme["size"]
    assert frame.shape == (rows * game.tile_size, cols * game.tile_size, 3)
    # top-left corner is a Hard Wall
    assert tuple(frame[5, 5]) == render_tool.colors["hard_wall"]
