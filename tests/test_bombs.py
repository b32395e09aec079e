"""Tests for bomb fuses, blast rays and explosion ageing."""

import numpy as np

from bombs import Bomb, Explosion, cast_blast, get_predicted_blast_coords
from grid import Grid, Tile


def make_open_grid(rows=9, cols=9):
    board = np.zeros((rows, cols), dtype=np.int8)
    board[0, :] = board[-1, :] = Tile.HARD_WALL
    board[:, 0] = board[:, -1] = Tile.HARD_WALL
    return Grid(board, 48)


def test_soft_wall_is_hit_destroyed_and_stops_the_ray():
    grid = make_open_grid()
    grid.board[3, 4] = Tile.SOFT_WALL  # north of the bomb at (4, 4)

    cells, destroyed = cast_blast(grid, 4, 4, 2)

    assert destroyed == [(3, 4)]
    assert grid.tile_at(3, 4) is Tile.EMPTY
    assert (3, 4) in cells
    assert (2, 4) not in cells
    assert set(cells) == {(4, 4), (3, 4), (5, 4), (6, 4), (4, 3), (4, 2), (4, 5), (4, 6)}


def test_hard_wall_stops_the_ray_before_it():
    grid = make_open_grid()
    grid.board[4, 5] = Tile.HARD_WALL

    cells, destroyed = cast_blast(grid, 4, 4, 3)

    assert destroyed == []
    assert (4, 5) not in cells
    assert (4, 6) not in cells
    assert grid.tile_at(4, 5) is Tile.HARD_WALL


def test_centre_comes_first_and_only_once():
    grid = make_open_grid()
    cells, _ = cast_blast(grid, 4, 4, 2)
    assert cells[0] == (4, 4)
    assert cells.count((4, 4)) == 1
    assert len(cells) == len(set(cells)) == 9


def test_rays_stop_at_the_board_edge():
    grid = Grid(np.zeros((5, 5)), 48)
    cells, _ = cast_blast(grid, 0, 0, 3)
    assert set(cells) == {(0, 0), (1, 0), (2, 0), (3, 0), (0, 1), (0, 2), (0, 3)}


def test_only_the_first_soft_wall_on_a_ray_breaks():
    grid = make_open_grid()
    grid.board[4, 5] = Tile.SOFT_WALL
    grid.board[4, 6] = Tile.SOFT_WALL

    _, destroyed = cast_blast(grid, 4, 4, 3)

    assert destroyed == [(4, 5)]
    assert grid.tile_at(4, 6) is Tile.SOFT_WALL


def test_prediction_does_not_touch_the_grid():
    grid = make_open_grid()
    grid.board[3, 4] = Tile.SOFT_WALL

    predicted = get_predicted_blast_coords(grid, 4, 4, 2)

    assert (3, 4) in predicted
    assert (2, 4) not in predicted
    assert grid.tile_at(3, 4) is Tile.SOFT_WALL


def test_bomb_fuse_counts_down():
    bomb = Bomb(r=1, c=1, x=72, y=72, timer=3000, player_id="player", blast_radius=2)
    assert not bomb.tick(2999)
    assert 0 < bomb.remaining_ratio < 1
    assert bomb.tick(1)
    assert bomb.remaining_ratio == 0


def test_explosion_fades_and_burns_out():
    explosion = Explosion(0, [(1, 1), (1, 2)], duration=600)
    assert explosion.covers((1, 2))
    assert not explosion.covers((2, 2))

    assert explosion.tick(300)
    assert all(p.alpha == 0.5 for p in explosion.particles)
    assert not explosion.tick(300)
    assert explosion.remaining_ratio == 0
