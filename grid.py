import numpy as np
from enum import IntEnum


class Tile(IntEnum):
    EMPTY = 0
    HARD_WALL = 1
    SOFT_WALL = 2


class Grid:
    """Tile matrix of the arena plus pixel <-> cell conversions.

    The board is a (rows, cols) numpy array of ``Tile`` values. Positions of
    entities are continuous pixel coordinates; a cell is derived by floor
    division by ``tile_size``.
    """

    def __init__(self, board, tile_size):
        self.board = np.array(board, dtype=np.int8)
        assert self.board.ndim == 2, 'The board must be a 2-D matrix'
        self.tile_size = tile_size

    def __repr__(self):
        return f"Grid(shape={self.board.shape}, tile_size={self.tile_size})"

    @property
    def shape(self):
        return self.board.shape

    @property
    def rows(self):
        return self.board.shape[0]

    @property
    def cols(self):
        return self.board.shape[1]

    @property
    def width(self):
        return self.cols * self.tile_size

    @property
    def height(self):
        return self.rows * self.tile_size

    def in_bounds(self, r, c):
        return 0 <= r < self.rows and 0 <= c < self.cols

    def cell_of(self, x, y):
        """Return the (row, col) cell that contains pixel position (x, y)."""
        return int(y // self.tile_size), int(x // self.tile_size)

    def cell_center(self, r, c):
        """Return the (x, y) pixel centre of cell (r, c)."""
        return c * self.tile_size + self.tile_size / 2, r * self.tile_size + self.tile_size / 2

    def tile_at(self, r, c):
        # out of bounds is reported as None, never as an IndexError
        if not self.in_bounds(r, c):
            return None
        return Tile(int(self.board[r, c]))

    def is_solid(self, r, c):
        """A cell blocks movement if it is outside the board or not Empty."""
        if not self.in_bounds(r, c):
            return True
        return self.board[r, c] != Tile.EMPTY

    def destroy(self, r, c):
        """Turn a Soft Wall into floor. Returns True if a wall was destroyed."""
        if self.tile_at(r, c) is Tile.SOFT_WALL:
            self.board[r, c] = Tile.EMPTY
            return True
        return False

    def count(self, tile):
        return int(np.count_nonzero(self.board == tile))

    def copy(self):
        return Grid(self.board.copy(), self.tile_size)


def generate_grid(rows, cols, tile_size, soft_wall_chance=0.3, safe_zone=3, rng=None):
    """Generate a fresh arena.

    Hard Walls ring the border and sit on every cell whose row and column are
    both even. The ``safe_zone`` x ``safe_zone`` block in the top-left corner
    (the player's spawn) never gets a Soft Wall; every other free cell becomes
    a Soft Wall with probability ``soft_wall_chance``.

    Args:
        rows (int): Number of rows.
        cols (int): Number of columns.
        tile_size (int): Pixels per cell.
        soft_wall_chance (float): Probability of a Soft Wall on a free cell.
        safe_zone (int): Side of the wall-free spawn block.
        rng (np.random.Generator): Source of randomness.

    Returns:
        Grid: The generated arena.
    """
    if rng is None:
        rng = np.random.default_rng()

    r_idx, c_idx = np.indices((rows, cols))
    border = (r_idx == 0) | (r_idx == rows - 1) | (c_idx == 0) | (c_idx == cols - 1)
    pillars = (r_idx % 2 == 0) & (c_idx % 2 == 0)
    hard = border | pillars
    safe = (r_idx < safe_zone) & (c_idx < safe_zone)

    # one draw per cell so the layout only depends on the seed and the size
    rubble = rng.random((rows, cols)) < soft_wall_chance

    board = np.full((rows, cols), Tile.EMPTY, dtype=np.int8)
    board[rubble & ~hard & ~safe] = Tile.SOFT_WALL
    board[hard] = Tile.HARD_WALL
    return Grid(board, tile_size)
