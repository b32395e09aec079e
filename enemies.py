import math

from collision import is_blocked, max_sub_step, sub_steps
from grid import Tile

# (dx, dy) unit vectors: Up, Down, Left, Right
CARDINAL_DIRECTIONS = [(0, -1), (0, 1), (-1, 0), (1, 0)]

# The turn chance is tuned per frame at this rate
REFERENCE_FRAME_MS = 1000.0 / 60.0


def turn_probability(turn_chance, delta_time_ms):
    """Scale a per-reference-frame chance to an arbitrary frame length."""
    if turn_chance <= 0 or delta_time_ms <= 0:
        return 0.0
    return 1.0 - (1.0 - turn_chance) ** (delta_time_ms / REFERENCE_FRAME_MS)


class Enemy:
    """A wandering enemy.

    It keeps walking in its current cardinal direction until it bumps into
    something, then picks a new random direction. Every frame there is also a
    small chance it turns anyway.
    """

    def __init__(self, enemy_id, x, y, width, height, speed, direction=(1, 0)):
        self.id = enemy_id
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.speed = speed  # px / s
        self.direction = direction
        self.change_dir_timer = 0.0  # ms since the last direction change

    def __repr__(self):
        return f"Enemy(id={self.id}, pos=({self.x:.1f},{self.y:.1f}), direction={self.direction})"

    @property
    def position(self):
        return (self.x, self.y)

    @property
    def facing(self):
        # sprites only flip horizontally
        return -1 if self.direction[0] < 0 else 1

    def distance_to(self, x, y):
        return math.hypot(x - self.x, y - self.y)

    def pick_direction(self, rng):
        self.direction = CARDINAL_DIRECTIONS[int(rng.integers(len(CARDINAL_DIRECTIONS)))]
        self.change_dir_timer = 0.0

    def update(self, grid, bombs, delta_time_ms, rng, turn_chance=0.02):
        """Advance one frame.

        Returns:
            bool: True if the enemy moved.
        """
        distance = self.speed * delta_time_ms / 1000.0
        dir_x, dir_y = self.direction

        moved = False
        for step in sub_steps(distance, max_sub_step(grid.tile_size, self.width, self.height)):
            next_x = self.x + dir_x * step
            next_y = self.y + dir_y * step
            if is_blocked(grid, bombs, next_x, next_y, self.width, self.height, self.x, self.y):
                # no corner sliding for enemies, they just turn around
                self.pick_direction(rng)
                break
            self.x = next_x
            self.y = next_y
            moved = True

        self.change_dir_timer += delta_time_ms
        if rng.random() < turn_probability(turn_chance, delta_time_ms):
            self.pick_direction(rng)
        return moved


def spawn_enemies(grid, count, rng, speed, hitbox, clearance=4, max_attempts=1000):
    """Drop up to ``count`` enemies on random interior Empty cells.

    Cells with both row and column <= ``clearance`` are kept free so that the
    player does not start next to an enemy. The search gives up after
    ``max_attempts`` draws, in which case fewer enemies are returned.
    """
    enemies = []
    attempts = 0
    while len(enemies) < count and attempts < max_attempts:
        attempts += 1
        r = int(rng.integers(1, grid.rows - 1))
        c = int(rng.integers(1, grid.cols - 1))
        if grid.tile_at(r, c) is not Tile.EMPTY:
            continue
        if r <= clearance and c <= clearance:
            continue
        x, y = grid.cell_center(r, c)
        enemies.append(Enemy(len(enemies), x, y, hitbox, hitbox, speed))
    return enemies
