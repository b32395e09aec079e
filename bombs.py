from grid import Tile

# Ray order: Up, Down, Left, Right (row, column deltas)
BLAST_DIRECTIONS = [(-1, 0), (1, 0), (0, -1), (0, 1)]


class Bomb:
    def __init__(self, r, c, x, y, timer, player_id, blast_radius):
        self.r = r
        self.c = c
        self.position = (r, c)
        self.x = x  # pixel centre of the tile it was dropped on
        self.y = y
        self.fuse = timer  # full countdown in ms
        self.timer = timer  # remaining ms
        self.player_id = player_id
        self.blast_radius = blast_radius
        self.exploded = False

    def __repr__(self):
        return f"Bomb(pos=({self.r},{self.c}), timer={self.timer:.0f}, player_id={self.player_id})"

    @property
    def remaining_ratio(self):
        return max(self.timer, 0.0) / self.fuse if self.fuse > 0 else 0.0

    def tick(self, delta_time_ms):
        """Advance the fuse. Returns True once the bomb is due to explode."""
        self.timer -= delta_time_ms
        return self.timer <= 0


class ExplosionParticle:
    def __init__(self, r, c, alpha=1.0):
        self.r = r
        self.c = c
        self.alpha = alpha

    def __repr__(self):
        return f"ExplosionParticle(({self.r},{self.c}), alpha={self.alpha:.2f})"


class Explosion:
    """The burning cells left by one detonation.

    The remaining-time ratio drives both the fade of every particle and the
    window during which the cells kill whatever stands on them.
    """

    def __init__(self, explosion_id, cells, duration):
        self.id = explosion_id
        self.duration = duration
        self.timer = duration
        self.particles = [ExplosionParticle(r, c) for r, c in cells]

    def __repr__(self):
        return f"Explosion(id={self.id}, cells={len(self.particles)}, timer={self.timer:.0f})"

    @property
    def cells(self):
        return [(p.r, p.c) for p in self.particles]

    @property
    def remaining_ratio(self):
        return max(self.timer, 0.0) / self.duration if self.duration > 0 else 0.0

    def tick(self, delta_time_ms):
        """Age the explosion. Returns False once it has burnt out."""
        self.timer -= delta_time_ms
        alpha = self.remaining_ratio
        for particle in self.particles:
            particle.alpha = alpha
        return self.timer > 0

    def covers(self, cell):
        return any((p.r, p.c) == cell for p in self.particles)


def cast_blast(grid, bomb_r, bomb_c, blast_range, destroy_walls=True):
    """Cast the four blast rays of a bomb.

    Each ray walks outward up to ``blast_range`` cells. It stops before a Hard
    Wall or the board edge, and stops on the first Soft Wall, which is part of
    the blast and (if ``destroy_walls``) turned into floor.

    Args:
        grid (Grid): The arena, mutated when walls are destroyed.
        bomb_r (int): Row of the bomb.
        bomb_c (int): Column of the bomb.
        blast_range (int): Blast radius in cells.
        destroy_walls (bool): Whether Soft Walls hit are cleared.

    Returns:
        tuple: (cells, destroyed) - the ordered list of affected (r, c) cells,
            centre first, and the list of cells whose Soft Wall was destroyed.
    """
    cells = [(bomb_r, bomb_c)]  # the bomb's own tile, once
    destroyed = []

    for dr, dc in BLAST_DIRECTIONS:
        for i in range(1, blast_range + 1):
            r, c = bomb_r + dr * i, bomb_c + dc * i

            if not grid.in_bounds(r, c):
                break  # Out of bounds
            tile = grid.tile_at(r, c)
            if tile is Tile.HARD_WALL:
                break  # Hard walls absorb the blast

            cells.append((r, c))

            if tile is Tile.SOFT_WALL:
                if destroy_walls and grid.destroy(r, c):
                    destroyed.append((r, c))
                break  # blast does not go past the wall it breaks
    return cells, destroyed


def get_predicted_blast_coords(grid, bomb_r, bomb_c, blast_range):
    """Predicts the blast cells of a bomb without changing the grid.

    Returns:
        set: (r, c) tuples that the bomb would hit if it exploded now.
    """
    cells, _ = cast_blast(grid, bomb_r, bomb_c, blast_range, destroy_walls=False)
    return set(cells)
