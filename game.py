import math
import numpy as np
from enum import Enum
from uuid import uuid4 as random_id_generator

from bombs import Bomb, Explosion, cast_blast, get_predicted_blast_coords
from collision import move_with_corner_sliding
from controls import as_input_snapshot, release_bomb_press
from enemies import spawn_enemies
from grid import Tile, generate_grid


class GameStatus(Enum):
    MENU = 0
    PLAYING = 1
    WON = 2
    LOST = 3


# Speeds are px per second, timers and durations are ms.
DEFAULT_GAME_RULES = {
    "player_speed": 240.0,
    "player_hitbox": 30,
    "max_bombs": 3,
    "bomb_blast_radius": 2,
    "bomb_timer": 3000,
    "explosion_duration": 600,
    "corner_snap_threshold": 20.0,
    "enemy_count": 4,
    "enemy_speed": 120.0,
    "enemy_hitbox": 30,
    "enemy_turn_chance": 0.02,  # per 60 Hz frame
    "enemy_contact_ratio": 0.7,  # of a tile
    "enemy_spawn_clearance": 4,
    "enemy_spawn_attempts": 1000,
}


class MapScheme:
    """Named arena layouts, e.g. ``Game(MapScheme().small)``."""

    def __init__(self):
        self.standard = {"name": "standard", "size": (15, 15), "tile_size": 48,
                         "soft_wall_chance": 0.3, "safe_zone": 3}
        self.small = {"name": "small", "size": (9, 9), "tile_size": 48,
                      "soft_wall_chance": 0.3, "safe_zone": 3}
        self.large = {"name": "large", "size": (17, 21), "tile_size": 40,
                      "soft_wall_chance": 0.3, "safe_zone": 3}

    @property
    def names(self):
        return ["standard", "small", "large"]

    def get(self, name):
        if name not in self.names:
            raise ValueError(f"Unknown map scheme '{name}'. Available: {self.names}")
        return dict(getattr(self, name))


class Player:
    def __init__(self, name, x, y, width, height, speed, max_bombs, blast_radius):
        self.name = name
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.alive = True
        self.speed = speed  # px / s
        self.bomb_count = 0  # live bombs owned by this player
        self.max_bombs = max_bombs
        self.blast_radius = blast_radius

    def __repr__(self):
        return f"Player(name={self.name}, pos=({self.x:.1f},{self.y:.1f}), alive={self.alive})"

    @property
    def position(self):
        return (self.x, self.y)


class Game:

    def __init__(self, map_scheme=None, game_rules=None, seed=None, verbose=False):
        '''Initialize the game. The round itself is built by start().'''
        self.verbose = verbose

        ## initialize the map scheme ##
        if map_scheme is None:
            map_scheme = MapScheme().standard
        elif isinstance(map_scheme, str):
            map_scheme = MapScheme().get(map_scheme)
        self.map_scheme = dict(map_scheme)
        rows, cols = self.map_scheme["size"]
        safe_zone = self.map_scheme.get("safe_zone", 3)
        if rows < 5 or cols < 5:
            raise ValueError(f"The arena must be at least 5x5, got {rows}x{cols}")
        if safe_zone + 2 > min(rows, cols):
            raise ValueError(f"Safe zone of {safe_zone} does not fit a {rows}x{cols} arena")
        self.tile_size = self.map_scheme.get("tile_size", 48)

        ## define game rules ##
        self.game_rules = dict(DEFAULT_GAME_RULES)
        if game_rules:
            unknown = set(game_rules) - set(DEFAULT_GAME_RULES)
            if unknown:
                raise ValueError(f"Unknown game rules: {sorted(unknown)}")
            self.game_rules.update(game_rules)

        self.rng = np.random.default_rng(seed)

        ## assign a random ID to the game ##
        self.id = str(random_id_generator())

        self.status = GameStatus.MENU
        self.frame = 0
        self.elapsed_ms = 0.0

        # world state, populated by _init_round()
        self.grid = None
        self.player = None
        self.player_name_to_object = dict()
        self.enemies = []
        self.bombs = []
        self.explosions = []
        self.initial_wall_count = 0
        self.walls_destroyed = 0
        self.enemies_killed = 0
        self.initial_enemy_count = 0
        self._next_explosion_id = 0

    def _init_round(self):
        rules = self.game_rules
        rows, cols = self.map_scheme["size"]

        self.grid = generate_grid(rows, cols, self.tile_size,
                                  soft_wall_chance=self.map_scheme.get("soft_wall_chance", 0.3),
                                  safe_zone=self.map_scheme.get("safe_zone", 3),
                                  rng=self.rng)

        ## spawn the player in the top-left corner ##
        spawn_x, spawn_y = self.grid.cell_center(1, 1)
        self.player = Player("player", spawn_x, spawn_y,
                             rules["player_hitbox"], rules["player_hitbox"],
                             rules["player_speed"], rules["max_bombs"], rules["bomb_blast_radius"])
        self.player_name_to_object = {self.player.name: self.player}

        self.enemies = spawn_enemies(self.grid, rules["enemy_count"], self.rng,
                                     speed=rules["enemy_speed"], hitbox=rules["enemy_hitbox"],
                                     clearance=rules["enemy_spawn_clearance"],
                                     max_attempts=rules["enemy_spawn_attempts"])
        if len(self.enemies) < rules["enemy_count"] and self.verbose:
            print(f"[WARN] Only {len(self.enemies)} of {rules['enemy_count']} enemies could be placed")

        self.bombs = []
        self.explosions = []
        self.frame = 0
        self.elapsed_ms = 0.0
        self.initial_wall_count = self.grid.count(Tile.SOFT_WALL)
        self.walls_destroyed = 0
        self.enemies_killed = 0
        self.initial_enemy_count = len(self.enemies)
        self._next_explosion_id = 0
        self.status = GameStatus.PLAYING

    def start(self):
        assert self.status is not GameStatus.PLAYING, 'The game is already ongoing.'
        self._init_round()
        if self.verbose:
            print('The game has been started! (id: {})'.format(self.id))
        return True

    def restart(self):
        """Throw the current round away and build a new one from scratch."""
        self.id = str(random_id_generator())
        self._init_round()
        if self.verbose:
            print('[INFO] Round restarted (id: {})'.format(self.id))
        return True

    def bomb_at(self, r, c):
        for bomb in self.bombs:
            if bomb.position == (r, c):
                return bomb
        return None

    def get_predicted_blast_coords(self, bomb_r, bomb_c, blast_range):
        return get_predicted_blast_coords(self.grid, bomb_r, bomb_c, blast_range)

    def get_wall_stats(self):
        """Counts initial and current Soft Walls and how many were broken."""
        current_walls = self.grid.count(Tile.SOFT_WALL) if self.grid is not None else 0
        return {
            "initial_walls": self.initial_wall_count,
            "current_walls": current_walls,
            "walls_broken": self.walls_destroyed
        }

    def _place_bomb(self, player):
        # only up to max_bombs live bombs per player
        if player.bomb_count >= player.max_bombs:
            return None
        r, c = self.grid.cell_of(player.x, player.y)
        # one bomb per tile
        if self.bomb_at(r, c) is not None:
            return None

        x, y = self.grid.cell_center(r, c)
        bomb = Bomb(r=r, c=c, x=x, y=y, timer=self.game_rules["bomb_timer"],
                    player_id=player.name, blast_radius=player.blast_radius)
        self.bombs.append(bomb)
        player.bomb_count += 1
        if self.verbose:
            print(f"[DEBUG] Bomb placed at ({r}, {c}) by {player.name} ({player.bomb_count}/{player.max_bombs})")
        return bomb

    def _explode_bomb(self, bomb):
        """Detonate a bomb: free its slot, cast the rays and spawn an explosion."""
        self.bombs.remove(bomb)
        bomb.exploded = True

        owner = self.player_name_to_object.get(bomb.player_id)
        if owner is not None:
            owner.bomb_count = max(owner.bomb_count - 1, 0)

        cells, destroyed = cast_blast(self.grid, bomb.r, bomb.c, bomb.blast_radius)
        self.walls_destroyed += len(destroyed)

        explosion = Explosion(self._next_explosion_id, cells,
                              self.game_rules["explosion_duration"])
        self._next_explosion_id += 1
        self.explosions.append(explosion)

        if self.verbose:
            print(f"[DEBUG] Bomb at ({bomb.r}, {bomb.c}) exploded over {len(cells)} tiles")
            for r, c in destroyed:
                print(f"[DEBUG] Soft Wall at ({r}, {c}) destroyed")
        return explosion

    def _kill_player(self, player, cause):
        player.alive = False
        # Lost is entered once; later hits in the same frame change nothing
        if self.status is GameStatus.PLAYING:
            self.status = GameStatus.LOST
            if self.verbose:
                print(f"[INFO] {player.name} was killed by {cause}")
                print('GAME OVER')

    def _update_player(self, inputs, delta_time_ms):
        player = self.player
        step = player.speed * delta_time_ms / 1000.0

        sx, sy = inputs.direction()
        dx, dy = sx * step, sy * step
        if dx != 0 and dy != 0:
            # keep diagonal speed equal to straight speed
            length = math.hypot(dx, dy)
            dx = dx / length * step
            dy = dy / length * step

        move_with_corner_sliding(self.grid, self.bombs, player, dx, dy,
                                 slide_step=step,
                                 snap_threshold=self.game_rules["corner_snap_threshold"])

        if inputs.consume_bomb():
            self._place_bomb(player)

    def _update_bombs(self, delta_time_ms):
        # newest bombs first
        for bomb in reversed(list(self.bombs)):
            if bomb.tick(delta_time_ms):
                self._explode_bomb(bomb)

    def _update_explosions(self, delta_time_ms):
        player_cell = self.grid.cell_of(self.player.x, self.player.y)

        for explosion in reversed(list(self.explosions)):
            # hit-test before ageing so one long frame cannot skip a blast
            cells = set(explosion.cells)
            if player_cell in cells and self.player.alive:
                self._kill_player(self.player, "an explosion")

            survivors = []
            for enemy in self.enemies:
                if self.grid.cell_of(enemy.x, enemy.y) in cells:
                    self.enemies_killed += 1
                    if self.verbose:
                        print(f"[DEBUG] Enemy {enemy.id} destroyed at {self.grid.cell_of(enemy.x, enemy.y)}")
                else:
                    survivors.append(enemy)
            self.enemies = survivors

            if not explosion.tick(delta_time_ms):
                self.explosions.remove(explosion)

    def _update_enemies(self, delta_time_ms):
        player = self.player
        contact_distance = self.game_rules["enemy_contact_ratio"] * self.tile_size
        for enemy in self.enemies:
            if enemy.distance_to(player.x, player.y) < contact_distance and player.alive:
                self._kill_player(player, "an enemy")
            enemy.update(self.grid, self.bombs, delta_time_ms, self.rng,
                         turn_chance=self.game_rules["enemy_turn_chance"])

    def check_game_status(self):
        if self.status is GameStatus.PLAYING and len(self.enemies) == 0:
            self.status = GameStatus.WON
            if self.verbose:
                print('[INFO] All enemies eliminated. YOU WIN')
        return self.status

    def update_frame(self, delta_time_ms, inputs=None, restart_requested=False):
        """Advance the simulation by one frame.

        Args:
            delta_time_ms (float): Wall-clock ms since the previous frame.
            inputs (InputSnapshot | dict): Held actions for this frame. A
                consumed bomb press is cleared in the snapshot, or in the
                mapping itself when a mutable mapping is passed.
            restart_requested (bool): Start a new round. Only honoured from
                Menu, Won or Lost; the restart takes the whole frame.

        Returns:
            bool: True if a frame or a restart was applied, False if the round
                is not being played.
        """
        if delta_time_ms < 0:
            raise ValueError(f"delta_time_ms must be >= 0, got {delta_time_ms}")

        if restart_requested and self.status is not GameStatus.PLAYING:
            if self.status is GameStatus.MENU:
                return self.start()
            return self.restart()

        if self.status is not GameStatus.PLAYING:
            return False

        snapshot = as_input_snapshot(inputs)

        # update frame
        self.frame += 1
        self.elapsed_ms += delta_time_ms

        self._update_player(snapshot, delta_time_ms)
        release_bomb_press(inputs)
        self._update_bombs(delta_time_ms)
        self._update_explosions(delta_time_ms)
        self._update_enemies(delta_time_ms)

        self.check_game_status()
        return True

    def get_status_dict(self):
        """Snapshot of the world for a renderer, safe to keep across frames."""
        d = {}

        ## GAME PROPERTIES ##
        d['game_properties'] = {}
        d['game_properties']['id'] = self.id
        d['game_properties']['board_dimensions'] = tuple(self.map_scheme["size"])
        d['game_properties']['tile_size'] = self.tile_size
        d['game_properties']['status'] = self.status.name.lower()
        if self.status is GameStatus.WON:
            d['game_properties']['outcome'] = 'won'
        elif self.status is GameStatus.LOST:
            d['game_properties']['outcome'] = 'lost'
        elif self.status is GameStatus.PLAYING:
            d['game_properties']['outcome'] = 'ongoing'
        else:
            d['game_properties']['outcome'] = None
        d['game_properties']['frame'] = self.frame
        d['game_properties']['elapsed_ms'] = self.elapsed_ms
        d['game_properties']['enemies_killed'] = self.enemies_killed

        if self.grid is None:
            # nothing has been built yet (menu before the first round)
            d['board'] = None
            d['player'] = None
            d['enemies'] = []
            d['bombs'] = []
            d['explosions'] = []
            return d

        ## BOARD ##
        d['board'] = self.grid.board.copy()

        ## ENTITIES ##
        player = self.player
        d['player'] = {
            'x': player.x,
            'y': player.y,
            'cell': self.grid.cell_of(player.x, player.y),
            'alive': player.alive,
            'bomb_count': player.bomb_count,
            'max_bombs': player.max_bombs,
        }
        d['enemies'] = [
            {
                'id': enemy.id,
                'x': enemy.x,
                'y': enemy.y,
                'cell': self.grid.cell_of(enemy.x, enemy.y),
                'direction': enemy.direction,
                'facing': enemy.facing,
            }
            for enemy in self.enemies
        ]
        d['bombs'] = [
            {
                'x': bomb.x,
                'y': bomb.y,
                'cell': bomb.position,
                'remaining': bomb.remaining_ratio,
                'player_id': bomb.player_id,
            }
            for bomb in self.bombs
        ]
        d['explosions'] = [
            {
                'id': explosion.id,
                'cells': explosion.cells,
                'remaining': explosion.remaining_ratio,
                'alphas': [p.alpha for p in explosion.particles],
            }
            for explosion in self.explosions
        ]
        return d
