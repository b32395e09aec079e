import gymnasium as gym
from gymnasium import spaces
import numpy as np
import pygame

from controls import Action, InputSnapshot
from game import Game, GameStatus, MapScheme
from grid import Tile
from render_tool import RenderTool

# Constants for observation layers
OBS_LAYER_BOARD = 0
OBS_LAYER_PLAYER_POS = 1
OBS_LAYER_ENEMY_POS = 2
OBS_LAYER_BOMB_LOCATIONS = 3
OBS_LAYER_DANGER = 4  # predicted blast cells, 1.0 = about to explode
OBS_LAYER_EXPLOSION = 5  # burning cells, 1.0 = just exploded
NUM_OBS_LAYERS = 6

# Tile values for the board layer in observation
OBS_TILE_FLOOR = 0.0
OBS_TILE_HARD_WALL = 1.0
OBS_TILE_SOFT_WALL = 2.0

# Action mapping
ACTION_UP = 0
ACTION_DOWN = 1
ACTION_LEFT = 2
ACTION_RIGHT = 3
ACTION_STILL = 4
ACTION_BOMB = 5

ACTION_TO_INPUT = {
    ACTION_UP: Action.MOVE_UP,
    ACTION_DOWN: Action.MOVE_DOWN,
    ACTION_LEFT: Action.MOVE_LEFT,
    ACTION_RIGHT: Action.MOVE_RIGHT,
    ACTION_STILL: None,
    ACTION_BOMB: Action.PLACE_BOMB,
}

# Reward values
REWARD_ENEMY_KILLED = 100.0
REWARD_WALL_BROKEN = 10.0
REWARD_WIN = 500.0
PENALTY_DEATH = -200.0
PENALTY_INEFFECTIVE_MOVE = -1.0


class BomberEnv(gym.Env):
    """Headless arena driver for agents.

    One ``step`` holds the chosen action for ``frames_per_step`` frames of
    ``frame_ms`` each, so an agent decides a few times per second while the
    simulation still runs at a display-like rate.
    """
    metadata = {'render_modes': ['human', 'rgb_array'], 'render_fps': 30}

    def __init__(self, map_scheme=None, game_rules=None, render_mode=None, max_episode_steps=1000,
                 frame_ms=1000.0 / 60.0, frames_per_step=6, verbose=False):
        super().__init__()

        if map_scheme is None:
            self.map_scheme = MapScheme().small  # Default map
        elif isinstance(map_scheme, str):
            self.map_scheme = MapScheme().get(map_scheme)
        else:
            self.map_scheme = map_scheme
        self.game_rules = game_rules
        self.verbose = verbose

        self.frame_ms = frame_ms
        self.frames_per_step = frames_per_step
        self.max_episode_steps = max_episode_steps
        self.current_step_in_episode = 0

        self.game = Game(map_scheme=self.map_scheme, game_rules=self.game_rules, verbose=self.verbose)
        self.game.start()

        self.action_space = spaces.Discrete(6)  # 0:Up, 1:Down, 2:Left, 3:Right, 4:Still, 5:Bomb

        rows, cols = self.map_scheme["size"]
        self.observation_space = spaces.Box(
            low=0.0, high=max(OBS_TILE_SOFT_WALL, 1.0),
            shape=(rows, cols, NUM_OBS_LAYERS),
            dtype=np.float32
        )

        assert render_mode is None or render_mode in self.metadata['render_modes'], \
            f"Unsupported render mode: {render_mode}"
        self.render_mode = render_mode

        # Pygame rendering attributes
        self.screen = None
        self.clock = None
        self.render_tool = RenderTool(self.game)

    def _init_pygame(self):
        pygame.init()
        pygame.display.set_caption("Bomber Arena (agent)")
        self.screen = pygame.display.set_mode(self.render_tool.size)
        self.clock = pygame.time.Clock()

    def _get_obs(self):
        game = self.game
        obs = np.zeros(self.observation_space.shape, dtype=np.float32)

        # Layer 0: Board state
        board = game.grid.board
        board_obs = np.full(board.shape, OBS_TILE_FLOOR, dtype=np.float32)
        board_obs[board == Tile.HARD_WALL] = OBS_TILE_HARD_WALL
        board_obs[board == Tile.SOFT_WALL] = OBS_TILE_SOFT_WALL
        obs[:, :, OBS_LAYER_BOARD] = board_obs

        # Layer 1: Player position
        if game.player.alive:
            r, c = game.grid.cell_of(game.player.x, game.player.y)
            if game.grid.in_bounds(r, c):
                obs[r, c, OBS_LAYER_PLAYER_POS] = 1.0

        # Layer 2: Enemy positions
        for enemy in game.enemies:
            r, c = game.grid.cell_of(enemy.x, enemy.y)
            if game.grid.in_bounds(r, c):
                obs[r, c, OBS_LAYER_ENEMY_POS] = 1.0

        # Layers 3-4: Bombs and the cells they are about to hit
        for bomb in game.bombs:
            obs[bomb.r, bomb.c, OBS_LAYER_BOMB_LOCATIONS] = 1.0
            urgency = 1.0 - bomb.remaining_ratio
            for br, bc in game.get_predicted_blast_coords(bomb.r, bomb.c, bomb.blast_radius):
                obs[br, bc, OBS_LAYER_DANGER] = max(obs[br, bc, OBS_LAYER_DANGER], urgency)

        # Layer 5: Burning cells
        for explosion in game.explosions:
            for er, ec in explosion.cells:
                obs[er, ec, OBS_LAYER_EXPLOSION] = max(obs[er, ec, OBS_LAYER_EXPLOSION], explosion.remaining_ratio)
        return obs

    def _get_info(self):
        game = self.game
        return {
            "status": game.status.name.lower(),
            "player_pos": game.grid.cell_of(game.player.x, game.player.y),
            "player_alive": game.player.alive,
            "bombs_active": len(game.bombs),
            "enemies_left": len(game.enemies),
            "enemies_killed": game.enemies_killed,
            "current_walls": game.get_wall_stats()["current_walls"],
            "walls_broken": game.get_wall_stats()["walls_broken"],
        }

    def step(self, action):
        self.current_step_in_episode += 1
        game = self.game
        reward = 0.0
        rewards_breakdown = {}

        # Store state before action for reward calculation
        walls_before = game.walls_destroyed
        kills_before = game.enemies_killed
        pos_before = game.player.position

        # 1. Hold the action for a few frames; a bomb is pressed once
        held = ACTION_TO_INPUT.get(int(action))
        for i in range(self.frames_per_step):
            inputs = InputSnapshot()
            if held is Action.PLACE_BOMB:
                if i == 0:
                    inputs.press(Action.PLACE_BOMB)
            elif held is not None:
                inputs.press(held)
            if not game.update_frame(self.frame_ms, inputs):
                break  # round is over
            if game.status is not GameStatus.PLAYING:
                break

        # 2. Calculate rewards based on outcome
        kills = game.enemies_killed - kills_before
        if kills > 0:
            rewards_breakdown["enemy_killed"] = REWARD_ENEMY_KILLED * kills
        walls = game.walls_destroyed - walls_before
        if walls > 0:
            rewards_breakdown["wall_broken"] = REWARD_WALL_BROKEN * walls
        if int(action) in (ACTION_UP, ACTION_DOWN, ACTION_LEFT, ACTION_RIGHT) and game.player.position == pos_before:
            rewards_breakdown["ineffective_move_penalty"] = PENALTY_INEFFECTIVE_MOVE
        if game.status is GameStatus.WON:
            rewards_breakdown["win"] = REWARD_WIN
        elif game.status is GameStatus.LOST:
            rewards_breakdown["death_penalty"] = PENALTY_DEATH
        reward = float(sum(rewards_breakdown.values()))

        # 3. Determine termination and truncation
        terminated = game.status in (GameStatus.WON, GameStatus.LOST)
        truncated = self.current_step_in_episode >= self.max_episode_steps

        obs = self._get_obs()
        info = self._get_info()
        info["rewards_breakdown"] = rewards_breakdown

        if self.render_mode == "human":
            self.render()
        return obs, reward, terminated, truncated, info

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)

        # Re-instantiate the Game object, seeded from the env's generator
        game_seed = int(self.np_random.integers(0, 2 ** 31 - 1))
        self.game = Game(map_scheme=self.map_scheme, game_rules=self.game_rules,
                         seed=game_seed, verbose=self.verbose)
        self.game.start()
        self.render_tool = RenderTool(self.game)
        self.current_step_in_episode = 0

        if len(self.game.enemies) < self.game.game_rules["enemy_count"]:
            print(f"[WARN] Env Reset: only {len(self.game.enemies)} enemies spawned")

        if self.render_mode == "human":
            self.render()
        return self._get_obs(), self._get_info()

    def render(self):
        if self.render_mode is None:
            return None

        if self.render_mode == "human":
            if self.screen is None:
                self._init_pygame()
            self.render_tool.draw(self.screen)
            pygame.event.pump()
            pygame.display.flip()
            self.clock.tick(self.metadata["render_fps"])
            return None
        elif self.render_mode == "rgb_array":
            surface = self.render_tool.render_current_frame()
            return self.render_tool.to_rgb_array(surface)

    def close(self):
        if self.screen is not None:
            pygame.display.quit()
            pygame.quit()
            self.screen = None
            self.clock = None


# Example usage (optional, for testing)
if __name__ == '__main__':
    env = BomberEnv(render_mode='human')
    obs, info = env.reset()
    done = False
    total_reward_acc = 0
    for _ in range(500):
        action = env.action_space.sample()  # Sample random action
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward_acc += reward
        if terminated or truncated:
            print(f"Episode finished ({info['status']}). Total reward: {total_reward_acc}")
            obs, info = env.reset()
            total_reward_acc = 0
        # Allow window to close by checking for pygame.QUIT event
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                done = True
                break
        if done:
            break
    env.close()
