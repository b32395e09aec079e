"""Tests for the gymnasium environment wrapper."""

import numpy as np

from bombs import Explosion
from bomber_env import (
    ACTION_BOMB,
    ACTION_STILL,
    ACTION_UP,
    NUM_OBS_LAYERS,
    OBS_LAYER_BOMB_LOCATIONS,
    OBS_LAYER_DANGER,
    OBS_LAYER_PLAYER_POS,
    PENALTY_DEATH,
    PENALTY_INEFFECTIVE_MOVE,
    REWARD_WIN,
    BomberEnv,
)
from game import GameStatus


def test_reset_returns_a_valid_observation():
    env = BomberEnv(map_scheme="small")
    obs, info = env.reset(seed=0)

    assert obs.shape == (9, 9, NUM_OBS_LAYERS)
    assert obs.dtype == np.float32
    assert env.observation_space.contains(obs)
    assert obs[1, 1, OBS_LAYER_PLAYER_POS] == 1.0
    assert info["status"] == "playing"
    assert info["player_pos"] == (1, 1)
    env.close()


def test_bomb_action_places_one_bomb_and_marks_danger():
    env = BomberEnv(map_scheme="small")
    env.reset(seed=0)

    obs, reward, terminated, truncated, info = env.step(ACTION_BOMB)

    assert info["bombs_active"] == 1
    assert obs[1, 1, OBS_LAYER_BOMB_LOCATIONS] == 1.0
    assert obs[1, 1, OBS_LAYER_DANGER] > 0.0
    assert not terminated and not truncated
    env.close()


def test_walking_into_a_wall_is_penalised():
    env = BomberEnv(map_scheme="small")
    env.reset(seed=0)

    # the first step walks up to the wall, the second cannot move
    env.step(ACTION_UP)
    _, reward, _, _, info = env.step(ACTION_UP)

    assert info["rewards_breakdown"] == {"ineffective_move_penalty": PENALTY_INEFFECTIVE_MOVE}
    assert reward == PENALTY_INEFFECTIVE_MOVE
    env.close()


def test_death_terminates_with_a_penalty():
    env = BomberEnv(map_scheme="small")
    env.reset(seed=0)
    game = env.game
    cell = game.grid.cell_of(game.player.x, game.player.y)
    game.explosions.append(Explosion(99, [cell], 600))

    _, reward, terminated, _, info = env.step(ACTION_STILL)

    assert terminated
    assert info["status"] == "lost"
    assert info["rewards_breakdown"]["death_penalty"] == PENALTY_DEATH
    assert reward == PENALTY_DEATH
    env.close()


def test_clearing_the_arena_terminates_with_a_bonus():
    env = BomberEnv(map_scheme="small")
    env.reset(seed=0)
    env.game.enemies = []

    _, reward, terminated, _, info = env.step(ACTION_STILL)

    assert terminated
    assert env.game.status is GameStatus.WON
    assert info["rewards_breakdown"] == {"win": REWARD_WIN}
    assert reward == REWARD_WIN
    env.close()


def test_episode_is_truncated_at_the_step_limit():
    env = BomberEnv(map_scheme="small", max_episode_steps=2)
    env.reset(seed=0)
    # keep enemies out of the way so the round cannot end early
    env.game.enemies = env.game.enemies[:1]
    env.game.enemies[0].speed = 0

    _, _, _, truncated, _ = env.step(ACTION_STILL)
    assert not truncated
    _, _, terminated, truncated, _ = env.step(ACTION_STILL)
    assert truncated and not terminated
    env.close()


def test_seeded_resets_are_reproducible():
    env_a = BomberEnv(map_scheme="small")
    env_b = BomberEnv(map_scheme="small")
    obs_a, _ = env_a.reset(seed=123)
    obs_b, _ = env_b.reset(seed=123)
    assert np.array_equal(obs_a, obs_b)

    for action in [3, 3, 1, 5, 4, 2]:
        obs_a, reward_a, _, _, _ = env_a.step(action)
        obs_b, reward_b, _, _, _ = env_b.step(action)
        assert np.array_equal(obs_a, obs_b)
        assert reward_a == reward_b
    env_a.close()
    env_b.close()


def test_rgb_array_render_matches_the_arena_size():
    env = BomberEnv(map_scheme="small", render_mode="rgb_array")
    env.reset(seed=0)

    frame = env.render()

    tile_size = env.map_scheme["tile_size"]
    assert frame.shape == (9 * tile_size, 9 * tile_size, 3)
    assert frame.dtype == np.uint8
    env.close()
