import argparse
import os
from collections import defaultdict

import numpy as np
from stable_baselines3.common.vec_env import DummyVecEnv, VecFrameStack

from bomber_env import BomberEnv
from game import MapScheme
from train_agent import MODEL_CLASSES

# Keys from BomberEnv's info['rewards_breakdown']
KNOWN_REWARD_KEYS = [
    "enemy_killed",
    "wall_broken",
    "win",
    "death_penalty",
    "ineffective_move_penalty",
]

EPISODE_OUTCOMES = ["won", "lost", "timeout"]


def evaluate_agent(model_path, algo, map_name="small", episodes=20, n_stack=4, render=False, deterministic=True):
    """Run a trained agent and collect outcome statistics.

    Args:
        model_path (str): Path to the trained model file (.zip).
        algo (str): Algorithm the model was trained with.
        map_name (str): Arena layout, must match the one used in training.
        episodes (int): Number of episodes to run.
        n_stack (int): Frames stacked during training.
        render (bool): Whether to render the environment.
        deterministic (bool): Whether to use deterministic actions from the model.

    Returns:
        dict: Aggregated results.
    """
    if not os.path.exists(model_path):
        raise ValueError(f"Model path not found: {model_path}")
    ModelClass = MODEL_CLASSES.get(algo)
    if ModelClass is None:
        raise ValueError(f"Unsupported algorithm: {algo}")

    raw_env = BomberEnv(map_scheme=MapScheme().get(map_name), render_mode='human' if render else None)
    env = VecFrameStack(DummyVecEnv([lambda: raw_env]), n_stack=n_stack)
    model = ModelClass.load(model_path, env=env)
    print(f"Successfully loaded model from: {model_path}")

    outcome_counts = defaultdict(int)
    total_rewards_by_source = defaultdict(float)
    episode_rewards = []
    episode_lengths = []
    episode_kills = []

    try:
        for episode_num in range(episodes):
            obs = env.reset()  # VecEnv reset returns only obs
            total_reward = 0.0
            steps = 0
            while True:
                steps += 1
                action, _states = model.predict(obs, deterministic=deterministic)
                obs, reward, done, infos = env.step(action)
                info = infos[0]
                total_reward += float(reward[0])
                for key, value in info.get('rewards_breakdown', {}).items():
                    total_rewards_by_source[key] += value
                if done[0]:
                    # the VecEnv already reset; the last info still has the final status
                    if info.get('TimeLimit.truncated', False) or info.get('status') == 'playing':
                        outcome_counts["timeout"] += 1
                    else:
                        outcome_counts[info.get('status', 'lost')] += 1
                    episode_kills.append(info.get('enemies_killed', 0))
                    break
            episode_rewards.append(total_reward)
            episode_lengths.append(steps)
            print(f"Episode {episode_num + 1}: reward {total_reward:.2f} in {steps} steps")
    finally:
        env.close()

    return {
        "outcomes": dict(outcome_counts),
        "rewards_by_source": dict(total_rewards_by_source),
        "mean_reward": float(np.mean(episode_rewards)) if episode_rewards else 0.0,
        "mean_length": float(np.mean(episode_lengths)) if episode_lengths else 0.0,
        "mean_enemies_killed": float(np.mean(episode_kills)) if episode_kills else 0.0,
    }


def print_report(results, episodes):
    print("\n--- Evaluation Summary ---")
    for outcome in EPISODE_OUTCOMES:
        count = results["outcomes"].get(outcome, 0)
        print(f"  {outcome:<8} {count:>4} ({100.0 * count / max(episodes, 1):.1f}%)")
    print(f"  Mean reward:          {results['mean_reward']:.2f}")
    print(f"  Mean episode length:  {results['mean_length']:.1f} steps")
    print(f"  Mean enemies killed:  {results['mean_enemies_killed']:.2f}")
    print("  Reward by source:")
    for key in KNOWN_REWARD_KEYS:
        print(f"    {key:<26} {results['rewards_by_source'].get(key, 0.0):>10.1f}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Evaluate a trained arena agent.')
    parser.add_argument('--model-path', type=str, required=True, help='Path to the trained model (.zip file).')
    parser.add_argument('--algo', type=str, required=True, choices=list(MODEL_CLASSES),
                        help='Algorithm the model was trained with.')
    parser.add_argument('--map', type=str, default='small', choices=MapScheme().names, help='Arena layout.')
    parser.add_argument('--episodes', type=int, default=20, help='Number of episodes to run.')
    parser.add_argument('--n-stack', type=int, default=4, help='Number of frames stacked during training.')
    parser.add_argument('--render', action='store_true', help='Render the episodes.')
    parser.add_argument('--stochastic', action='store_false', dest='deterministic',
                        help='Use stochastic actions instead of deterministic.')
    args = parser.parse_args()

    results = evaluate_agent(args.model_path, args.algo, map_name=args.map, episodes=args.episodes,
                             n_stack=args.n_stack, render=args.render, deterministic=args.deterministic)
    print_report(results, args.episodes)
