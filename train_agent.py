import os
import argparse
import time
import torch.nn as nn
import torch as th
from gymnasium import spaces

from stable_baselines3 import DQN, PPO
from sb3_contrib import QRDQN
from stable_baselines3.common.vec_env import DummyVecEnv, VecFrameStack
from stable_baselines3.common.monitor import Monitor
from stable_baselines3.common.callbacks import BaseCallback, CheckpointCallback, EvalCallback
from stable_baselines3.common.torch_layers import BaseFeaturesExtractor

from bomber_env import BomberEnv
from game import MapScheme

MODEL_CLASSES = {
    'dqn': DQN,
    'qrdqn': QRDQN,
    'ppo': PPO
}


class ArenaCNN(BaseFeaturesExtractor):
    """CNN feature extractor for the arena observation (rows, cols, layers)."""

    def __init__(self, observation_space: spaces.Box, features_dim: int = 256):
        super().__init__(observation_space, features_dim)

        n_input_channels = observation_space.shape[2]  # Channels last

        self.cnn = nn.Sequential(
            nn.Conv2d(n_input_channels, 32, kernel_size=3, stride=1, padding=1),
            nn.ReLU(),
            nn.Conv2d(32, 64, kernel_size=3, stride=1, padding=1),
            nn.ReLU(),
            nn.Flatten(),
        )

        # Compute shape by doing one forward pass
        with th.no_grad():
            sample_obs = th.as_tensor(observation_space.sample()[None]).float()
            n_flatten = self.cnn(sample_obs.permute(0, 3, 1, 2)).shape[1]

        self.linear = nn.Sequential(
            nn.Linear(n_flatten, features_dim),
            nn.ReLU()
        )

    def forward(self, observations: th.Tensor) -> th.Tensor:
        # Permute from (B, H, W, C) to (B, C, H, W) for PyTorch CNN
        return self.linear(self.cnn(observations.permute(0, 3, 1, 2)))


def make_env(map_name="small", log_dir=None, rank=0, seed=0, info_keywords_to_log=()):
    """
    Utility function for a monitored env.
    :param map_name: (str) Arena layout for BomberEnv
    :param log_dir: (str) Directory for Monitor logs
    :param rank: (int) index of the env
    :param seed: (int) the initial seed for RNG
    :param info_keywords_to_log: (tuple) extra info keywords to log
    """
    def _init():
        env = BomberEnv(map_scheme=MapScheme().get(map_name))
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            monitor_path = os.path.join(log_dir, str(rank))
        else:
            monitor_path = None
        env = Monitor(env, filename=monitor_path, info_keywords=info_keywords_to_log)
        env.reset(seed=seed + rank)
        return env
    return _init


class StepwiseProgressCallback(BaseCallback):
    """Print enemies left and walls broken every ``log_frequency`` steps."""

    def __init__(self, log_frequency: int = 1000, verbose: int = 0):
        super().__init__(verbose)
        self.log_frequency = log_frequency

    def _on_step(self) -> bool:
        if self.n_calls % self.log_frequency == 0:
            infos = self.locals.get('infos')
            if infos:
                info = infos[0]
                print(f"Step: {self.num_timesteps}, Enemies left: {info.get('enemies_left')}, "
                      f"Walls broken: {info.get('walls_broken')}")
        return True


def parse_args():
    parser = argparse.ArgumentParser(description='Train an agent on the bomber arena')
    parser.add_argument('--algo', type=str, default='ppo', choices=list(MODEL_CLASSES), help='RL algorithm to use')
    parser.add_argument('--map', type=str, default='small', choices=MapScheme().names, help='Arena layout to train on')
    parser.add_argument('--total-timesteps', type=int, default=500000, help='Total timesteps for training')
    parser.add_argument('--log-dir', type=str, default='logs/arena_agent_logs', help='Directory to save Monitor logs')
    parser.add_argument('--model-dir', type=str, default='models/arena_agent_models', help='Directory to save trained models')
    parser.add_argument('--lr', type=float, default=2e-4, help='Learning rate')
    parser.add_argument('--buffer-size', type=int, default=100000, help='Replay buffer size (for DQN/QRDQN)')
    parser.add_argument('--learning-starts', type=int, default=10000, help='How many steps to collect before learning starts')
    parser.add_argument('--batch-size', type=int, default=64, help='Minibatch size')
    parser.add_argument('--gamma', type=float, default=0.99, help='Discount factor')
    parser.add_argument('--n-stack', type=int, default=4, help='Number of frames to stack')
    parser.add_argument('--device', type=str, default='auto', choices=['auto', 'cpu', 'cuda', 'mps'], help='Device to use for training')
    parser.add_argument('--save-freq', type=int, default=50000, help='Save model checkpoint every N steps')
    parser.add_argument('--eval-freq', type=int, default=10000, help='Evaluate model every N steps')
    parser.add_argument('--seed', type=int, default=0, help='Base seed for the environments')
    parser.add_argument('--load-path', type=str, default=None, help='Path to a pre-trained model to continue training')
    return parser.parse_args()


def build_model(args, train_env, log_dir):
    ModelClass = MODEL_CLASSES.get(args.algo)
    if ModelClass is None:
        raise ValueError(f"Unsupported algorithm: {args.algo}")

    if args.load_path:
        print(f"Loading model from: {args.load_path}")
        return ModelClass.load(args.load_path, env=train_env, tensorboard_log=log_dir, device=args.device)

    policy_kwargs = dict(
        features_extractor_class=ArenaCNN,
        features_extractor_kwargs=dict(features_dim=256),
    )
    common = dict(policy_kwargs=policy_kwargs, learning_rate=args.lr, batch_size=args.batch_size,
                  gamma=args.gamma, verbose=1, tensorboard_log=log_dir, device=args.device)
    if args.algo == 'ppo':
        return PPO('CnnPolicy', train_env, n_steps=2048, **common)

    # off-policy: observations are already small float planes
    policy_kwargs['net_arch'] = [256, 256]
    policy_kwargs['normalize_images'] = False
    return ModelClass('CnnPolicy', train_env, buffer_size=args.buffer_size,
                      learning_starts=args.learning_starts, **common)


def main():
    args = parse_args()

    # Create a unique subdirectory for this training run's logs and models
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    current_log_dir = os.path.join(args.log_dir, f"{args.algo}_{timestamp}")
    current_model_dir = os.path.join(args.model_dir, f"{args.algo}_{timestamp}")
    os.makedirs(current_log_dir, exist_ok=True)
    os.makedirs(os.path.join(current_model_dir, "best"), exist_ok=True)

    # Keywords from the 'info' dictionary returned by env.step() to log with Monitor
    info_keywords_to_log = ('enemies_killed', 'walls_broken', 'status')

    train_env = DummyVecEnv([make_env(map_name=args.map, log_dir=current_log_dir, rank=0,
                                      seed=args.seed, info_keywords_to_log=info_keywords_to_log)])
    train_env = VecFrameStack(train_env, n_stack=args.n_stack)

    eval_env = DummyVecEnv([make_env(map_name=args.map, log_dir=os.path.join(current_log_dir, "eval"),
                                     rank=100, seed=args.seed, info_keywords_to_log=info_keywords_to_log)])
    eval_env = VecFrameStack(eval_env, n_stack=args.n_stack)

    model = build_model(args, train_env, current_log_dir)

    print(f"Logs will be saved to: {current_log_dir}")
    print(f"Models will be saved to: {current_model_dir}")

    callbacks = [
        CheckpointCallback(save_freq=args.save_freq, save_path=current_model_dir,
                           name_prefix=f"{args.algo}_arena"),
        EvalCallback(eval_env, best_model_save_path=os.path.join(current_model_dir, 'best'),
                     log_path=os.path.join(current_log_dir, 'eval_results'),
                     eval_freq=args.eval_freq, deterministic=True, render=False),
        StepwiseProgressCallback(log_frequency=1000),
    ]

    model.learn(total_timesteps=args.total_timesteps, callback=callbacks,
                reset_num_timesteps=(args.load_path is None))

    final_model_path = os.path.join(current_model_dir, f"{args.algo}_arena_final.zip")
    model.save(final_model_path)

    print("--- Training Complete ---")
    print(f"Final model saved to: {final_model_path}")
    print(f"Tensorboard logs: tensorboard --logdir {current_log_dir}")


if __name__ == '__main__':
    main()
