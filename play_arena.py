import argparse
import pygame

from controls import Action, InputSnapshot
from game import Game, MapScheme
from render_tool import RenderTool

# Held keys map onto movement actions
KEY_MAP = {
    pygame.K_UP: Action.MOVE_UP,
    pygame.K_w: Action.MOVE_UP,
    pygame.K_DOWN: Action.MOVE_DOWN,
    pygame.K_s: Action.MOVE_DOWN,
    pygame.K_LEFT: Action.MOVE_LEFT,
    pygame.K_a: Action.MOVE_LEFT,
    pygame.K_RIGHT: Action.MOVE_RIGHT,
    pygame.K_d: Action.MOVE_RIGHT,
}
BOMB_KEY = pygame.K_SPACE
RESTART_KEYS = (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_r)
QUIT_KEY = pygame.K_ESCAPE


def parse_args():
    parser = argparse.ArgumentParser(description='Play Bomber Arena: clear the maze of enemies.')
    parser.add_argument('--map', type=str, default='standard', choices=MapScheme().names,
                        help='Arena layout to play on.')
    parser.add_argument('--seed', type=int, default=None, help='Seed for the arena and enemy AI.')
    parser.add_argument('--fps', type=int, default=60, help='Frame rate cap.')
    parser.add_argument('--verbose', action='store_true', help='Print game events to the console.')
    return parser.parse_args()


def collect_inputs(events, inputs):
    """Fold a batch of pygame events into the input snapshot.

    Movement keys are tracked as held/released. A Space KEYDOWN presses the
    bomb action once; the game clears it when it places the bomb.

    Returns:
        tuple: (restart_requested, quit_requested)
    """
    restart_requested = False
    quit_requested = False
    for event in events:
        if event.type == pygame.QUIT:
            quit_requested = True
        elif event.type == pygame.KEYDOWN:
            if event.key == QUIT_KEY:
                quit_requested = True
            elif event.key in RESTART_KEYS:
                restart_requested = True
            elif event.key == BOMB_KEY:
                inputs.press(Action.PLACE_BOMB)
            elif event.key in KEY_MAP:
                inputs.press(KEY_MAP[event.key])
        elif event.type == pygame.KEYUP:
            if event.key in KEY_MAP:
                action = KEY_MAP[event.key]
                # another key bound to the same action may still be down
                pressed = pygame.key.get_pressed()
                if not any(pressed[k] for k, a in KEY_MAP.items() if a is action and k != event.key):
                    inputs.release(action)
    return restart_requested, quit_requested


def main():
    args = parse_args()

    print("--- Bomber Arena ---")
    print("Controls:")
    print("  Arrows / WASD: Move")
    print("  Space: Place Bomb")
    print("  Enter / R: Start or restart")
    print("  Esc: Quit")
    print("--------------------\n")

    game = Game(MapScheme().get(args.map), seed=args.seed, verbose=args.verbose)
    render_tool = RenderTool(game)

    pygame.init()
    pygame.display.set_caption("Bomber Arena - Arrows: Move | Space: Bomb | Enter: Start")
    screen = pygame.display.set_mode(render_tool.size)
    clock = pygame.time.Clock()

    inputs = InputSnapshot()
    last_status = game.status
    try:
        while True:
            delta_time_ms = clock.tick(args.fps)
            restart_requested, quit_requested = collect_inputs(pygame.event.get(), inputs)
            if quit_requested:
                print('Quit requested. Closing game..')
                break

            if restart_requested:
                # a fresh round starts with nothing held
                inputs.clear()
            game.update_frame(delta_time_ms, inputs, restart_requested=restart_requested)

            if game.status is not last_status:
                print(f"[INFO] Round status: {game.status.name}")
                last_status = game.status

            render_tool.draw(screen, game.get_status_dict())
            pygame.display.flip()
    except KeyboardInterrupt:
        print("\nGame interrupted by user (Ctrl+C).")
    finally:
        stats = game.get_wall_stats()
        print(f"Final score: {game.enemies_killed} enemies, {stats['walls_broken']} walls destroyed")
        pygame.quit()


if __name__ == '__main__':
    main()
