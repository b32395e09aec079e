from collections.abc import MutableMapping
from enum import Enum


class Action(Enum):
    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    PLACE_BOMB = "place_bomb"


MOVEMENT_ACTIONS = (Action.MOVE_UP, Action.MOVE_DOWN, Action.MOVE_LEFT, Action.MOVE_RIGHT)


class InputSnapshot:
    """Which abstract actions are held during one tick.

    Movement actions are level-triggered: they stay active for as long as the
    input collector reports them held. ``PLACE_BOMB`` is edge-triggered: the
    game reads it through ``consume_bomb()``, which clears the flag, so one
    press yields at most one bomb even if the device keeps reporting it held.
    """

    def __init__(self, held=None):
        self.held = {action: False for action in Action}
        if held:
            for action, value in dict(held).items():
                self.held[Action(action)] = bool(value)

    def __repr__(self):
        active = [action.value for action, value in self.held.items() if value]
        return f"InputSnapshot({active})"

    @classmethod
    def from_actions(cls, *actions):
        return cls({action: True for action in actions})

    def is_held(self, action):
        return self.held[Action(action)]

    def press(self, action):
        self.held[Action(action)] = True

    def release(self, action):
        self.held[Action(action)] = False

    def clear(self):
        for action in self.held:
            self.held[action] = False

    def direction(self):
        """Return the (dx, dy) sign pair of the held movement actions."""
        dx = int(self.held[Action.MOVE_RIGHT]) - int(self.held[Action.MOVE_LEFT])
        dy = int(self.held[Action.MOVE_DOWN]) - int(self.held[Action.MOVE_UP])
        return dx, dy

    def consume_bomb(self):
        pressed = self.held[Action.PLACE_BOMB]
        self.held[Action.PLACE_BOMB] = False
        return pressed

    def copy(self):
        return InputSnapshot(self.held)


def as_input_snapshot(inputs):
    """Accept an ``InputSnapshot``, a mapping of actions to bools, or None."""
    if inputs is None:
        return InputSnapshot()
    if isinstance(inputs, InputSnapshot):
        return inputs
    return InputSnapshot(inputs)


def release_bomb_press(inputs):
    """Clear a consumed bomb press in a caller-owned mapping of actions."""
    if isinstance(inputs, MutableMapping):
        for key in inputs:
            if Action(key) is Action.PLACE_BOMB:
                inputs[key] = False
