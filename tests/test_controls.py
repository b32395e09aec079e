"""Tests for held and single-shot input handling."""

from controls import Action, InputSnapshot, as_input_snapshot


def test_direction_from_held_keys():
    inputs = InputSnapshot.from_actions(Action.MOVE_LEFT, Action.MOVE_DOWN)
    assert inputs.direction() == (-1, 1)

    inputs.press(Action.MOVE_RIGHT)
    assert inputs.direction() == (0, 1)

    inputs.release(Action.MOVE_DOWN)
    assert inputs.direction() == (0, 0)


def test_bomb_press_is_consumed_once():
    inputs = InputSnapshot.from_actions(Action.PLACE_BOMB)
    assert inputs.consume_bomb()
    assert not inputs.consume_bomb()
    assert not inputs.is_held(Action.PLACE_BOMB)


def test_movement_stays_held_after_reads():
    inputs = InputSnapshot.from_actions(Action.MOVE_UP)
    inputs.direction()
    inputs.consume_bomb()
    assert inputs.is_held(Action.MOVE_UP)


def test_coercion_from_mappings_and_values():
    inputs = as_input_snapshot({"move_right": True, Action.PLACE_BOMB: False})
    assert inputs.is_held(Action.MOVE_RIGHT)
    assert not inputs.is_held("place_bomb")

    assert as_input_snapshot(None).direction() == (0, 0)
    snapshot = InputSnapshot()
    assert as_input_snapshot(snapshot) is snapshot


def test_copy_and_clear():
    inputs = InputSnapshot.from_actions(Action.MOVE_UP, Action.PLACE_BOMB)
    clone = inputs.copy()
    inputs.clear()
    assert inputs.direction() == (0, 0)
    assert clone.is_held(Action.MOVE_UP)
    assert clone.is_held(Action.PLACE_BOMB)
