"""Axis-aligned collision between entities, the tile grid and bombs.

Entities are squares centred on their pixel position. Rectangles are
``(x, y, w, h)`` tuples with (x, y) the top-left corner.
"""
import math

# Subtracted from the far edge of a rectangle so that a box ending exactly on
# a tile boundary does not count as overlapping the next tile.
COLLISION_EPSILON = 0.01


def make_rect(cx, cy, width, height):
    return (cx - width / 2, cy - height / 2, width, height)


def rects_intersect(a, b):
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    return not (bx >= ax + aw or bx + bw <= ax or by >= ay + ah or by + bh <= ay)


def bomb_rect(bomb, tile_size):
    return make_rect(bomb.x, bomb.y, tile_size, tile_size)


def hits_tiles(grid, rect):
    """Return True if ``rect`` overlaps a wall or leaves the board."""
    x, y, w, h = rect
    ts = grid.tile_size
    left = math.floor(x / ts)
    right = math.floor((x + w - COLLISION_EPSILON) / ts)
    top = math.floor(y / ts)
    bottom = math.floor((y + h - COLLISION_EPSILON) / ts)
    for r in range(top, bottom + 1):
        for c in range(left, right + 1):
            if grid.is_solid(r, c):
                return True
    return False


def is_blocked(grid, bombs, target_x, target_y, width, height, current_x, current_y):
    """Check whether an entity may stand at (target_x, target_y).

    A bomb only blocks the move if the entity is not already overlapping it
    at (current_x, current_y). That lets a player walk off a bomb it just
    dropped but never walk back onto it from outside.

    Args:
        grid (Grid): The arena.
        bombs (list): Live ``Bomb`` objects.
        target_x, target_y (float): Desired centre position.
        width, height (float): Hitbox size.
        current_x, current_y (float): Centre position before the move.

    Returns:
        bool: True if the move is blocked.
    """
    target = make_rect(target_x, target_y, width, height)
    if hits_tiles(grid, target):
        return True

    current = make_rect(current_x, current_y, width, height)
    for bomb in bombs:
        rect = bomb_rect(bomb, grid.tile_size)
        if rects_intersect(target, rect):
            if rects_intersect(current, rect):
                continue  # still standing on it
            return True
    return False


def lane_offset(position, tile_size):
    """Signed distance from ``position`` to the centre line of its lane."""
    lane = math.floor(position / tile_size)
    return position - (lane * tile_size + tile_size / 2)


def max_sub_step(tile_size, width, height):
    """Longest move that cannot jump a hitbox over a whole tile."""
    return max(tile_size - max(width, height), 1.0)


def sub_steps(distance, max_step):
    """Split ``distance`` into equal parts no longer than ``max_step``."""
    if distance == 0:
        return []
    n = math.ceil(abs(distance) / max_step)
    return [distance / n] * n


def move_with_corner_sliding(grid, bombs, entity, dx, dy, slide_step, snap_threshold):
    """Move ``entity`` by (dx, dy), sliding around corners when nearly aligned.

    The horizontal axis is resolved first against the original vertical
    position, then the vertical axis against the updated horizontal position.
    Each axis is walked in sub-steps no longer than the gap between hitbox
    and tile, so a long frame cannot carry the entity through a wall; the
    axis stops at the first blocked sub-step. When it is blocked and the
    entity is within ``snap_threshold`` of the centre line of its lane on the
    other axis, it is nudged by ``slide_step`` toward that centre line (if
    the nudged target is free).

    Returns:
        bool: True if the entity's position changed.
    """
    start = (entity.x, entity.y)
    w, h = entity.width, entity.height
    ts = grid.tile_size
    max_step = max_sub_step(ts, w, h)
    slide_step = min(slide_step, max_step)

    ## horizontal axis ##
    for step_x in sub_steps(dx, max_step):
        next_x = entity.x + step_x
        if not is_blocked(grid, bombs, next_x, entity.y, w, h, entity.x, entity.y):
            entity.x = next_x
            continue
        offset = lane_offset(entity.y, ts)
        if abs(offset) < snap_threshold:
            step = -slide_step if offset > 0 else slide_step
            if not is_blocked(grid, bombs, next_x, entity.y + step, w, h, entity.x, entity.y):
                entity.y += step
        break

    ## vertical axis ##
    for step_y in sub_steps(dy, max_step):
        next_y = entity.y + step_y
        if not is_blocked(grid, bombs, entity.x, next_y, w, h, entity.x, entity.y):
            entity.y = next_y
            continue
        offset = lane_offset(entity.x, ts)
        if abs(offset) < snap_threshold:
            step = -slide_step if offset > 0 else slide_step
            if not is_blocked(grid, bombs, entity.x + step, next_y, w, h, entity.x, entity.y):
                entity.x += step
        break

    return (entity.x, entity.y) != start
