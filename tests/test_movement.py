"""Tests for the continuous movement model."""

import math
import random

import pytest
from conftest import make_context, make_entity

from isekai.context import GameContext
from isekai.environment import generate_overworld, generate_town, is_blocking
from isekai.movement import ContinuousMovement, MoveOutcome, input_vector_from_keys
from isekai.schemas import Position

ROWS_WITH_TREE = [
    "~~~~~~~~~~",
    "~........~",
    "~........~",
    "~........~",
    "~........~",
    "~.....#..~",
    "~........~",
    "~........~",
    "~........~",
    "~~~~~~~~~~",
]


def place(context, x, y):
    context.player.position = Position(x=x, y=y)


def test_input_vector_from_keys():
    assert input_vector_from_keys(["ArrowRight"]) == (1.0, 0.0)
    assert input_vector_from_keys(["w", "a"]) == (-1.0, -1.0)
    assert input_vector_from_keys(["ArrowLeft", "d"]) == (0.0, 0.0)
    # Arrow and letter for the same direction both count
    assert input_vector_from_keys(["ArrowUp", "w"]) == (0.0, -2.0)
    assert input_vector_from_keys(["x", "Enter"]) == (0.0, 0.0)


def test_free_move_scales_by_speed_and_dt(context):
    movement = ContinuousMovement()
    place(context, 5.5, 5.5)

    outcome = movement.attempt_move(context, (1.0, 0.0), 0.05)

    assert outcome is MoveOutcome.MOVED
    assert context.player.position.x == pytest.approx(5.9)
    assert context.player.position.y == pytest.approx(5.5)


def test_diagonal_input_is_normalised(context):
    movement = ContinuousMovement()
    place(context, 4.5, 4.5)

    movement.attempt_move(context, (1.0, 1.0), 0.05)

    step = 0.4 / math.sqrt(2)
    assert context.player.position.x == pytest.approx(4.5 + step)
    assert context.player.position.y == pytest.approx(4.5 + step)


@pytest.mark.parametrize("dt", [0.1, 0.5, -0.01])
def test_out_of_range_frames_are_discarded(context, dt):
    movement = ContinuousMovement()
    place(context, 5.5, 5.5)

    assert movement.attempt_move(context, (1.0, 0.0), dt) is MoveOutcome.SKIPPED
    assert context.player.position == Position(x=5.5, y=5.5)


def test_no_input_is_idle(context):
    movement = ContinuousMovement()
    place(context, 5.5, 5.5)

    assert movement.attempt_move(context, (0.0, 0.0), 0.05) is MoveOutcome.IDLE
    assert context.player.position == Position(x=5.5, y=5.5)


def test_blocked_move_leaves_position_unchanged():
    context = make_context(ROWS_WITH_TREE)
    movement = ContinuousMovement()
    place(context, 5.5, 5.5)

    outcome = movement.attempt_move(context, (1.0, 0.0), 0.05)

    assert outcome is MoveOutcome.BLOCKED
    assert context.player.position == Position(x=5.5, y=5.5)


def test_diagonal_into_wall_slides_along_it():
    context = make_context(ROWS_WITH_TREE)
    movement = ContinuousMovement()
    place(context, 5.5, 5.5)

    outcome = movement.attempt_move(context, (1.0, 1.0), 0.05)

    assert outcome is MoveOutcome.MOVED
    assert context.player.position.x == pytest.approx(5.5)
    assert context.player.position.y > 5.5


def test_grid_edge_counts_as_blocked():
    context = make_context(["...", "...", "..."])
    movement = ContinuousMovement()
    place(context, 0.5, 1.5)

    assert movement.attempt_move(context, (-1.0, 0.0), 0.05) is MoveOutcome.BLOCKED
    assert context.player.position == Position(x=0.5, y=1.5)


def test_move_clears_recently_fled_marker(context):
    movement = ContinuousMovement()
    context.fled_entity_id = "enemy-0"

    movement.attempt_move(context, (0.0, 1.0), 0.02)

    assert context.fled_entity_id is None


def test_random_walk_never_enters_blocking_tiles():
    grid = generate_overworld(random.Random(4))
    context = GameContext(overworld=grid, town=generate_town())
    movement = ContinuousMovement()
    rng = random.Random(4)
    half = movement.box_size / 2

    for _ in range(3000):
        vector = (rng.choice((-1.0, 0.0, 1.0)), rng.choice((-1.0, 0.0, 1.0)))
        movement.attempt_move(context, vector, rng.random() * 0.1)
        pos = context.player.position
        assert not is_blocking(grid.get(*pos.tile()))
        for cx in (pos.x - half, pos.x + half):
            for cy in (pos.y - half, pos.y + half):
                assert not grid.is_blocked_at(cx, cy)


def test_nearest_candidate_skips_fled_entity_and_town(context):
    movement = ContinuousMovement()
    near = make_entity("enemy-0", tile=(2, 3))
    far = make_entity("enemy-1", tile=(6, 6))
    context.entities = [near, far]

    entity, distance = movement.nearest_encounter_candidate(context)
    assert entity is near
    assert distance == pytest.approx(1.0)

    context.fled_entity_id = "enemy-0"
    entity, _ = movement.nearest_encounter_candidate(context)
    assert entity is far

    context.in_town = True
    assert movement.nearest_encounter_candidate(context) == (None, math.inf)
