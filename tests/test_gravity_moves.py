import random

from crush.systems import board_ops
from crush.systems.match import check_grid

from helpers import ScriptedRandom, base_layout, ids_at, load_layout, make_game


def column_ids(world, col, rows=8):
    return ids_at(world, [(r, col) for r in range(rows)])


def test_column_collapses_preserving_order_and_refills_top(game):
    load_layout(game.world, base_layout(8))
    before = column_ids(game.world, 4)
    other_columns = {c: column_ids(game.world, c) for c in range(8) if c != 4}
    removed = {before[2], before[5]}

    step = board_ops.collapse_and_refill(game.world, removed)

    after = column_ids(game.world, 4)
    assert after[2:] == [before[0], before[1], before[3], before[4], before[6], before[7]]
    assert not set(after[:2]) & set(before)
    assert {view.token_id for view in step.removed} == removed
    assert {(m.token_id, m.source, m.target) for m in step.moves} == {
        (before[0], (0, 4), (2, 4)),
        (before[1], (1, 4), (3, 4)),
        (before[3], (3, 4), (4, 4)),
        (before[4], (4, 4), (5, 4)),
    }
    # New tokens drop in lowest first.
    assert [view.position for view in step.new_tokens] == [(1, 4), (0, 4)]
    for c, ids in other_columns.items():
        assert column_ids(game.world, c) == ids
    check_grid(board_ops.grid_map(game.world), 8, 8)


def test_refill_uses_fresh_kinds_from_rng(game):
    load_layout(game.world, base_layout(8))
    game.world.random.queue.extend(['coconut', 'grape'])
    top = ids_at(game.world, [(0, 0), (0, 1)])
    step = board_ops.collapse_and_refill(game.world, top)
    assert [(view.position, view.kind) for view in step.new_tokens] == [((0, 0), 'coconut'), ((0, 1), 'grape')]
    assert step.moves == []


def test_gravity_preserves_relative_order_for_random_removals():
    rng = random.Random(42)
    for seed in range(10):
        game = make_game(rng=ScriptedRandom(seed))
        grid = board_ops.grid_map(game.world)
        doomed = {token.token_id for token in grid.values() if rng.random() < 0.3}
        survivors_by_col = {
            c: [grid[(r, c)].token_id for r in range(8) if grid[(r, c)].token_id not in doomed]
            for c in range(8)
        }
        board_ops.collapse_and_refill(game.world, doomed)
        after = board_ops.grid_map(game.world)
        check_grid(after, 8, 8)
        for c, survivors in survivors_by_col.items():
            column = [after[(r, c)].token_id for r in range(8)]
            assert column[8 - len(survivors):] == survivors
            assert not set(column[:8 - len(survivors)]) & doomed
