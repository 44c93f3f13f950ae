import pytest

from crush.components.engine_state import ResolverPhase, SessionStatus
from crush.events.bus import (
    EVENT_BOARD_CHANGED,
    EVENT_CASCADE_STEP,
    EVENT_GAME_OVER,
    EVENT_GAME_RESET,
    EVENT_MATCH_CLEARED,
    EVENT_MATCH_FOUND,
    EVENT_SCORE_CHANGED,
    EVENT_SCORE_DELTA,
    EVENT_TILE_SELECTED,
    EVENT_TILE_SWAP_VALID,
)
from crush.systems import board_ops

from helpers import SCENARIO_A_QUIET_REFILL, load_layout, make_game, record, scenario_a_layout


def slow_scenario_game(duration):
    game = make_game(duration=duration, swap_delay=0.25, clear_delay=0.25, drop_delay=0.25)
    load_layout(game.world, scenario_a_layout())
    game.world.random.queue.extend(SCENARIO_A_QUIET_REFILL)
    return game


def test_countdown_expiry_waits_for_cascade_to_finish():
    game = slow_scenario_game(duration=1)
    over = record(game.event_bus, EVENT_GAME_OVER)
    game.click(3, 3)
    game.click(3, 4)
    assert game.state.phase is ResolverPhase.SWAPPING

    game.tick(1.0)
    assert game.seconds_remaining == 0
    assert game.state.session is SessionStatus.EXPIRING
    assert game.state.phase is ResolverPhase.MATCHING
    assert over == []

    game.tick(0.25)
    assert game.state.phase is ResolverPhase.DROPPING
    assert over == []

    game.tick(0.25)
    assert game.state.phase is ResolverPhase.IDLE
    assert game.state.session is SessionStatus.OVER
    assert len(over) == 1
    assert game.score == 30


def test_no_input_after_game_over():
    game = slow_scenario_game(duration=1)
    selections = record(game.event_bus, EVENT_TILE_SELECTED)
    game.tick(1.0)
    assert game.state.session is SessionStatus.OVER
    before = game.snapshot()
    game.click(3, 3)
    game.click(3, 4)
    assert selections == []
    assert game.board_system.selected is None
    game.tick(1.0)
    assert game.snapshot() == before
    assert game.state.phase is ResolverPhase.IDLE


def test_game_over_fires_once():
    game = make_game(duration=2)
    over = record(game.event_bus, EVENT_GAME_OVER)
    for _ in range(10):
        game.tick(0.5)
    assert len(over) == 1


def test_restart_mid_cascade_is_a_hard_reset():
    game = slow_scenario_game(duration=30)
    game.click(3, 3)
    game.click(3, 4)
    game.tick(0.25)
    assert game.state.phase is ResolverPhase.MATCHING
    assert game.score == 30
    old_ids = {view.token_id for view in game.snapshot()}
    resets = record(game.event_bus, EVENT_GAME_RESET)
    changes = record(game.event_bus, EVENT_BOARD_CHANGED)
    scores = record(game.event_bus, EVENT_SCORE_CHANGED)

    game.restart()

    assert resets == [{'reason': 'restart'}]
    assert changes[-1]['reason'] == 'reset'
    assert game.state.phase is ResolverPhase.IDLE
    assert game.state.session is SessionStatus.ACTIVE
    assert game.state.pending_match == frozenset()
    assert game.score == 0
    assert scores[-1] == {'total': 0, 'delta': -30}
    assert game.seconds_remaining == 30
    snapshot = game.snapshot()
    assert len(snapshot) == 64
    assert not {view.token_id for view in snapshot} & old_ids
    assert board_ops.find_matches_in_world(game.world) == frozenset()

    # The discarded step never runs.
    game.tick(1.0)
    assert game.state.phase is ResolverPhase.IDLE
    assert game.snapshot() == snapshot
    assert game.score == 0


@pytest.mark.parametrize("event_name, matches_seen, deltas_seen", [
    (EVENT_TILE_SWAP_VALID, 0, 0),
    (EVENT_CASCADE_STEP, 0, 0),
    (EVENT_MATCH_FOUND, 1, 0),
    (EVENT_MATCH_CLEARED, 1, 1),
])
def test_restart_from_resolver_event_discards_the_move(event_name, matches_seen, deltas_seen):
    game = slow_scenario_game(duration=30)
    deltas = record(game.event_bus, EVENT_SCORE_DELTA)
    found = record(game.event_bus, EVENT_MATCH_FOUND)
    restarted = []

    def restart_once(sender, **payload):
        if not restarted:
            restarted.append(event_name)
            game.restart()

    game.event_bus.subscribe(event_name, restart_once)
    game.click(3, 3)
    game.click(3, 4)
    game.tick(0.25)
    game.tick(0.25)

    assert restarted == [event_name]
    assert len(found) == matches_seen
    assert len(deltas) == deltas_seen
    assert game.score == 0
    assert game.state.phase is ResolverPhase.IDLE
    assert game.state.session is SessionStatus.ACTIVE
    assert game.seconds_remaining == 30
    snapshot = game.snapshot()
    assert len(snapshot) == 64
    assert board_ops.find_matches_in_world(game.world) == frozenset()

    game.tick(1.0)
    assert game.snapshot() == snapshot
    assert game.score == 0


def test_restart_after_game_over_reopens_input():
    game = make_game(duration=1)
    game.tick(1.0)
    assert game.state.session is SessionStatus.OVER
    game.restart()
    assert game.state.session is SessionStatus.ACTIVE
    assert game.seconds_remaining == 1
    game.click(0, 0)
    assert game.board_system.selected == (0, 0)
