from __future__ import annotations

import random
from typing import Iterable, Sequence

from esper import World

from crush.events.bus import EVENT_TICK
from crush.game import Game
from crush.systems import board_ops

KINDS = ['apple', 'grape', 'orange', 'lemon', 'blueberry', 'coconut']


class ScriptedRandom(random.Random):
    """Random whose choice() hands out queued kinds first, then falls back to the seed."""

    def __init__(self, seed=None):
        super().__init__(seed)
        self.queue: list[str] = []

    def choice(self, seq):
        if self.queue:
            value = self.queue.pop(0)
            assert value in seq, f"scripted {value!r} not among {list(seq)}"
            return value
        return super().choice(seq)


def make_game(*, rng: random.Random | None = None, **kwargs) -> Game:
    kwargs.setdefault('swap_delay', 0.0)
    kwargs.setdefault('clear_delay', 0.0)
    kwargs.setdefault('drop_delay', 0.0)
    return Game(rng=rng or ScriptedRandom(99), **kwargs)


def base_layout(size: int = 8) -> list[list[str]]:
    """Diagonal stripes: no two orthogonal neighbours share a kind."""
    return [[KINDS[(2 * r + c) % len(KINDS)] for c in range(size)] for r in range(size)]


def scenario_a_layout() -> list[list[str]]:
    """Row 3 reads apple orange orange lemon orange ...; swapping (3,3)<->(3,4)
    lines up orange at cols 1-3 and nothing else."""
    layout = base_layout(8)
    layout[3][1] = 'orange'
    layout[3][2] = 'orange'
    layout[3][4] = 'orange'
    return layout


# Refill for scenario A that leaves the board quiescent after one pass.
SCENARIO_A_QUIET_REFILL = ['orange', 'lemon', 'blueberry']


def load_layout(world: World, layout: Sequence[Sequence[str]]):
    return board_ops.populate_board(world, layout)


def ids_at(world: World, positions: Iterable[tuple[int, int]]) -> list[str]:
    grid = board_ops.grid_map(world)
    return [grid[pos].token_id for pos in positions]


def drive(bus, ticks, dt=0.25):
    for _ in range(ticks):
        bus.emit(EVENT_TICK, dt=dt)


def record(bus, event_name: str) -> list[dict]:
    received: list[dict] = []
    bus.subscribe(event_name, lambda sender, **payload: received.append(payload))
    return received


def kind_rows(world: World) -> list[list[str]]:
    """Kinds laid out row by row."""
    rows, cols = board_ops.board_dimensions(world)
    grid = board_ops.grid_map(world)
    return [[grid[(r, c)].kind for c in range(cols)] for r in range(rows)]
