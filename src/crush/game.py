"""Entry point for embedding the crush engine.

Sets up the ECS world, event bus and systems, and exposes the gestures a
renderer or input layer needs. Everything observable is also published on the
event bus, so a renderer can subscribe instead of polling.
"""
from __future__ import annotations

import random
from typing import Mapping, Tuple

from crush.constants import (CLEAR_SETTLE_DELAY, DROP_SETTLE_DELAY, GAME_DURATION, GRID_SIZE,
                             POINTS_PER_TOKEN, SWAP_SETTLE_DELAY)
from crush.components.engine_state import EngineState
from crush.events.bus import EventBus, EVENT_RESTART_REQUEST, EVENT_TICK, EVENT_TILE_CLICK
from crush.systems import board_ops
from crush.systems.board import BoardSystem
from crush.systems.countdown_system import CountdownSystem
from crush.systems.game_flow_system import GameFlowSystem
from crush.systems.match_resolution import MatchResolutionSystem
from crush.systems.score_system import ScoreSystem
from crush.utils.engine_state import get_or_create_engine_state
from crush.world import create_world


class Game:
    def __init__(
        self,
        *,
        size: int = GRID_SIZE,
        duration: int = GAME_DURATION,
        points_per_token: int = POINTS_PER_TOKEN,
        swap_delay: float = SWAP_SETTLE_DELAY,
        clear_delay: float = CLEAR_SETTLE_DELAY,
        drop_delay: float = DROP_SETTLE_DELAY,
        kinds: Mapping[str, str] | None = None,
        rng: random.Random | None = None,
        event_bus: EventBus | None = None,
    ):
        self.event_bus = event_bus or EventBus()
        self.world = create_world(kinds=kinds, duration=duration, rng=rng)
        # Flow and bookkeeping systems
        self.game_flow_system = GameFlowSystem(self.world, self.event_bus)
        self.score_system = ScoreSystem(self.world, self.event_bus)
        self.countdown_system = CountdownSystem(self.world, self.event_bus)
        # Board and cascade systems
        self.match_resolution_system = MatchResolutionSystem(
            self.world,
            self.event_bus,
            points_per_token=points_per_token,
            swap_delay=swap_delay,
            clear_delay=clear_delay,
            drop_delay=drop_delay,
        )
        self.board_system = BoardSystem(self.world, self.event_bus, size)

    def click(self, row: int, col: int) -> None:
        self.event_bus.emit(EVENT_TILE_CLICK, row=row, col=col)

    def tick(self, dt: float) -> None:
        self.event_bus.emit(EVENT_TICK, dt=dt)

    def restart(self) -> None:
        self.event_bus.emit(EVENT_RESTART_REQUEST, reason='restart')

    def snapshot(self) -> Tuple[board_ops.TokenView, ...]:
        return board_ops.grid_snapshot(self.world)

    @property
    def state(self) -> EngineState:
        return get_or_create_engine_state(self.world)

    @property
    def score(self) -> int:
        return self.score_system.total

    @property
    def seconds_remaining(self) -> int:
        return self.countdown_system.seconds_remaining
