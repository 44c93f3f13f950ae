import logging
import random
from typing import Tuple

from esper import World

from crush.constants import GRID_SIZE, MIN_RUN_LENGTH
from crush.errors import ConfigurationError
from crush.events.bus import (EventBus, EVENT_TILE_CLICK, EVENT_TILE_SELECTED, EVENT_TILE_DESELECTED,
                              EVENT_TILE_SWAP_REQUEST, EVENT_BOARD_CHANGED)
from crush.components.board import Board
from crush.systems import board_ops
from crush.utils.engine_state import get_or_create_engine_state

logger = logging.getLogger(__name__)


class BoardSystem:
    """Owns the board entity, generates the opening grid and interprets cell picks.

    Selection policy while the engine is idle:
      - first pick records a selection;
      - picking the same cell again clears it;
      - a non-adjacent pick replaces the selection;
      - an adjacent pick clears the selection and requests a swap.
    """
    def __init__(self, world: World, event_bus: EventBus, size: int = GRID_SIZE,
                 *, rng: random.Random | None = None):
        if size < MIN_RUN_LENGTH:
            raise ConfigurationError(f"board size must be at least {MIN_RUN_LENGTH}, got {size}")
        self.world = world
        self.event_bus = event_bus
        self.rng = rng
        self.board_entity = self.world.create_entity()
        self.world.add_component(self.board_entity, Board(rows=size, cols=size))
        self.event_bus.subscribe(EVENT_TILE_CLICK, self.on_tile_click)
        self._init_board()

    def _init_board(self):
        snapshot = board_ops.spawn_board(self.world, rng=self.rng)
        logger.debug("generated %d-token board", len(snapshot))
        self.event_bus.emit(EVENT_BOARD_CHANGED, reason='generated', snapshot=snapshot)

    @property
    def selected(self):
        return get_or_create_engine_state(self.world).selected

    def on_tile_click(self, sender, **kwargs):
        row = kwargs.get('row')
        col = kwargs.get('col')
        if row is None or col is None:
            return
        board: Board = self.world.component_for_entity(self.board_entity, Board)
        if not (0 <= row < board.rows and 0 <= col < board.cols):
            return
        state = get_or_create_engine_state(self.world)
        if not state.accepts_input:
            logger.debug("ignoring pick %s while %s/%s", (row, col), state.phase.name, state.session.name)
            return
        picked = (row, col)
        if state.selected is None:
            state.selected = picked
            self.event_bus.emit(EVENT_TILE_SELECTED, row=row, col=col)
        elif state.selected == picked:
            state.selected = None
            self.event_bus.emit(EVENT_TILE_DESELECTED, reason='same_tile', prev_row=row, prev_col=col)
        elif self.is_adjacent(state.selected, picked):
            src = state.selected
            state.selected = None
            self.event_bus.emit(EVENT_TILE_SWAP_REQUEST, src=src, dst=picked)
        else:
            # Change selection to new tile
            state.selected = picked
            self.event_bus.emit(EVENT_TILE_SELECTED, row=row, col=col)

    @staticmethod
    def is_adjacent(a: Tuple[int,int], b: Tuple[int,int]) -> bool:
        return board_ops.is_adjacent(a, b)
