import logging
from typing import FrozenSet

from esper import World

from crush.constants import CLEAR_SETTLE_DELAY, DROP_SETTLE_DELAY, POINTS_PER_TOKEN, SWAP_SETTLE_DELAY
from crush.errors import ConfigurationError
from crush.events.bus import (EventBus, EVENT_TICK, EVENT_TILE_SWAP_REQUEST, EVENT_TILE_SWAP_DO,
                              EVENT_TILE_SWAP_VALID, EVENT_TILE_SWAP_INVALID, EVENT_MATCH_FOUND,
                              EVENT_MATCH_CLEARED, EVENT_GRAVITY_APPLIED, EVENT_REFILL_COMPLETED,
                              EVENT_CASCADE_STEP, EVENT_CASCADE_COMPLETE, EVENT_BOARD_CHANGED,
                              EVENT_RESOLVER_IDLE, EVENT_SCORE_DELTA)
from crush.components.engine_state import EngineState, PendingSwap, ResolverPhase
from crush.systems import board_ops
from crush.systems.match import find_runs
from crush.utils.engine_state import get_or_create_engine_state

logger = logging.getLogger(__name__)


class MatchResolutionSystem:
    """Runs a move from tentative swap to a quiescent grid.

    Flow:
      - EVENT_TILE_SWAP_REQUEST while idle applies the swap and enters SWAPPING.
      - After ``swap_delay`` the detector runs; no match reverts the swap, a match
        is scored and the phase becomes MATCHING.
      - After ``clear_delay`` matched tokens are removed, survivors fall and
        empty cells are refilled; the phase becomes DROPPING.
      - After ``drop_delay`` the detector runs again and either scores the next
        match set (back to MATCHING) or returns to IDLE.

    Delays only gate when the next mutation happens. A zero delay runs the next
    step immediately, so with all delays at zero a whole move resolves inside
    the swap request.
    """
    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        points_per_token: int = POINTS_PER_TOKEN,
        swap_delay: float = SWAP_SETTLE_DELAY,
        clear_delay: float = CLEAR_SETTLE_DELAY,
        drop_delay: float = DROP_SETTLE_DELAY,
    ):
        if points_per_token < 0:
            raise ConfigurationError(f"points_per_token must not be negative, got {points_per_token}")
        for name, value in (('swap_delay', swap_delay), ('clear_delay', clear_delay), ('drop_delay', drop_delay)):
            if value < 0:
                raise ConfigurationError(f"{name} must not be negative, got {value}")
        self.world = world
        self.event_bus = event_bus
        self.points_per_token = points_per_token
        self.swap_delay = swap_delay
        self.clear_delay = clear_delay
        self.drop_delay = drop_delay
        self.event_bus.subscribe(EVENT_TILE_SWAP_REQUEST, self.on_swap_request)
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)

    def on_swap_request(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if not src or not dst:
            return
        state = get_or_create_engine_state(self.world)
        if not state.accepts_input:
            logger.debug("swap %s<->%s ignored while %s", src, dst, state.phase.name)
            return
        if not board_ops.is_adjacent(src, dst):
            logger.debug("swap %s<->%s ignored: cells are not adjacent", src, dst)
            return
        rows, cols = board_ops.board_dimensions(self.world)
        if not all(0 <= row < rows and 0 <= col < cols for row, col in (src, dst)):
            logger.debug("swap %s<->%s ignored: cell outside the board", src, dst)
            return
        src_token, dst_token = board_ops.swap_positions(self.world, src, dst)
        state.selected = None
        state.swap = PendingSwap(src=src, dst=dst, src_token=src_token, dst_token=dst_token)
        state.cascade_depth = 0
        self._wait(state, ResolverPhase.SWAPPING, self.swap_delay)
        if not self._emit(state, EVENT_TILE_SWAP_DO, src=src, dst=dst):
            return
        if not self._emit(state, EVENT_BOARD_CHANGED, reason='swap', snapshot=board_ops.grid_snapshot(self.world)):
            return
        self._advance()

    def on_tick(self, sender, **kwargs):
        dt = kwargs.get('dt', 1/60)
        state = get_or_create_engine_state(self.world)
        if state.phase is ResolverPhase.IDLE:
            return
        state.settle_remaining -= dt
        self._advance()

    def _advance(self):
        # One step per iteration; cascade chains never recurse.
        while True:
            # Re-read every step; a restart replaces the state record.
            state = get_or_create_engine_state(self.world)
            if state.phase is ResolverPhase.IDLE or state.settle_remaining > 0.0:
                return
            if state.phase is ResolverPhase.SWAPPING:
                self._resolve_swap(state)
            elif state.phase is ResolverPhase.MATCHING:
                self._clear_matches(state)
            else:
                self._after_drop(state)

    def _wait(self, state: EngineState, phase: ResolverPhase, delay: float):
        logger.debug("resolver %s -> %s (settle %.2fs)", state.phase.name, phase.name, delay)
        state.phase = phase
        state.settle_remaining = delay

    def _emit(self, state: EngineState, event: str, **payload) -> bool:
        """Publish on behalf of the move owning ``state``.

        Returns False once a restart has replaced the state record, either
        before the emit or from inside one of its receivers; the caller must
        then drop the rest of the step.
        """
        if get_or_create_engine_state(self.world) is not state:
            return False
        self.event_bus.emit(event, **payload)
        return get_or_create_engine_state(self.world) is state

    def _resolve_swap(self, state: EngineState):
        swap = state.swap
        state.swap = None
        matched = board_ops.find_matches_in_world(self.world)
        if not matched:
            # Swapping the same two cells again restores the previous bindings.
            board_ops.swap_positions(self.world, swap.src, swap.dst)
            self._enter_idle(state)
            if not self._emit(state, EVENT_TILE_SWAP_INVALID, src=swap.src, dst=swap.dst):
                return
            if not self._emit(state, EVENT_BOARD_CHANGED, reason='revert',
                              snapshot=board_ops.grid_snapshot(self.world)):
                return
            self._emit(state, EVENT_RESOLVER_IDLE, reason='swap_reverted')
            return
        if not self._emit(state, EVENT_TILE_SWAP_VALID, src=swap.src, dst=swap.dst):
            return
        self._begin_match(state, matched)

    def _begin_match(self, state: EngineState, matched: FrozenSet[str]):
        state.cascade_depth += 1
        state.pending_match = matched
        depth = state.cascade_depth
        self._wait(state, ResolverPhase.MATCHING, self.clear_delay)
        rows, cols = board_ops.board_dimensions(self.world)
        grid = board_ops.grid_map(self.world)
        positions = sorted(pos for pos, token in grid.items() if token.token_id in matched)
        runs = find_runs(grid, rows, cols)
        amount = len(matched) * self.points_per_token
        if not self._emit(state, EVENT_CASCADE_STEP, depth=depth):
            return
        if not self._emit(
            state,
            EVENT_MATCH_FOUND,
            token_ids=matched,
            positions=positions,
            size=len(matched),
            depth=depth,
            runs=runs,
        ):
            return
        self._emit(state, EVENT_SCORE_DELTA, amount=amount, size=len(matched), depth=depth)

    def _clear_matches(self, state: EngineState):
        step = board_ops.collapse_and_refill(self.world, state.pending_match)
        state.pending_match = frozenset()
        self._wait(state, ResolverPhase.DROPPING, self.drop_delay)
        if not self._emit(
            state,
            EVENT_MATCH_CLEARED,
            token_ids=frozenset(view.token_id for view in step.removed),
            positions=[view.position for view in step.removed],
            kinds=[view.kind for view in step.removed],
        ):
            return
        if not self._emit(state, EVENT_GRAVITY_APPLIED, moves=step.moves):
            return
        if not self._emit(state, EVENT_REFILL_COMPLETED, new_tokens=step.new_tokens):
            return
        self._emit(state, EVENT_BOARD_CHANGED, reason='cascade', snapshot=board_ops.grid_snapshot(self.world))

    def _after_drop(self, state: EngineState):
        matched = board_ops.find_matches_in_world(self.world)
        if matched:
            self._begin_match(state, matched)
            return
        depth = state.cascade_depth
        self._enter_idle(state)
        if not self._emit(state, EVENT_CASCADE_COMPLETE, depth=depth):
            return
        self._emit(state, EVENT_RESOLVER_IDLE, reason='cascade_complete')

    def _enter_idle(self, state: EngineState):
        self._wait(state, ResolverPhase.IDLE, 0.0)
        state.cascade_depth = 0
        state.pending_match = frozenset()
