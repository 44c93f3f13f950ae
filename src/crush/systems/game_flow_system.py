"""High-level coordinator for restart and game-over transitions."""
from __future__ import annotations

import logging
import random

from esper import World

from crush.components.engine_state import ResolverPhase, SessionStatus
from crush.events.bus import (
    EVENT_BOARD_CHANGED,
    EVENT_COUNTDOWN_EXPIRED,
    EVENT_GAME_OVER,
    EVENT_GAME_RESET,
    EVENT_RESOLVER_IDLE,
    EVENT_RESTART_REQUEST,
    EventBus,
)
from crush.systems import board_ops
from crush.utils.engine_state import get_or_create_engine_state, reset_engine_state

logger = logging.getLogger(__name__)


class GameFlowSystem:
    """Owns the session status that sits beside the resolver phase.

    The countdown reaching zero never interrupts a move already in flight: the
    session is marked EXPIRING and only becomes OVER once the resolver reports
    idle. A restart request, on the other hand, is a hard reset at any moment.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self._rng = rng

        self.event_bus.subscribe(EVENT_COUNTDOWN_EXPIRED, self._on_countdown_expired)
        self.event_bus.subscribe(EVENT_RESOLVER_IDLE, self._on_resolver_idle)
        self.event_bus.subscribe(EVENT_RESTART_REQUEST, self._on_restart_request)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_countdown_expired(self, sender, **payload) -> None:
        state = get_or_create_engine_state(self.world)
        if state.session is not SessionStatus.ACTIVE:
            return
        if state.phase is ResolverPhase.IDLE:
            self._finish_game()
            return
        logger.debug("countdown expired during %s; waiting for the move to settle", state.phase.name)
        state.session = SessionStatus.EXPIRING

    def _on_resolver_idle(self, sender, **payload) -> None:
        state = get_or_create_engine_state(self.world)
        if state.session is SessionStatus.EXPIRING:
            self._finish_game()

    def _on_restart_request(self, sender, **payload) -> None:
        reason = payload.get("reason", "restart")
        previous = get_or_create_engine_state(self.world)
        if previous.phase is not ResolverPhase.IDLE:
            logger.info("restart discards in-flight %s step", previous.phase.name)
        reset_engine_state(self.world)
        snapshot = board_ops.spawn_board(self.world, rng=self._rng)
        logger.info("game reset (%s)", reason)
        self.event_bus.emit(EVENT_GAME_RESET, reason=reason)
        self.event_bus.emit(EVENT_BOARD_CHANGED, reason="reset", snapshot=snapshot)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _finish_game(self) -> None:
        state = get_or_create_engine_state(self.world)
        state.session = SessionStatus.OVER
        state.selected = None
        logger.info("game over")
        self.event_bus.emit(EVENT_GAME_OVER)
