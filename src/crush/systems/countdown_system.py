import logging

from esper import World

from crush.components.countdown import Countdown
from crush.events.bus import (EventBus, EVENT_TICK, EVENT_COUNTDOWN_CHANGED, EVENT_COUNTDOWN_EXPIRED,
                              EVENT_GAME_RESET)

logger = logging.getLogger(__name__)


class CountdownSystem:
    """Wall-clock countdown in whole seconds, advanced by tick events.

    Decrements once per accumulated second and announces expiry exactly once;
    what expiry means for the game is left to GameFlowSystem.
    """
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)
        self.event_bus.subscribe(EVENT_GAME_RESET, self.on_game_reset)

    def _countdown(self) -> Countdown:
        for _, countdown in self.world.get_component(Countdown):
            return countdown
        raise RuntimeError("Countdown not found")

    @property
    def seconds_remaining(self) -> int:
        return self._countdown().seconds_remaining

    def on_tick(self, sender, **kwargs):
        dt = kwargs.get('dt', 1/60)
        countdown = self._countdown()
        if countdown.expired:
            return
        countdown.elapsed += dt
        while countdown.elapsed >= 1.0 and not countdown.expired:
            countdown.elapsed -= 1.0
            countdown.seconds_remaining -= 1
            self.event_bus.emit(EVENT_COUNTDOWN_CHANGED, seconds_remaining=countdown.seconds_remaining)
        if countdown.expired:
            countdown.elapsed = 0.0
            logger.debug("countdown expired")
            self.event_bus.emit(EVENT_COUNTDOWN_EXPIRED, seconds_remaining=0)

    def on_game_reset(self, sender, **kwargs):
        countdown = self._countdown()
        countdown.seconds_remaining = countdown.duration
        countdown.elapsed = 0.0
        self.event_bus.emit(EVENT_COUNTDOWN_CHANGED, seconds_remaining=countdown.seconds_remaining)
