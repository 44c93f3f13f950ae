import logging

from esper import World

from crush.components.score import Score
from crush.events.bus import EventBus, EVENT_SCORE_DELTA, EVENT_SCORE_CHANGED, EVENT_GAME_RESET

logger = logging.getLogger(__name__)


class ScoreSystem:
    """Aggregates score deltas; the resolver never reads the total."""
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_SCORE_DELTA, self.on_score_delta)
        self.event_bus.subscribe(EVENT_GAME_RESET, self.on_game_reset)

    def _score(self) -> Score:
        for _, score in self.world.get_component(Score):
            return score
        raise RuntimeError("Score not found")

    @property
    def total(self) -> int:
        return self._score().total

    def on_score_delta(self, sender, **kwargs):
        amount = int(kwargs.get('amount', 0))
        if amount == 0:
            return
        score = self._score()
        score.total += amount
        logger.debug("score +%d -> %d (depth %s)", amount, score.total, kwargs.get('depth'))
        self.event_bus.emit(EVENT_SCORE_CHANGED, total=score.total, delta=amount)

    def on_game_reset(self, sender, **kwargs):
        score = self._score()
        previous = score.total
        score.total = 0
        self.event_bus.emit(EVENT_SCORE_CHANGED, total=0, delta=-previous)
