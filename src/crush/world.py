import random
from typing import Iterable, Mapping

from esper import World

from crush.constants import GAME_DURATION, TOKEN_KINDS
from crush.errors import ConfigurationError
from crush.components.countdown import Countdown
from crush.components.engine_state import EngineState
from crush.components.score import Score
from crush.components.token_kind_registry import TokenKindRegistry
from crush.components.token_kinds import TokenKinds


def create_world(
    *,
    kinds: Mapping[str, str] | None = None,
    spawnable: Iterable[str] | None = None,
    duration: int = GAME_DURATION,
    rng: random.Random | None = None,
) -> World:
    """Build the ECS world with every singleton resource the systems expect.

    The board itself is created by BoardSystem. Misconfiguration (fewer than
    three spawnable kinds, non-positive duration) is rejected here, before any
    board exists.
    """
    if duration <= 0:
        raise ConfigurationError(f"game duration must be positive, got {duration}")
    world = World()
    setattr(world, "random", rng or random.Random())

    # Global engine state resource plus the externally owned score and timer.
    state_entity = world.create_entity()
    world.add_component(state_entity, EngineState())
    world.create_entity(Score())
    world.create_entity(Countdown(duration=duration, seconds_remaining=duration))

    # Single registry entity with the kind alphabet.
    world.create_entity(
        TokenKindRegistry(),
        TokenKinds(
            kinds=dict(kinds if kinds is not None else TOKEN_KINDS),
            spawnable=list(spawnable) if spawnable is not None else [],
        ),
    )
    return world
