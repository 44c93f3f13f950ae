from esper import World

from crush.components.engine_state import EngineState


def get_or_create_engine_state(world: World) -> EngineState:
    """Return the shared EngineState component, creating it if absent."""
    for _, state in world.get_component(EngineState):
        return state
    state = EngineState()
    world.create_entity(state)
    return state


def reset_engine_state(world: World) -> EngineState:
    """Swap in a fresh EngineState, discarding any in-flight step."""
    for entity in [ent for ent, _ in world.get_component(EngineState)]:
        world.delete_entity(entity, immediate=True)
    state = EngineState()
    world.create_entity(state)
    return state
