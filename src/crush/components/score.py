from dataclasses import dataclass

@dataclass(slots=True)
class Score:
    """Running total kept by the score aggregator; the engine only emits deltas."""
    total: int = 0
