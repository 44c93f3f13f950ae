"""Engine state resource describing the resolver phase and session status."""
from dataclasses import dataclass
from enum import Enum, auto
from typing import FrozenSet, Optional, Tuple

Position = Tuple[int, int]


class ResolverPhase(Enum):
    """Where the resolver is in a move. Only IDLE accepts player input."""
    IDLE = auto()
    SWAPPING = auto()   # tentative swap applied, waiting to run the detector
    MATCHING = auto()   # match set scored, waiting to remove it
    DROPPING = auto()   # gravity and refill applied, waiting to re-detect

    @property
    def resolving(self) -> bool:
        return self in (ResolverPhase.MATCHING, ResolverPhase.DROPPING)


class SessionStatus(Enum):
    """Orthogonal to ResolverPhase; driven by the external countdown."""
    ACTIVE = auto()
    EXPIRING = auto()  # countdown hit zero while a move was in flight
    OVER = auto()


@dataclass(slots=True)
class PendingSwap:
    src: Position
    dst: Position
    src_token: str
    dst_token: str


@dataclass(slots=True)
class EngineState:
    """Singleton component storing everything the resolver needs between ticks.

    Replacing this record wholesale is a hard reset: no pending step survives it.
    """
    phase: ResolverPhase = ResolverPhase.IDLE
    session: SessionStatus = SessionStatus.ACTIVE
    selected: Optional[Position] = None
    swap: Optional[PendingSwap] = None
    pending_match: FrozenSet[str] = frozenset()
    settle_remaining: float = 0.0
    cascade_depth: int = 0

    @property
    def accepts_input(self) -> bool:
        return self.phase is ResolverPhase.IDLE and self.session is SessionStatus.ACTIVE
