from dataclasses import dataclass

@dataclass(slots=True)
class Countdown:
    duration: int
    seconds_remaining: int
    elapsed: float = 0.0  # fraction of the current second already consumed

    @property
    def expired(self) -> bool:
        return self.seconds_remaining <= 0
