from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from crush.constants import MIN_RUN_LENGTH
from crush.errors import ConfigurationError

@dataclass(slots=True)
class TokenKinds:
    """Canonical kind alphabet stored on a single entity.

    This component lives alongside TokenKindRegistry (tag). ``kinds`` maps each
    kind name to the glyph a renderer shows for it; ``spawnable`` is the ordered
    subset the generator and refill draw from.
    """
    kinds: Dict[str, str]
    spawnable: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.spawnable:
            self.spawnable = self._filter(self.spawnable)
        else:
            self.spawnable = list(self.kinds.keys())
        self.validate()

    def _filter(self, names: Iterable[str]) -> List[str]:
        # Preserve order while dropping unknown and repeated names.
        seen: set[str] = set()
        filtered: List[str] = []
        for name in names:
            if name in self.kinds and name not in seen:
                filtered.append(name)
                seen.add(name)
        return filtered

    def validate(self) -> None:
        # Row and column checks can each forbid one kind per draw, so the
        # generator needs at least one kind beyond those two.
        if len(self.spawnable) < MIN_RUN_LENGTH:
            raise ConfigurationError(
                f"at least {MIN_RUN_LENGTH} spawnable token kinds are required, got {len(self.spawnable)}"
            )

    def glyph_for(self, kind: str) -> str:
        return self.kinds[kind]

    def spawnable_kinds(self) -> List[str]:
        return list(self.spawnable)

    def defined_kinds(self) -> List[str]:
        return list(self.kinds.keys())

    def set_spawnable(self, names: Iterable[str]) -> None:
        filtered = self._filter(names)
        previous = self.spawnable
        self.spawnable = filtered
        try:
            self.validate()
        except ConfigurationError:
            self.spawnable = previous
            raise
