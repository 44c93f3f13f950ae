from dataclasses import dataclass

@dataclass(slots=True)
class BoardPosition:
    """Current cell of a token entity. Changes through swap and gravity only."""
    row: int
    col: int
