from dataclasses import dataclass

@dataclass(frozen=True, slots=True)
class Token:
    """Per-token identity and kind.

    token_id is assigned once at creation and never reused, so a renderer can key
    visual elements by it across swaps and falls. Matching only compares kind.
    Position lives in a separate BoardPosition component.
    """
    token_id: str
    kind: str
