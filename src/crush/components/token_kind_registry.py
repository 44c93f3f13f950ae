from dataclasses import dataclass

@dataclass(slots=True)
class TokenKindRegistry:
    """Empty tag component marking the single entity that stores the kind alphabet.

    The same entity also has a TokenKinds component with the name -> glyph mapping.
    """
    pass
