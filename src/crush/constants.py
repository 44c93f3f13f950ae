GRID_SIZE = 8
GAME_DURATION = 60  # seconds

POINTS_PER_TOKEN = 10

# Settle windows (seconds) the resolver waits before its next grid mutation so
# a renderer can animate the previous one.
SWAP_SETTLE_DELAY = 0.3
CLEAR_SETTLE_DELAY = 0.3
DROP_SETTLE_DELAY = 0.5

# Canonical kind alphabet: name -> glyph shown by renderers.
TOKEN_KINDS = {
    'apple': '\U0001F34E',
    'grape': '\U0001F347',
    'orange': '\U0001F34A',
    'lemon': '\U0001F34B',
    'blueberry': '\U0001FAD0',
    'coconut': '\U0001F965',
}

MIN_RUN_LENGTH = 3
