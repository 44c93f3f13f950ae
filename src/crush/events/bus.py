from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps bound methods of systems nobody else references alive.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                                # payload: dt=float seconds


# ============================================================================
# INPUT & SELECTION
# ============================================================================
EVENT_TILE_CLICK = "tile_click"                    # payload: row, col
EVENT_TILE_SELECTED = "tile_selected"              # payload: row, col
EVENT_TILE_DESELECTED = "tile_deselected"          # payload: reason=str, prev_row, prev_col


# ============================================================================
# SWAP & CASCADE
# ============================================================================
EVENT_TILE_SWAP_REQUEST = "tile_swap_request"      # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_DO = "tile_swap_do"                # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_VALID = "tile_swap_valid"          # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_INVALID = "tile_swap_invalid"      # payload: src=(r,c), dst=(r,c)
EVENT_MATCH_FOUND = "match_found"                  # payload: token_ids=frozenset, positions=[(r,c),...], size=int, depth=int, runs=list
EVENT_MATCH_CLEARED = "match_cleared"              # payload: token_ids=frozenset, positions=[(r,c),...], kinds=list[str]
EVENT_GRAVITY_APPLIED = "gravity_applied"          # payload: moves=list[GravityMove]
EVENT_REFILL_COMPLETED = "refill_completed"        # payload: new_tokens=list[TokenView]
EVENT_CASCADE_STEP = "cascade_step"                # payload: depth=int
EVENT_CASCADE_COMPLETE = "cascade_complete"        # payload: depth=int
EVENT_BOARD_CHANGED = "board_changed"              # payload: reason=str, snapshot=tuple[TokenView,...]
EVENT_RESOLVER_IDLE = "resolver_idle"              # payload: reason=str


# ============================================================================
# SCORE & TIMER
# ============================================================================
EVENT_SCORE_DELTA = "score_delta"                  # payload: amount=int, size=int, depth=int
EVENT_SCORE_CHANGED = "score_changed"              # payload: total=int, delta=int
EVENT_COUNTDOWN_CHANGED = "countdown_changed"      # payload: seconds_remaining=int
EVENT_COUNTDOWN_EXPIRED = "countdown_expired"      # payload: seconds_remaining=int


# ============================================================================
# GAME FLOW
# ============================================================================
EVENT_RESTART_REQUEST = "restart_request"          # payload: reason=str
EVENT_GAME_RESET = "game_reset"                    # payload: reason=str
EVENT_GAME_OVER = "game_over"                      # payload: none
