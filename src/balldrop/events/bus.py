from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Use weak=False to retain strong reference to bound methods so systems not kept in a variable still receive events.
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
# GAME FLOW
# ============================================================================
EVENT_GAME_START = "game_start"                  # payload: difficulty=int, level=int
EVENT_GAME_MODE_CHANGED = "game_mode_changed"    # payload: previous_mode=GameMode|None, new_mode=GameMode
EVENT_GAME_OVER = "game_over"                    # payload: score=int, best_score=int, reason=str


# ============================================================================
# PIECES
# ============================================================================
EVENT_PIECE_SPAWNED = "piece_spawned"    # payload: piece=Piece, next_piece=Piece|None
EVENT_PIECE_LOCKED = "piece_locked"      # payload: piece=Piece, positions=[(r,c),...]


# ============================================================================
# CASCADE
# ============================================================================
EVENT_CASCADE_LEVEL_ADVANCE = "cascade_level_advance"  # payload: depth=int, positions=[(r,c),...]
EVENT_BALLS_CLEARED = "balls_cleared"                  # payload: depth=int, count=int, balls=[ClearedBall,...]
EVENT_GRAVITY_APPLIED = "gravity_applied"              # payload: depth=int, moves=[GravityMove,...]
EVENT_CASCADE_COMPLETE = "cascade_complete"            # payload: cascade_count=int, total_cleared=int, depth_capped=bool


# ============================================================================
# SCORE & STATISTICS
# ============================================================================
EVENT_SCORE_UPDATE = "score_update"                # payload: score=int, best_score=int, points=int, cascade_count=int|None
EVENT_STATISTICS_CHANGED = "statistics_changed"    # payload: level=int, total=int, delta=dict[(type,color),int]
