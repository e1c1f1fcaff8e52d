from __future__ import annotations

from dataclasses import dataclass

from .types import INDEX_FINGERTIP


# --- Tuning knobs ---
NUM_KEYS = 8
CANVAS_WIDTH = 640
CANVAS_HEIGHT = 480
DEBOUNCE_S = 0.5  # process-wide, not per key
REPLAY_DELAY_S = 2.0  # pause before the target sequence is demonstrated
NOTE_GAP_S = 0.5
HIGHLIGHT_S = 0.5
MESSAGE_S = 1.0


@dataclass(frozen=True)
class GameConfig:
    num_keys: int = NUM_KEYS
    width: int = CANVAS_WIDTH
    height: int = CANVAS_HEIGHT
    debounce_s: float = DEBOUNCE_S
    replay_delay_s: float = REPLAY_DELAY_S
    note_gap_s: float = NOTE_GAP_S
    highlight_s: float = HIGHLIGHT_S
    message_s: float = MESSAGE_S
    fingertip_idx: int = INDEX_FINGERTIP
    # The classic game lets players press keys while the sequence is still
    # being demonstrated. Set to True to ignore input until replay ends.
    lock_input_during_replay: bool = False

    def __post_init__(self) -> None:
        if self.num_keys < 1:
            raise ValueError(f"num_keys must be >= 1, got {self.num_keys}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Canvas size must be positive, got {self.width}x{self.height}")
        for name in ("debounce_s", "replay_delay_s", "note_gap_s", "highlight_s", "message_s"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
