from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple


Point2 = Tuple[int, int]
Box2 = Tuple[int, int, int, int]  # (x_min, y_min, x_max, y_max), max exclusive

INDEX_FINGERTIP = 8


@dataclass(frozen=True)
class HandLandmark:
    """A single hand landmark with both normalized and pixel coordinates."""

    idx: int
    x_norm: float
    y_norm: float
    x_px: int
    y_px: int


@dataclass(frozen=True)
class HandPosition:
    """Detected landmarks for a single hand, in unmirrored camera pixels."""

    handedness_label: Optional[str]  # "Left" / "Right" (may be None)
    landmarks: List[HandLandmark]  # length 21

    def point(self, idx: int = INDEX_FINGERTIP) -> Optional[Point2]:
        if not 0 <= idx < len(self.landmarks):
            return None
        lm = self.landmarks[idx]
        return (lm.x_px, lm.y_px)


@dataclass(frozen=True)
class TransientMessage:
    """Feedback text shown instead of the game for a short while."""

    text: str
    kind: str  # "victory" / "failure"
    duration_s: float


VICTORY = "victory"
FAILURE = "failure"
