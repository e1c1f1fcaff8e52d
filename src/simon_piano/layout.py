from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .types import Box2, Point2
from .utils import box_contains

BLACK_KEY_WIDTH_RATIO = 0.6
BLACK_KEY_HEIGHT_RATIO = 0.7

# Positions within an octave of white keys (C D E F G A B) with no black key
# to their right: after E and after B.
DIATONIC_GAPS = (2, 6)


def has_black_key_after(white_idx: int) -> bool:
    return white_idx % 7 not in DIATONIC_GAPS


@dataclass(frozen=True)
class KeyboardLayout:
    """
    Piano geometry for a fixed canvas.

    White keys are equal-width columns spanning the canvas width and the top
    third of its height. ``black_keys[i]`` is the black key sitting on the
    boundary to the right of white key ``i`` (or None for diatonic gaps and
    for the last key). Black keys are drawn but never hit-tested.
    """

    width: int
    height: int
    white_keys: List[Box2]
    black_keys: List[Optional[Box2]]

    @property
    def num_keys(self) -> int:
        return len(self.white_keys)

    @classmethod
    def build(cls, width: int, height: int, num_keys: int = 8) -> "KeyboardLayout":
        if num_keys < 1:
            raise ValueError(f"num_keys must be >= 1, got {num_keys}")

        white_w = width / num_keys
        white_h = height / 3
        black_w = white_w * BLACK_KEY_WIDTH_RATIO
        black_h = white_h * BLACK_KEY_HEIGHT_RATIO

        white: List[Box2] = []
        for j in range(num_keys):
            x0 = int(round(j * white_w))
            x1 = int(round((j + 1) * white_w))
            white.append((x0, 0, x1, int(round(white_h))))

        black: List[Optional[Box2]] = []
        for i in range(num_keys):
            if i == num_keys - 1 or not has_black_key_after(i):
                black.append(None)
                continue
            cx = (i + 1) * white_w
            black.append(
                (
                    int(round(cx - black_w / 2)),
                    0,
                    int(round(cx + black_w / 2)),
                    int(round(black_h)),
                )
            )

        return cls(width=width, height=height, white_keys=white, black_keys=black)

    def key_at(self, pt: Point2) -> Optional[int]:
        for j, box in enumerate(self.white_keys):
            if box_contains(box, pt):
                return j
        return None
