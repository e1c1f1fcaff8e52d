from __future__ import annotations

import threading
from typing import Generic, Optional, TypeVar

from .types import Box2, Point2

T = TypeVar("T")


def clamp_int(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def mirror_x(pt: Point2, width_px: int) -> Point2:
    """Flip a pixel point horizontally, matching ``cv2.flip(frame, 1)``."""
    return (width_px - 1 - pt[0], pt[1])


def box_contains(box: Box2, pt: Point2) -> bool:
    x0, y0, x1, y1 = box
    x, y = pt
    return x0 <= x < x1 and y0 <= y < y1


class LatestValue(Generic[T]):
    """
    Single-slot channel: writers overwrite, readers see the newest value.

    No queueing and no backpressure; a reader may see the same value twice
    or miss intermediate ones.
    """

    def __init__(self, initial: Optional[T] = None) -> None:
        self._lock = threading.Lock()
        self._value = initial

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value

    def get(self) -> Optional[T]:
        with self._lock:
            return self._value

    def take(self) -> Optional[T]:
        """Return the current value and empty the slot."""
        with self._lock:
            value = self._value
            self._value = None
            return value
