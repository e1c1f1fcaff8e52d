from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from .layout import KeyboardLayout
from .types import Point2
from .utils import box_contains, mirror_x


class InputMapper:
    """
    Turns fingertip positions into key presses.

    Fingertips arrive in unmirrored camera pixels; the keyboard is drawn over
    a mirrored (selfie) view, so x is flipped before hit-testing. A key fires
    on the frame a fingertip enters it, provided ``debounce_s`` has passed
    since the last accepted press on any key.
    """

    def __init__(self, layout: KeyboardLayout, debounce_s: float = 0.5, mirror: bool = True) -> None:
        self.layout = layout
        self.debounce_s = debounce_s
        self.mirror = mirror
        self.pressed: List[bool] = [False] * layout.num_keys
        self.last_press_s: Optional[float] = None

    def to_screen(self, pt: Point2) -> Point2:
        return mirror_x(pt, self.layout.width) if self.mirror else pt

    def update(
        self,
        fingertips: Iterable[Point2],
        now_s: float,
        on_press: Optional[Callable[[int], bool]] = None,
    ) -> List[int]:
        """
        Return the keys accepted as pressed on this frame, in key order.

        ``on_press`` is called with each accepted key as soon as it is
        accepted; returning False ends the frame there, leaving the keys after
        it untouched until the next update.
        """
        screen_pts = [self.to_screen(pt) for pt in fingertips]
        accepted: List[int] = []

        for j, box in enumerate(self.layout.white_keys):
            touched = any(box_contains(box, pt) for pt in screen_pts)
            if not touched:
                self.pressed[j] = False
                continue
            if self.pressed[j] or not self._debounce_elapsed(now_s):
                continue
            self.pressed[j] = True
            self.last_press_s = now_s
            accepted.append(j)
            if on_press is not None and not on_press(j):
                break

        return accepted

    def _debounce_elapsed(self, now_s: float) -> bool:
        return self.last_press_s is None or now_s - self.last_press_s >= self.debounce_s

    def reset(self) -> None:
        self.pressed = [False] * self.layout.num_keys
        self.last_press_s = None
