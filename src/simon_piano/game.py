from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence

from .config import GameConfig
from .drawing import render_frame
from .input_mapper import InputMapper
from .layout import KeyboardLayout
from .scheduler import Scheduler, TimerHandle
from .sequence import GameState, Outcome, Phase, SequenceEngine
from .types import HandPosition, Point2

logger = logging.getLogger(__name__)


class SimonGame:
    """
    Controller for one game session.

    Owns the game state and routes every change through the sequence engine
    and the input mapper. The caller drives it by calling :meth:`tick` once
    per camera frame and :meth:`render` to get the picture to show.
    """

    def __init__(
        self,
        notes,
        config: Optional[GameConfig] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or GameConfig()
        if len(notes) < self.config.num_keys:
            raise ValueError(f"Need {self.config.num_keys} notes, got {len(notes)}")

        self.notes = notes
        self.scheduler = scheduler or Scheduler()
        self.layout = KeyboardLayout.build(self.config.width, self.config.height, self.config.num_keys)
        self.state = GameState(num_keys=self.config.num_keys)
        self.engine = SequenceEngine(self.state, self.scheduler, self.sound_key, self.config, rng)
        self.mapper = InputMapper(self.layout, debounce_s=self.config.debounce_s)
        self._reverts: Dict[int, TimerHandle] = {}
        self._fingertips: List[Point2] = []

    def start(self) -> None:
        self.engine.generate(1)

    def sound_key(self, key: int) -> None:
        """Play a key's note and light it up for a moment."""
        self.notes.play(key)
        self.state.highlighted[key] = True

        pending = self._reverts.pop(key, None)
        if pending is not None:
            pending.cancel()

        def revert() -> None:
            self.state.highlighted[key] = False
            self._reverts.pop(key, None)

        self._reverts[key] = self.scheduler.call_later(self.config.highlight_s, revert)

    def fingertips(self, hands: Sequence[HandPosition]) -> List[Point2]:
        pts = []
        for hand in hands:
            pt = hand.point(self.config.fingertip_idx)
            if pt is not None:
                pts.append(pt)
        return pts

    def accepts_input(self) -> bool:
        if self.state.message is not None:
            return False
        if self.config.lock_input_during_replay and self.state.phase is not Phase.AWAITING_INPUT:
            return False
        return True

    def tick(self, hands: Sequence[HandPosition], now_s: Optional[float] = None) -> List[Outcome]:
        """Advance timers and process this frame's hands. Returns the outcome of each accepted press."""
        now_s = self.scheduler.now() if now_s is None else now_s
        self.scheduler.run_due(now_s)

        tips = self.fingertips(hands)
        self._fingertips = [self.mapper.to_screen(pt) for pt in tips]
        if not self.accepts_input():
            return []

        outcomes: List[Outcome] = []

        def press(key: int) -> bool:
            logger.debug("Key %d pressed", key)
            self.sound_key(key)
            outcomes.append(self.engine.record_attempt(key))
            # A win or loss shows a message; the rest of the frame is ignored.
            return self.state.message is None

        self.mapper.update(tips, now_s, on_press=press)
        return outcomes

    def render(self, camera_bgr=None):
        return render_frame(self.layout, self.state, camera_bgr, self._fingertips)
