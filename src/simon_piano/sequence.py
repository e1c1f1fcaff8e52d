from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from .config import GameConfig
from .scheduler import Scheduler, TimerHandle
from .types import FAILURE, VICTORY, TransientMessage

logger = logging.getLogger(__name__)

VICTORY_TEXT = "Correct! Level Up!"
FAILURE_TEXT = "Wrong Key!"


class Phase(Enum):
    IDLE = "idle"  # waiting for the replay pause to elapse
    REPLAYING = "replaying"
    AWAITING_INPUT = "awaiting_input"


class Outcome(Enum):
    MATCHED = "matched"
    COMPLETED = "completed"
    MISMATCHED = "mismatched"


@dataclass
class GameState:
    """Everything the game mutates, in one place."""

    num_keys: int
    level: int = 1
    game_sequence: List[int] = field(default_factory=list)
    player_sequence: List[int] = field(default_factory=list)
    cursor: int = 0
    phase: Phase = Phase.IDLE
    message: Optional[TransientMessage] = None
    highlighted: List[bool] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.highlighted:
            self.highlighted = [False] * self.num_keys


class SequenceEngine:
    """
    Owns the target sequence and the player's attempt.

    ``play_note`` is called for every note of a replay; the caller is
    expected to sound the key and highlight it.
    """

    def __init__(
        self,
        state: GameState,
        scheduler: Scheduler,
        play_note: Callable[[int], None],
        config: Optional[GameConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.state = state
        self.config = config or GameConfig(num_keys=state.num_keys)
        self._scheduler = scheduler
        self._play_note = play_note
        self._rng = rng or random.Random()
        self._replay_jobs: List[TimerHandle] = []

    def generate(self, level: int) -> List[int]:
        if level < 1:
            raise ValueError(f"level must be >= 1, got {level}")
        s = self.state
        s.level = level
        s.game_sequence = [self._rng.randrange(s.num_keys) for _ in range(level)]
        s.player_sequence = []
        s.cursor = 0
        s.phase = Phase.IDLE

        # Steps of a demonstration for an older sequence must not leak into this one.
        self._cancel_replay()
        self._replay_jobs.append(self._scheduler.call_later(self.config.replay_delay_s, self.replay))
        logger.debug("Level %d sequence: %s", level, s.game_sequence)
        return list(s.game_sequence)

    def replay(self) -> None:
        self._cancel_replay()
        s = self.state
        s.phase = Phase.REPLAYING
        gap = self.config.note_gap_s
        for i, key in enumerate(s.game_sequence):
            self._replay_jobs.append(
                self._scheduler.call_later(i * gap, lambda k=key: self._play_note(k))
            )
        self._replay_jobs.append(
            self._scheduler.call_later(len(s.game_sequence) * gap, self._finish_replay)
        )

    def _finish_replay(self) -> None:
        self.state.phase = Phase.AWAITING_INPUT
        self._replay_jobs = []

    def _cancel_replay(self) -> None:
        for job in self._replay_jobs:
            job.cancel()
        self._replay_jobs = []

    def record_attempt(self, key: int) -> Outcome:
        s = self.state
        if not 0 <= key < s.num_keys:
            raise ValueError(f"Key index {key} outside [0, {s.num_keys})")

        if s.cursor < len(s.game_sequence) and s.game_sequence[s.cursor] == key:
            s.player_sequence.append(key)
            s.cursor += 1
            if len(s.player_sequence) == len(s.game_sequence):
                self._victory()
                return Outcome.COMPLETED
            return Outcome.MATCHED

        self._loss()
        return Outcome.MISMATCHED

    def _victory(self) -> None:
        logger.info("Sequence complete, level %d -> %d", self.state.level, self.state.level + 1)
        self.generate(self.state.level + 1)
        self.show_message(VICTORY_TEXT, VICTORY)

    def _loss(self) -> None:
        logger.info("Wrong key at level %d, back to level 1", self.state.level)
        self.generate(1)
        self.show_message(FAILURE_TEXT, FAILURE)

    def show_message(self, text: str, kind: str) -> TransientMessage:
        msg = TransientMessage(text=text, kind=kind, duration_s=self.config.message_s)
        self.state.message = msg

        def clear() -> None:
            # A newer message keeps its own timer.
            if self.state.message is msg:
                self.state.message = None

        self._scheduler.call_later(msg.duration_s, clear)
        return msg
