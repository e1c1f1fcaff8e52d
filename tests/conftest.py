from __future__ import annotations

import random

import pytest

from simon_piano.config import GameConfig
from simon_piano.scheduler import Scheduler
from simon_piano.types import HandLandmark, HandPosition


class FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float) -> None:
        self.now += dt


class RecordingNotes:
    def __init__(self, n: int = 8) -> None:
        self.n = n
        self.played = []

    def __len__(self) -> int:
        return self.n

    def play(self, index: int) -> None:
        self.played.append(index)


def make_hand(x: int, y: int, tip_idx: int = 8) -> HandPosition:
    """A hand whose every landmark sits at (x, y) in camera pixels."""
    lms = [HandLandmark(idx=i, x_norm=0.0, y_norm=0.0, x_px=x, y_px=y) for i in range(21)]
    return HandPosition(handedness_label="Right", landmarks=lms)


def hand_over_key(key: int, width: int = 640, num_keys: int = 8, y: int = 40) -> HandPosition:
    """A hand that appears over ``key`` once the camera image is mirrored."""
    key_w = width // num_keys
    screen_x = key * key_w + key_w // 2
    return make_hand(width - 1 - screen_x, y)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock=clock)


@pytest.fixture
def notes():
    return RecordingNotes()


@pytest.fixture
def config():
    return GameConfig()


@pytest.fixture
def rng():
    return random.Random(1234)
