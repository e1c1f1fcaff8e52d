from .config import GameConfig
from .game import SimonGame
from .layout import KeyboardLayout
from .sequence import GameState, Outcome, Phase, SequenceEngine
from .types import HandLandmark, HandPosition, TransientMessage

__all__ = [
    "GameConfig",
    "GameState",
    "HandLandmark",
    "HandPosition",
    "KeyboardLayout",
    "Outcome",
    "Phase",
    "SequenceEngine",
    "SimonGame",
    "TransientMessage",
]
