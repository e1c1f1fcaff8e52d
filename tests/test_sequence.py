import pytest

from simon_piano.config import GameConfig
from simon_piano.sequence import (
    FAILURE_TEXT,
    VICTORY_TEXT,
    GameState,
    Outcome,
    Phase,
    SequenceEngine,
)
from simon_piano.types import FAILURE, VICTORY


@pytest.fixture
def played():
    return []


@pytest.fixture
def engine(scheduler, played, rng):
    state = GameState(num_keys=8)
    return SequenceEngine(state, scheduler, played.append, GameConfig(), rng)


@pytest.mark.parametrize("level", [1, 2, 5, 17])
def test_generate_has_level_length_and_valid_keys(engine, level):
    seq = engine.generate(level)
    assert len(seq) == level
    assert all(0 <= k < 8 for k in seq)
    assert engine.state.level == level
    assert engine.state.player_sequence == []
    assert engine.state.cursor == 0
    assert engine.state.phase is Phase.IDLE


def test_generate_rejects_level_zero(engine):
    with pytest.raises(ValueError):
        engine.generate(0)


def test_replay_starts_after_pause_and_steps_through_notes(clock, scheduler, engine, played):
    engine.generate(3)
    engine.state.game_sequence = [5, 2, 7]

    clock.advance(1.75)
    scheduler.run_due()
    assert played == []

    clock.advance(0.25)
    scheduler.run_due()
    assert played == [5]
    assert engine.state.phase is Phase.REPLAYING

    clock.advance(0.5)
    scheduler.run_due()
    assert played == [5, 2]

    clock.advance(0.5)
    scheduler.run_due()
    assert played == [5, 2, 7]
    assert engine.state.phase is Phase.REPLAYING

    clock.advance(0.5)
    scheduler.run_due()
    assert engine.state.phase is Phase.AWAITING_INPUT


def test_single_correct_press_levels_up(engine):
    engine.generate(1)
    engine.state.game_sequence = [3]

    assert engine.record_attempt(3) is Outcome.COMPLETED
    s = engine.state
    assert s.level == 2
    assert len(s.game_sequence) == 2
    assert s.player_sequence == []
    assert s.cursor == 0
    assert s.message.text == VICTORY_TEXT
    assert s.message.kind == VICTORY


def test_wrong_second_press_resets_to_level_one(engine):
    engine.generate(2)
    engine.state.game_sequence = [1, 4]

    assert engine.record_attempt(1) is Outcome.MATCHED
    assert engine.state.player_sequence == [1]
    assert engine.state.cursor == 1

    assert engine.record_attempt(2) is Outcome.MISMATCHED
    s = engine.state
    assert s.level == 1
    assert len(s.game_sequence) == 1
    assert s.player_sequence == []
    assert s.cursor == 0
    assert s.message.text == FAILURE_TEXT
    assert s.message.kind == FAILURE


def test_player_sequence_stays_a_prefix(engine, rng):
    engine.generate(6)
    target = list(engine.state.game_sequence)
    for i, key in enumerate(target[:-1]):
        engine.record_attempt(key)
        assert engine.state.player_sequence == target[: i + 1]


def test_message_clears_after_its_duration(clock, scheduler, engine):
    engine.generate(1)
    engine.state.game_sequence = [0]
    engine.record_attempt(6)
    assert engine.state.message is not None

    clock.advance(0.75)
    scheduler.run_due()
    assert engine.state.message is not None

    clock.advance(0.25)
    scheduler.run_due()
    assert engine.state.message is None


def test_regenerating_cancels_pending_replay(clock, scheduler, engine, played):
    engine.generate(2)
    engine.state.game_sequence = [1, 1]
    clock.advance(2.0)
    scheduler.run_due()
    assert played == [1]

    # Loss mid-demonstration: the old second note must not play.
    engine.record_attempt(0)
    engine.state.game_sequence = [4]
    clock.advance(0.5)
    scheduler.run_due()
    assert played == [1]

    clock.advance(1.5)
    scheduler.run_due()
    assert played == [1, 4]


def test_out_of_range_key_is_an_error(engine):
    engine.generate(1)
    with pytest.raises(ValueError):
        engine.record_attempt(8)
    with pytest.raises(ValueError):
        engine.record_attempt(-1)


def test_state_starts_with_no_highlights():
    assert GameState(num_keys=5).highlighted == [False] * 5
