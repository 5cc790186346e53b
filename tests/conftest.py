"""Shared pytest fixtures for the Fluency Trainer test suite."""

import random
import pytest
from datetime import datetime, timedelta

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from learner import LearnerModel
from models import ItemStat, PracticeGroup
from modes import NoteSemitonesMode
from quiz_engine import QuizEngine
from scope import ScopeManager
from simulate import FakeClock
from simulator_models import SimulatedLearnerConfig
from storage import MemoryModeStore, init_schema
from timers import ManualTimer


class FakeNow:
    """Deterministic wall clock for last_seen; each call is one second later."""

    def __init__(self, start: datetime = datetime(2024, 1, 1)):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def store() -> MemoryModeStore:
    """Create an empty in-memory store."""
    return MemoryModeStore()


@pytest.fixture
def item_ids() -> list[str]:
    """A small item universe."""
    return ["a", "b", "c", "d", "e", "f"]


@pytest.fixture
def groups() -> list[PracticeGroup]:
    """Three disjoint groups over the small universe."""
    return [
        PracticeGroup(index=0, label="First", item_ids=["a", "b"]),
        PracticeGroup(index=1, label="Second", item_ids=["c", "d"]),
        PracticeGroup(index=2, label="Third", item_ids=["e", "f"]),
    ]


@pytest.fixture
def learner(store, item_ids) -> LearnerModel:
    """A learner model over the small universe, without a baseline."""
    return LearnerModel("test", item_ids, store, now=FakeNow())


@pytest.fixture
def calibrated_learner(learner) -> LearnerModel:
    """A learner model with a 500ms motor baseline."""
    learner.set_motor_baseline(500.0)
    return learner


@pytest.fixture
def scope(store, item_ids, groups) -> ScopeManager:
    """Scope manager with group 0 enabled by default."""
    return ScopeManager("test", item_ids, groups, store)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start=100.0)


@pytest.fixture
def timer() -> ManualTimer:
    return ManualTimer()


@pytest.fixture
def note_mode() -> NoteSemitonesMode:
    return NoteSemitonesMode()


@pytest.fixture
def note_store() -> MemoryModeStore:
    return MemoryModeStore()


@pytest.fixture
def note_learner(note_mode, note_store) -> LearnerModel:
    """Note-semitones learner with a 500ms baseline."""
    learner = LearnerModel(note_mode.name, note_mode.item_ids(), note_store, now=FakeNow())
    learner.set_motor_baseline(500.0)
    return learner


@pytest.fixture
def note_scope(note_mode, note_store) -> ScopeManager:
    return ScopeManager(note_mode.name, note_mode.item_ids(), note_mode.groups(), note_store)


@pytest.fixture
def engine(note_mode, note_learner, note_scope, clock, timer, rng) -> QuizEngine:
    """Quiz engine for note_semitones with a fake clock and manual timer."""
    return QuizEngine(
        note_mode,
        note_learner,
        note_scope,
        round_duration_s=60.0,
        timer=timer,
        clock=clock,
        rng=rng,
    )


@pytest.fixture
def fluent_stat() -> ItemStat:
    """A well-practiced item."""
    return ItemStat(item_id="a", trial_count=20, correct_count=20, automaticity=0.95)


@pytest.fixture
def default_simulator_config() -> SimulatedLearnerConfig:
    """Create a default simulator configuration."""
    return SimulatedLearnerConfig()


@pytest.fixture
def fast_learner_config() -> SimulatedLearnerConfig:
    """Create a fast learner simulator configuration."""
    return SimulatedLearnerConfig(
        base_latency_ms=400.0,
        think_time_ms=1500.0,
        learning_rate=0.5,
        slip_rate=0.02,
    )


@pytest.fixture
def test_db_path(tmp_path) -> Path:
    """Create a temporary database path for testing."""
    db_path = tmp_path / "test_trainer.db"
    init_schema(db_path)
    return db_path
