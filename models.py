from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


FLUENCY_THRESHOLD = 0.8  # automaticity at or above this = "fluent"


class Classification(str, Enum):
    NEW = "new"
    PRACTICING = "practicing"
    FLUENT = "fluent"


class EnginePhase(str, Enum):
    IDLE = "idle"
    CALIBRATING = "calibrating"
    ACTIVE = "active"
    ROUND_COMPLETE = "round_complete"


class Condition(str, Enum):
    """Recoverable conditions reported by the quiz engine."""

    INVALID_ITEM = "invalid_item"
    EMPTY_SCOPE = "empty_scope"
    CALIBRATION_INCOMPLETE = "calibration_incomplete"
    PERSISTENCE_UNAVAILABLE = "persistence_unavailable"


# ============================================================================
# Learner Model
# ============================================================================


class ItemStat(BaseModel):
    """
    Per-item practice statistics for one mode.

    Only LearnerModel.record_trial mutates these; everything else works on
    snapshots.
    """

    item_id: str
    trial_count: int = 0
    correct_count: int = 0
    automaticity: float = Field(default=0.0, ge=0.0, le=1.0)
    last_seen: datetime | None = None

    # Response-time history for correct answers (ms)
    ewma_ms: float | None = None
    recent_times: list[float] = Field(default_factory=list)

    def classify(self, threshold: float = FLUENCY_THRESHOLD) -> Classification:
        """Derive the fluency classification from this snapshot."""
        if self.automaticity >= threshold:
            return Classification.FLUENT
        if self.trial_count > 0:
            return Classification.PRACTICING
        return Classification.NEW


class AggregateStats(BaseModel):
    """Summary over an arbitrary set of item ids."""

    fluent_count: int = 0
    total_count: int = 0
    average_automaticity: float = 0.0

    @property
    def fluent_ratio(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.fluent_count / self.total_count


# ============================================================================
# Scope and Recommendations
# ============================================================================


class PracticeGroup(BaseModel):
    """An ordered, disjoint subset of a mode's item universe."""

    index: int
    label: str
    item_ids: list[str]


class ScopeState(BaseModel):
    """
    Currently enabled part of the item universe.

    Either group indices (expanded through the mode's grouping) or explicit
    item ids; the enabled set is the union of both.
    """

    enabled_groups: list[int] = Field(default_factory=list)
    enabled_items: list[str] = Field(default_factory=list)


class RecommendationResult(BaseModel):
    """Suggested scope change. `enabled` is None when no change is suggested."""

    enabled: set[int] | None = None
    expand_index: int | None = None
    expand_label: str | None = None
    fluent_count: int = 0
    total_count: int = 0
    fluent_ratio: float = 0.0
    justification: str = ""
    weak_items: list[str] = Field(default_factory=list)


# ============================================================================
# Quiz Engine
# ============================================================================


class Feedback(BaseModel):
    """Outcome of the most recently answered question."""

    item_id: str
    correct: bool
    expected: str
    given: str
    latency_ms: float


class RoundState(BaseModel):
    """Tallies for the round in progress. Never persisted."""

    round_number: int = 1
    started_at: float = 0.0
    answered: int = 0
    correct: int = 0
    response_times: list[float] = Field(default_factory=list)
    newly_fluent: list[str] = Field(default_factory=list)


class RoundSummary(BaseModel):
    """Round-complete display data."""

    round_number: int
    answered: int
    correct: int
    duration_ms: float
    median_response_ms: float | None = None
    newly_fluent: list[str] = Field(default_factory=list)
    fluent_count: int = 0
    total_enabled_count: int = 0

    @property
    def accuracy(self) -> float:
        if self.answered == 0:
            return 0.0
        return self.correct / self.answered

    @property
    def context_line(self) -> str:
        return f"{self.fluent_count} / {self.total_enabled_count} fluent"


class EngineState(BaseModel):
    """Read-only snapshot of a quiz engine for presentation layers."""

    phase: EnginePhase = EnginePhase.IDLE
    time_remaining: float = 0.0  # seconds
    current_item_id: str | None = None
    prompt: str | None = None
    mastered_count: int = 0
    total_enabled_count: int = 0
    last_feedback: Feedback | None = None

    condition: Condition | None = None
    condition_message: str = ""

    round_number: int = 0
    question_count: int = 0
    round_answered: int = 0
    round_correct: int = 0
    summary: RoundSummary | None = None

    calibration_target: str | None = None
    calibration_trial: int = 0
    calibration_total: int = 0
    motor_baseline: float | None = None

    mastery_message: str = ""
