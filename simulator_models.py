"""Data models for the learner simulator."""

import random
from datetime import datetime

from pydantic import BaseModel, Field


class SimulatedLearnerConfig(BaseModel):
    """Configuration for a simulated learner's behavior."""

    # Motor reaction time: what calibration should measure
    base_latency_ms: float = Field(default=450.0, gt=0)

    # Extra thinking time for an item the learner does not know at all;
    # shrinks linearly to zero as skill approaches 1
    think_time_ms: float = Field(default=2500.0, ge=0)

    # Gaussian jitter on every response
    noise_ms: float = Field(default=60.0, ge=0)

    # How fast true skill grows per attempt
    # Formula: s_new = s + learning_rate * (1 - s)
    learning_rate: float = Field(default=0.25, ge=0.0, le=1.0)

    # Probability of a wrong answer even when the item is known
    slip_rate: float = Field(default=0.05, ge=0.0, le=0.5)

    # Probability of a right answer when the item is unknown
    guess_rate: float = Field(default=0.1, ge=0.0, le=0.5)


class SimulatedLearner(BaseModel):
    """A learner with hidden per-item skill (the ground truth the model estimates)."""

    config: SimulatedLearnerConfig
    skill: dict[str, float] = Field(default_factory=dict)

    def get_skill(self, item_id: str) -> float:
        """True skill for an item (0.0 if never practiced)."""
        return self.skill.get(item_id, 0.0)

    def p_correct(self, item_id: str) -> float:
        s = self.get_skill(item_id)
        return s * (1 - self.config.slip_rate) + (1 - s) * self.config.guess_rate

    def response_latency_ms(self, item_id: str, rng: random.Random) -> float:
        s = self.get_skill(item_id)
        latency = (
            self.config.base_latency_ms
            + self.config.think_time_ms * (1 - s)
            + rng.gauss(0, self.config.noise_ms)
        )
        return max(150.0, latency)

    def motor_latency_ms(self, rng: random.Random) -> float:
        """Latency for a trivial calibration tap."""
        return max(150.0, self.config.base_latency_ms + rng.gauss(0, self.config.noise_ms))

    def practice(self, item_id: str) -> None:
        """Every attempt teaches a little, right or wrong (feedback is shown)."""
        current = self.get_skill(item_id)
        self.skill[item_id] = min(1.0, current + self.config.learning_rate * (1 - current))


class AnswerRecord(BaseModel):
    """Result of a single simulated answer."""

    round_number: int
    question_number: int
    item_id: str
    correct: bool
    latency_ms: float

    true_skill_before: float
    automaticity_after: float


class RoundReport(BaseModel):
    """Summary of a single simulated round."""

    round_number: int
    answered: int
    correct: int
    accuracy: float
    median_response_ms: float | None
    newly_fluent: list[str]

    fluent_count: int
    total_enabled_count: int
    enabled_groups: list[int]

    recommendation: str
    recommendation_applied: bool


class ItemSnapshot(BaseModel):
    """Point-in-time snapshot of an item's state."""

    round_number: int
    question_number: int
    true_skill: float
    automaticity: float
    trial_count: int


class ItemTrajectory(BaseModel):
    """Complete trajectory of an item during simulation."""

    item_id: str
    first_practiced_round: int | None = None
    became_fluent_round: int | None = None
    snapshots: list[ItemSnapshot] = Field(default_factory=list)


class SimulationResults(BaseModel):
    """Complete results of a simulation run."""

    # Configuration
    config: SimulatedLearnerConfig
    mode: str
    rounds_simulated: int
    round_duration_s: float
    random_seed: int | None
    start_time: datetime
    end_time: datetime

    motor_baseline_ms: float | None

    # Summary statistics
    total_answers: int
    total_correct: int
    overall_accuracy: float

    # Detailed breakdowns
    round_reports: list[RoundReport]
    answers: list[AnswerRecord]
    item_trajectories: dict[str, ItemTrajectory]

    # Final state
    final_fluent_count: int
    final_enabled_groups: list[int]
