"""Fluency Trainer UI Module - terminal interface built on rich."""

from ui.app import TrainerUI
from ui.components import (
    QuestionPanel,
    FeedbackPanel,
    RoundSummaryPanel,
    StatsTable,
    ScopePanel,
    RecommendationPanel,
    CalibrationPanel,
)
from ui.styles import (
    ACCENT_TEAL,
    ACCENT_GOLD,
    SUCCESS_GREEN,
    ERROR_RED,
    INFO_BLUE,
    MUTED_GRAY,
)

__all__ = [
    "TrainerUI",
    "QuestionPanel",
    "FeedbackPanel",
    "RoundSummaryPanel",
    "StatsTable",
    "ScopePanel",
    "RecommendationPanel",
    "CalibrationPanel",
    "ACCENT_TEAL",
    "ACCENT_GOLD",
    "SUCCESS_GREEN",
    "ERROR_RED",
    "INFO_BLUE",
    "MUTED_GRAY",
]
