"""Recoverable error conditions raised by the adaptive core.

The quiz engine catches TrainerError at its public boundary and reports the
`condition` through EngineState instead of propagating.
"""

from models import Condition


class TrainerError(Exception):
    """Base class for conditions the quiz engine recovers from."""

    condition: Condition


class InvalidItemError(TrainerError, ValueError):
    """An item id (or group index) that is not part of the mode's universe."""

    condition = Condition.INVALID_ITEM


class EmptyScopeError(TrainerError):
    """No enabled items to select from."""

    condition = Condition.EMPTY_SCOPE


class CalibrationIncompleteError(TrainerError):
    """Too few valid calibration trials to derive a motor baseline."""

    condition = Condition.CALIBRATION_INCOMPLETE


class PersistenceUnavailableError(TrainerError):
    """A storage write failed; the in-memory state stays authoritative."""

    condition = Condition.PERSISTENCE_UNAVAILABLE
