# src/thermod/errors.py
"""Error types and standardized raise helpers for thermod.

Design intent:
- every setup-time failure (bad forcing, bad parameters, bad state shape, bad
  configuration) is raised before any integration step is taken
- errors carry a machine-readable code while remaining catchable as the
  builtin exception type callers would naturally expect (ValueError)
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """Machine-readable classification for thermod failures.

    Use these codes to support consistent logging and (optional) programmatic
    recovery without requiring many custom exception subclasses.
    """

    INVALID_FORCING = "invalid_forcing"
    INVALID_PARAMETERS = "invalid_parameters"
    INVALID_STATE_SHAPE = "invalid_state_shape"
    INVALID_CONFIG = "invalid_config"


class ThermodError(Exception):
    """Base exception for thermod setup errors."""

    def __init__(self, message: str, *, code: ErrorCode | None = None) -> None:
        """
        Initialize a ThermodError.

        Args:
            message: Human-readable error message.
            code: Optional machine-readable error code classifying the error.
        """
        super().__init__(message)
        self.code: ErrorCode | None = code


class InvalidForcingError(ThermodError, ValueError):
    """Raised when a forcing table is empty, malformed, or non-monotone."""


class InvalidParametersError(ThermodError, ValueError):
    """Raised when a parameter vector has the wrong length or invalid values."""


class StateShapeError(ThermodError, ValueError):
    """Raised when state/time arrays are incompatible with the model variant."""


class SimulationConfigError(ThermodError, ValueError):
    """Raised when a simulation configuration is invalid or incomplete."""


def raise_invalid_forcing(*, detail: str) -> None:
    """
    Raise a standardized forcing error.

    Args:
        detail: Detail text describing the forcing issue.

    Raises:
        InvalidForcingError: Always.
    """
    msg = f"Invalid forcing table: {detail}"
    raise InvalidForcingError(msg, code=ErrorCode.INVALID_FORCING)


def raise_invalid_parameters(*, detail: str) -> None:
    """
    Raise a standardized parameter error.

    Args:
        detail: Detail text describing the parameter issue.

    Raises:
        InvalidParametersError: Always.
    """
    msg = f"Invalid parameter vector: {detail}"
    raise InvalidParametersError(msg, code=ErrorCode.INVALID_PARAMETERS)


def raise_state_shape_error(*, name: str, expected: str, got: object) -> None:
    """
    Raise a standardized state/time array shape error.

    Args:
        name: Name of the array (for error messages).
        expected: Description of the expected shape/value.
        got: Actual value received.

    Raises:
        StateShapeError: Always.
    """
    msg = f"{name} has an invalid shape/value. Expected {expected}. Got: {got!r}."
    raise StateShapeError(msg, code=ErrorCode.INVALID_STATE_SHAPE)


def raise_invalid_config(*, detail: str) -> None:
    """
    Raise a standardized simulation configuration error.

    Args:
        detail: Detail text describing the configuration issue.

    Raises:
        SimulationConfigError: Always.
    """
    msg = f"Invalid thermod simulation configuration: {detail}"
    raise SimulationConfigError(msg, code=ErrorCode.INVALID_CONFIG)
