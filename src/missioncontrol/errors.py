"""Unified error handling for MissionControl.

Every exception carries a human-readable message, an optional dictionary of
details and proper exception chaining.

Exception Hierarchy:
    MissionControlError (base)
    +-- ConversionError
    |   +-- FormatError
    |   +-- InvalidCastError
    |   +-- OverflowError
    +-- InvalidOperationError
    +-- FatalError
        +-- ValidationError
        +-- ConfigurationError

Conversion errors are recoverable: the object whose value was being converted
keeps its previous state. Fatal errors stop whatever loaded the offending
data (a launch manifest or the persisted configuration).
"""

from __future__ import annotations

import builtins
from typing import Any, Dict, List, Optional, Type


# =============================================================================
# Base Exception
# =============================================================================


class MissionControlError(Exception):
    """Base exception for all MissionControl errors.

    Attributes:
        message: Human-readable error description
        details: Dictionary with additional context
        cause: Original exception that caused this error (if any)
    """

    _default_suggested_fix = "Please check the logs for more details and try again."

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def suggested_fix(self) -> str:
        """Return a suggested fix for this error."""
        return self._default_suggested_fix

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "suggested_fix": self.suggested_fix(),
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }

    @property
    def is_fatal(self) -> bool:
        """True if the error must stop the operation that loaded the data."""
        return isinstance(self, FatalError)


# =============================================================================
# Value Conversion Errors
# =============================================================================


class ConversionError(MissionControlError):
    """A value could not be converted to a launch parameter type.

    Attributes:
        value: The value that failed to convert
        target_type: Name of the type the value was converted to
    """

    _default_suggested_fix = "Provide a value matching the declared parameter type."

    def __init__(
        self,
        message: str,
        value: Any = None,
        target_type: Optional[str] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        details = {}
        if target_type:
            details["target_type"] = target_type
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details=details, cause=cause)
        self.value = value
        self.target_type = target_type


class FormatError(ConversionError, ValueError):
    """The value's textual or numeric form is invalid or would lose information."""


class InvalidCastError(ConversionError, TypeError):
    """Unsupported source/target pairing, or a non-finite float result."""


class OverflowError(ConversionError, builtins.OverflowError):
    """The value's magnitude exceeds the range of the target type."""


# =============================================================================
# Registry Errors
# =============================================================================


class InvalidOperationError(MissionControlError):
    """Operation is not valid in the current state of the object."""

    _default_suggested_fix = (
        "Check that the object is in the expected state (capability provided, "
        "launchpad registered) before calling the operation."
    )


# =============================================================================
# Fatal Errors
# =============================================================================


class FatalError(MissionControlError):
    """Non-recoverable errors requiring intervention."""

    _default_suggested_fix = "Please review the error details and fix the input file."


class ValidationError(FatalError):
    """A launch manifest value violates its declared type or constraint.

    Raised at manifest load time, never deferred to launch.
    """

    _default_suggested_fix = (
        "Fix the parameter's defaultValue so it matches its type and constraint."
    )

    def __init__(
        self,
        message: str,
        launchable: Optional[str] = None,
        parameter_id: Optional[str] = None,
        expected: Optional[Any] = None,
        actual: Optional[Any] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        details = {}
        if launchable:
            details["launchable"] = launchable
        if parameter_id:
            details["parameter_id"] = parameter_id
        if expected is not None:
            details["expected"] = expected
        if actual is not None:
            details["actual"] = actual
        super().__init__(message, details=details, cause=cause)
        self.launchable = launchable
        self.parameter_id = parameter_id


class ConfigurationError(FatalError):
    """Invalid persisted configuration.

    Always identifies the offending field when one can be singled out.
    """

    _default_suggested_fix = (
        "Review the configuration file. Run 'missioncontrol config init' to "
        "write a file with default values."
    )

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        valid_values: Optional[List[Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        details = {}
        if config_key:
            details["config_key"] = config_key
        if config_value is not None:
            details["config_value"] = config_value
        if valid_values:
            details["valid_values"] = valid_values
        super().__init__(message, details=details, cause=cause)
        self.config_key = config_key


# =============================================================================
# Exception Mapping
# =============================================================================


EXCEPTION_MAP: Dict[str, Type[MissionControlError]] = {
    "MissionControlError": MissionControlError,
    "ConversionError": ConversionError,
    "FormatError": FormatError,
    "InvalidCastError": InvalidCastError,
    "OverflowError": OverflowError,
    "InvalidOperationError": InvalidOperationError,
    "FatalError": FatalError,
    "ValidationError": ValidationError,
    "ConfigurationError": ConfigurationError,
}


def get_exception_class(error_type: str) -> Type[MissionControlError]:
    """Get exception class by name, falling back to the base class."""
    return EXCEPTION_MAP.get(error_type, MissionControlError)
