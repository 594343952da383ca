"""Typed value conversion for launch parameters.

Launch manifests and capcom revisions carry loosely typed scalars: native
Python values, ``numpy`` scalars, or untyped numeric tokens (``Decimal``)
produced by the manifest reader. This module coerces them into one of the
four launch parameter types with defined rounding, overflow and format rules.

Every pairwise converter returns a :class:`ConversionResult` instead of
raising, so callers can tell apart "there was nothing to convert" from
"conversion failed". :func:`convert` is the raising front door used by
:class:`~missioncontrol.catalog.parameters.LaunchParameter`.

Example usage:

    >>> from missioncontrol.catalog.conversion import LaunchParameterType, try_convert
    >>>
    >>> result = try_convert(LaunchParameterType.INTEGER, 42.0)
    >>> result.value
    42
    >>> try_convert(LaunchParameterType.INTEGER, 4.2).error
    FormatError('Converting 4.2 to integer would result in lost information.')
"""

from __future__ import annotations

import builtins
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Optional

import numpy as np

from ..errors import ConversionError, FormatError, InvalidCastError, OverflowError


# =============================================================================
# Constants
# =============================================================================

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

# Single precision carries ~6-9 significant digits, double ~15-17.
SINGLE_EPSILON = 1.0e-6
DOUBLE_EPSILON = 1.0e-15

# Plain ASCII numeric text only: no digit separators or non-ASCII digits.
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")
_FLOAT_TEXT = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?:inf|infinity|nan)",
    re.IGNORECASE,
)

_CONTAINER_TYPES = (list, tuple, dict, set, frozenset, bytes, bytearray)


class LaunchParameterType(str, Enum):
    """Type of the value of a launch parameter."""

    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"

    @classmethod
    def parse(cls, name: str) -> "LaunchParameterType":
        """Parse an enum name case-insensitively ("Integer", "integer", ...).

        Raises:
            ValueError: If ``name`` is not one of the four type names.
        """
        if isinstance(name, cls):
            return name
        if isinstance(name, str):
            lowered = name.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        raise ValueError(
            f"Unknown launch parameter type '{name}'. "
            f"Valid types: {[m.value for m in cls]}"
        )


# =============================================================================
# Result Type
# =============================================================================


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a conversion: a value, an error, or an absent pass-through.

    Attributes:
        value: Converted value (or the original value for pass-through)
        error: Error describing why conversion failed, None on success
        absent: True when no conversion was attempted (no type or no value)
    """

    value: Any = None
    error: Optional[ConversionError] = None
    absent: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value, raising the stored error if conversion failed."""
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def success(cls, value: Any) -> "ConversionResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ConversionError) -> "ConversionResult":
        return cls(error=error)

    @classmethod
    def passthrough(cls, value: Any) -> "ConversionResult":
        return cls(value=value, absent=True)


# =============================================================================
# Value Classification
# =============================================================================


def _is_integral(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


def _is_single(value: Any) -> bool:
    return isinstance(value, (np.float16, np.float32))


def _is_double(value: Any) -> bool:
    return isinstance(value, (float, np.floating)) and not _is_single(value)


def _is_bool(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_))


# =============================================================================
# Pairwise Converters
# =============================================================================


def to_boolean(value: Any) -> ConversionResult:
    """Convert to ``bool``.

    All numbers are converted to True except zero. "true"/"false" strings are
    accepted case-insensitively.
    """
    target = LaunchParameterType.BOOLEAN.value
    if _is_bool(value):
        return ConversionResult.success(bool(value))
    if _is_integral(value) or _is_single(value) or _is_double(value):
        return ConversionResult.success(bool(value != 0))
    if isinstance(value, Decimal):
        return ConversionResult.success(not value.is_zero())
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return ConversionResult.success(True)
        if lowered == "false":
            return ConversionResult.success(False)
        return ConversionResult.failure(FormatError(
            f"String '{value}' was not recognized as a valid boolean.",
            value=value, target_type=target,
        ))
    return ConversionResult.failure(InvalidCastError(
        f"Cannot convert {value!r} to {target}.", value=value, target_type=target,
    ))


def _round_to_int32(number: float, epsilon: float, original: Any) -> ConversionResult:
    target = LaunchParameterType.INTEGER.value
    if not math.isfinite(number):
        return ConversionResult.failure(InvalidCastError(
            f"Cannot convert non-finite value {original!r} to {target}.",
            value=original, target_type=target,
        ))
    rounded = round(number)
    if abs(number - rounded) > epsilon * max(1.0, abs(number)):
        return ConversionResult.failure(FormatError(
            f"Converting {original!r} to {target} would result in lost information.",
            value=original, target_type=target,
        ))
    if not INT32_MIN <= rounded <= INT32_MAX:
        return ConversionResult.failure(OverflowError(
            f"Value {original!r} was either too large or too small for an {target}.",
            value=original, target_type=target,
        ))
    return ConversionResult.success(int(rounded))


def to_integer(value: Any) -> ConversionResult:
    """Convert to a signed 32-bit ``int``.

    Floating point values are only accepted when they are within epsilon of
    an integer; silently dropping the fractional part would lose information.
    """
    target = LaunchParameterType.INTEGER.value
    if _is_bool(value):
        return ConversionResult.success(int(bool(value)))
    if _is_integral(value):
        as_int = int(value)
        if not INT32_MIN <= as_int <= INT32_MAX:
            return ConversionResult.failure(OverflowError(
                f"Value {value!r} was either too large or too small for an {target}.",
                value=value, target_type=target,
            ))
        return ConversionResult.success(as_int)
    if _is_single(value):
        return _round_to_int32(float(value), SINGLE_EPSILON, value)
    if _is_double(value):
        return _round_to_int32(float(value), DOUBLE_EPSILON, value)
    if isinstance(value, Decimal):
        # Untyped numeric token: only an integer literal within 32 bits is usable.
        if value.is_finite() and value.as_tuple().exponent == 0:
            as_int = int(value)
            if INT32_MIN <= as_int <= INT32_MAX:
                return ConversionResult.success(as_int)
        return ConversionResult.failure(InvalidCastError(
            f"Cannot convert {value} to {target}.", value=value, target_type=target,
        ))
    if isinstance(value, str):
        text = value.strip()
        if not _INTEGER_TEXT.fullmatch(text):
            return ConversionResult.failure(FormatError(
                f"Input string '{value}' was not in a correct format.",
                value=value, target_type=target,
            ))
        as_int = int(text)
        if not INT32_MIN <= as_int <= INT32_MAX:
            return ConversionResult.failure(OverflowError(
                f"Value '{value}' was either too large or too small for an {target}.",
                value=value, target_type=target,
            ))
        return ConversionResult.success(as_int)
    return ConversionResult.failure(InvalidCastError(
        f"Cannot convert {value!r} to {target}.", value=value, target_type=target,
    ))


def to_float(value: Any) -> ConversionResult:
    """Convert to a finite ``numpy.float32``."""
    target = LaunchParameterType.FLOAT.value
    if _is_bool(value):
        return ConversionResult.success(np.float32(1.0 if value else 0.0))

    if isinstance(value, str):
        text = value.strip()
        if not _FLOAT_TEXT.fullmatch(text):
            return ConversionResult.failure(FormatError(
                f"Input string '{value}' was not in a correct format.",
                value=value, target_type=target,
            ))
        number = float(text)
    elif _is_integral(value) or _is_single(value) or _is_double(value) or isinstance(value, Decimal):
        try:
            number = float(value)
        except builtins.OverflowError:
            number = math.inf
    else:
        return ConversionResult.failure(InvalidCastError(
            f"Cannot convert {value!r} to {target}.", value=value, target_type=target,
        ))

    with np.errstate(over="ignore"):
        single = np.float32(number)
    if not np.isfinite(single):
        return ConversionResult.failure(InvalidCastError(
            f"Cannot convert {value!r} to a finite {target}.",
            value=value, target_type=target,
        ))
    return ConversionResult.success(single)


def to_string(value: Any) -> ConversionResult:
    """Convert to ``str``.

    Numbers render as their decimal text and booleans as "True"/"False".
    """
    target = LaunchParameterType.STRING.value
    if isinstance(value, str):
        return ConversionResult.success(value)
    if _is_bool(value):
        return ConversionResult.success("True" if value else "False")
    if _is_integral(value):
        return ConversionResult.success(str(int(value)))
    if isinstance(value, Decimal):
        return ConversionResult.success(format(value, "f"))
    if isinstance(value, float):
        return ConversionResult.success(repr(value))
    if isinstance(value, np.floating):
        return ConversionResult.success(str(value))
    if isinstance(value, _CONTAINER_TYPES):
        return ConversionResult.failure(InvalidCastError(
            f"Cannot convert {value!r} to {target}.", value=value, target_type=target,
        ))
    try:
        text = str(value)
    except TypeError as e:
        return ConversionResult.failure(InvalidCastError(
            "Converting to string resulted in a null value.",
            target_type=target, cause=e,
        ))
    return ConversionResult.success(text)


_CONVERTERS: Dict[LaunchParameterType, Callable[[Any], ConversionResult]] = {
    LaunchParameterType.BOOLEAN: to_boolean,
    LaunchParameterType.INTEGER: to_integer,
    LaunchParameterType.FLOAT: to_float,
    LaunchParameterType.STRING: to_string,
}


# =============================================================================
# Public API
# =============================================================================


def try_convert(param_type: Optional[LaunchParameterType], value: Any) -> ConversionResult:
    """Convert ``value`` to ``param_type`` without raising.

    Args:
        param_type: Target type, or None to accept anything.
        value: Value to convert, None meaning "no value".

    Returns:
        ConversionResult. ``absent`` is set when either argument is None, in
        which case the value is passed through unchanged.
    """
    if param_type is None or value is None:
        return ConversionResult.passthrough(value)
    return _CONVERTERS[LaunchParameterType.parse(param_type)](value)


def convert(param_type: Optional[LaunchParameterType], value: Any) -> Any:
    """Convert ``value`` to ``param_type``.

    Raises:
        FormatError: ``value`` is not in an appropriate format.
        InvalidCastError: ``value`` cannot be converted to ``param_type``.
        OverflowError: ``value`` is too large or too small for ``param_type``.
    """
    return try_convert(param_type, value).unwrap()


def matches_type(param_type: Optional[LaunchParameterType], value: Any) -> bool:
    """Check that ``value`` already has the runtime representation of ``param_type``."""
    if param_type is None or value is None:
        return True
    param_type = LaunchParameterType.parse(param_type)
    if param_type is LaunchParameterType.BOOLEAN:
        return isinstance(value, bool)
    if param_type is LaunchParameterType.INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if param_type is LaunchParameterType.FLOAT:
        return isinstance(value, np.float32)
    return isinstance(value, str)
